"""Application configuration read from environment variables."""

import os

from tasklite.utils.errors import ConfigurationError


class AppConfig:
    """Centralized client configuration."""

    ATTACHMENTS_BUCKET = os.environ.get("TASKLITE_ATTACHMENTS_BUCKET", "attachments")
    TASKS_TABLE = os.environ.get("TASKLITE_TASKS_TABLE", "tasks")
    COMMENTS_TABLE = os.environ.get("TASKLITE_COMMENTS_TABLE", "comments")
    PROFILES_TABLE = os.environ.get("TASKLITE_PROFILES_TABLE", "profiles")
    REALTIME_SCHEMA = os.environ.get("TASKLITE_REALTIME_SCHEMA", "public")

    @classmethod
    def gateway_credentials(cls) -> tuple[str, str]:
        """Return (url, key) for the Supabase project.

        Read at call time so a missing variable fails the first client
        creation rather than the import.
        """
        url = os.environ.get("SUPABASE_URL")
        key = os.environ.get("SUPABASE_ANON_KEY")

        if not url or not key:
            raise ConfigurationError("SUPABASE_URL and SUPABASE_ANON_KEY must be set")

        return url, key
