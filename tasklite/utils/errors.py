"""Error handling utilities."""


class TaskLiteError(Exception):
    """Base exception for the TaskLite client."""
    pass


class ConfigurationError(TaskLiteError):
    """Required configuration is missing or invalid."""
    pass


class SupabaseError(TaskLiteError):
    """Supabase operation error."""
    pass


class StorageUploadError(SupabaseError):
    """Attachment upload to object storage failed."""
    pass


class AuthenticationError(TaskLiteError):
    """Sign-in, sign-out or session lookup failed."""
    pass
