"""Session resolution against Supabase Auth."""

from typing import Any, Callable

from tasklite.services.supabase_client import SupabaseClient
from tasklite.utils.errors import AuthenticationError
from tasklite.utils.logging import get_structured_logger, mask_user_id

logger = get_structured_logger(__name__)

SIGNED_OUT = "SIGNED_OUT"


async def ensure_session() -> str:
    """
    Return the current user's id.

    Reuses an existing session when there is one, otherwise signs in
    anonymously so the client can work without an account.
    """
    async with SupabaseClient() as client:
        try:
            session = await client.auth.get_session()
            if session and session.user:
                logger.info("Reusing existing session", user_id=mask_user_id(session.user.id))
                return session.user.id

            response = await client.auth.sign_in_anonymously()
        except Exception as e:
            raise AuthenticationError(f"Failed to establish session: {e}")

    if not response.user:
        raise AuthenticationError("Anonymous sign-in returned no user")

    logger.info("Signed in anonymously", user_id=mask_user_id(response.user.id))
    return response.user.id


async def sign_in_with_password(email: str, password: str) -> str:
    """Sign in with email and password; returns the user id."""
    async with SupabaseClient() as client:
        try:
            response = await client.auth.sign_in_with_password({"email": email, "password": password})
        except Exception as e:
            raise AuthenticationError(f"Sign-in failed: {e}")

    if not response.user:
        raise AuthenticationError("Sign-in returned no user")

    logger.info("Signed in with password", user_id=mask_user_id(response.user.id))
    return response.user.id


async def sign_out() -> None:
    async with SupabaseClient() as client:
        try:
            await client.auth.sign_out()
        except Exception as e:
            raise AuthenticationError(f"Sign-out failed: {e}")

    logger.info("Signed out")


async def watch_auth_state(callback: Callable[[str, Any], None]) -> Any:
    """
    Register for auth state changes.

    The callback receives the event name (e.g. ``SIGNED_OUT``) and the new
    session. Returns a subscription exposing ``unsubscribe()``.
    """
    async with SupabaseClient() as client:
        try:
            return client.auth.on_auth_state_change(callback)
        except Exception as e:
            raise AuthenticationError(f"Failed to watch auth state: {e}")
