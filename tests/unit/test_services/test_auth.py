"""Tests for session resolution."""

import pytest
from unittest.mock import AsyncMock, MagicMock, patch

from tasklite.services import auth
from tasklite.utils.errors import AuthenticationError


def patched_client(client):
    patcher = patch("tasklite.services.auth.SupabaseClient")
    mock_client_class = patcher.start()
    mock_client_class.return_value.__aenter__ = AsyncMock(return_value=client)
    mock_client_class.return_value.__aexit__ = AsyncMock(return_value=False)
    return patcher


@pytest.mark.unit
@pytest.mark.asyncio
async def test_ensure_session_reuses_existing():
    client = MagicMock()
    client.auth.get_session = AsyncMock(return_value=MagicMock(user=MagicMock(id="u1")))
    client.auth.sign_in_anonymously = AsyncMock()
    patcher = patched_client(client)
    try:
        assert await auth.ensure_session() == "u1"
    finally:
        patcher.stop()

    client.auth.sign_in_anonymously.assert_not_awaited()


@pytest.mark.unit
@pytest.mark.asyncio
async def test_ensure_session_signs_in_anonymously():
    client = MagicMock()
    client.auth.get_session = AsyncMock(return_value=None)
    client.auth.sign_in_anonymously = AsyncMock(return_value=MagicMock(user=MagicMock(id="anon-1")))
    patcher = patched_client(client)
    try:
        assert await auth.ensure_session() == "anon-1"
    finally:
        patcher.stop()


@pytest.mark.unit
@pytest.mark.asyncio
async def test_ensure_session_failure_wrapped():
    client = MagicMock()
    client.auth.get_session = AsyncMock(return_value=None)
    client.auth.sign_in_anonymously = AsyncMock(side_effect=RuntimeError("Anonymous sign-ins are disabled"))
    patcher = patched_client(client)
    try:
        with pytest.raises(AuthenticationError, match="Anonymous sign-ins are disabled"):
            await auth.ensure_session()
    finally:
        patcher.stop()


@pytest.mark.unit
@pytest.mark.asyncio
async def test_sign_in_with_password():
    client = MagicMock()
    client.auth.sign_in_with_password = AsyncMock(return_value=MagicMock(user=MagicMock(id="u2")))
    patcher = patched_client(client)
    try:
        assert await auth.sign_in_with_password("sam@example.com", "hunter22") == "u2"
    finally:
        patcher.stop()

    client.auth.sign_in_with_password.assert_awaited_once_with({"email": "sam@example.com", "password": "hunter22"})


@pytest.mark.unit
@pytest.mark.asyncio
async def test_sign_out_failure_wrapped():
    client = MagicMock()
    client.auth.sign_out = AsyncMock(side_effect=RuntimeError("network down"))
    patcher = patched_client(client)
    try:
        with pytest.raises(AuthenticationError):
            await auth.sign_out()
    finally:
        patcher.stop()
