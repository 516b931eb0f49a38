"""Tests for the Postgres store lifecycle (no server needed)."""

import pytest

from app.stores.postgres import close_db, get_session


@pytest.mark.asyncio
async def test_get_session_before_init_fails():
    await close_db()
    with pytest.raises(RuntimeError, match="init_db"):
        async with get_session():
            pass


@pytest.mark.asyncio
async def test_close_db_is_idempotent():
    await close_db()
    await close_db()
