"""End-to-end: optimistic state superseded by change-feed reloads."""

import asyncio
import pytest
from unittest.mock import AsyncMock, patch

from tasklite.services.task_board import TaskBoard
from tests.utils.assertions import task_ids
from tests.utils.factories import CURRENT_USER_ID, OTHER_USER_ID, create_task_data


@pytest.fixture
def board_session():
    with patch("tasklite.services.auth.ensure_session", new_callable=AsyncMock, return_value=CURRENT_USER_ID), \
            patch("tasklite.services.auth.watch_auth_state", new_callable=AsyncMock):
        yield


@pytest.mark.integration
@pytest.mark.asyncio
@pytest.mark.parametrize("event_type", ["INSERT", "UPDATE", "DELETE"])
async def test_feed_event_reloads_to_gateway_state(fake_gateway, board_session, event_type):
    """Test one push event yields one reload and the cache equals server truth."""
    board = TaskBoard()
    await board.start()
    reads_before = fake_gateway.count("fetch_tasks")

    # Another client writes directly to the table
    fake_gateway.tasks.append(create_task_data(minutes=10, user_id=OTHER_USER_ID))
    fake_gateway.push("tasks", event_type)
    await board.feed.queue.join()

    assert fake_gateway.count("fetch_tasks") == reads_before + 1
    assert task_ids(board.store.tasks) == [row["id"] for row in await fake_gateway.fetch_tasks()]
    await board.stop()


@pytest.mark.integration
@pytest.mark.asyncio
async def test_temp_task_replaced_by_server_record(fake_gateway, board_session):
    """Test the feed-triggered reload swaps the temp id for the server id."""
    board = TaskBoard()
    await board.start()
    board.draft.title = "Ship release"

    temp = await board.submit()
    assert task_ids(board.store.tasks) == [temp.id]

    fake_gateway.push("tasks", "INSERT")
    await board.feed.queue.join()

    assert temp.id not in task_ids(board.store.tasks)
    assert [task.title for task in board.store.tasks] == ["Ship release"]
    assert board.store.tasks[0].id == fake_gateway.tasks[0]["id"]
    await board.stop()


@pytest.mark.integration
@pytest.mark.asyncio
async def test_reload_overwrites_slow_optimistic_update(fake_gateway, board_session):
    """Test a reload that lands first visibly supersedes in-flight optimistic state."""
    fake_gateway.tasks.append(create_task_data())
    board = TaskBoard()
    await board.start()
    fake_gateway.gate = asyncio.Event()

    pending = asyncio.create_task(board.toggle_done(board.store.tasks[0]))
    await asyncio.sleep(0)
    assert board.store.tasks[0].done is True

    fake_gateway.push("tasks", "UPDATE")
    await board.feed.queue.join()
    assert board.store.tasks[0].done is False

    fake_gateway.gate.set()
    assert await pending is True
    assert fake_gateway.tasks[0]["done"] is True
    await board.stop()
