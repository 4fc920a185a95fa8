"""Tests for the status line and best-effort notifier."""

import pytest
from unittest.mock import Mock

from tasklite.services.feedback import NotificationPermission, Notifier, StatusLine
from tasklite.utils.errors import SupabaseError


@pytest.mark.unit
def test_status_line_report_and_clear():
    status = StatusLine()

    status.report(SupabaseError("Insert failed"))
    assert status.error == "Insert failed"

    status.report(SupabaseError("Delete failed"))
    assert status.error == "Delete failed"

    status.clear()
    assert status.error is None


@pytest.mark.unit
def test_notify_only_when_granted():
    sink = Mock()

    Notifier(sink=sink).notify("Task added")
    Notifier(sink=sink, permission=NotificationPermission.DENIED).notify("Task added")
    sink.assert_not_called()

    Notifier(sink=sink, permission=NotificationPermission.GRANTED).notify("Task added")
    sink.assert_called_once_with("Task added")


@pytest.mark.unit
def test_notify_swallows_sink_failures():
    notifier = Notifier(sink=Mock(side_effect=OSError("unsupported")), permission=NotificationPermission.GRANTED)

    notifier.notify("Task added")


@pytest.mark.unit
def test_request_permission_updates_state():
    notifier = Notifier(requester=Mock(return_value="granted"))

    notifier.request_permission()

    assert notifier.permission == NotificationPermission.GRANTED


@pytest.mark.unit
def test_request_permission_failure_is_swallowed():
    requester = Mock(side_effect=RuntimeError("no notification support"))
    notifier = Notifier(requester=requester)

    notifier.request_permission()

    assert notifier.permission == NotificationPermission.DEFAULT


@pytest.mark.unit
def test_request_permission_asks_once():
    requester = Mock(return_value="denied")
    notifier = Notifier(requester=requester)

    notifier.request_permission()
    notifier.request_permission()

    requester.assert_called_once()
