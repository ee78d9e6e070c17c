"""リマインダー巡回ワーカー（run_reminder_sweep）のユニットテスト"""

from datetime import timedelta
from unittest.mock import MagicMock, patch

import pytest
from conftest import FAMILY_ID, NOW, UID_BOB, make_item
from familyfin.entrypoints.worker import _sweep_window, run_reminder_sweep
from familyfin.services.shopping_alerts import AlertResult, ShoppingAlertDispatcher

_WINDOW = timedelta(minutes=5)


@pytest.fixture
def mock_dispatcher():
    dispatcher = MagicMock(spec=ShoppingAlertDispatcher)
    dispatcher.notify_reminder.return_value = AlertResult(sent=1)
    return dispatcher


def test_recent_reminder_fired_and_cleared(mock_family_repo, mock_shopping_repo, mock_dispatcher):
    # Arrange
    item = make_item("i1", reminder_at=NOW - timedelta(minutes=2), reminded_by=UID_BOB)
    mock_shopping_repo.list_with_reminder_before.return_value = [item]

    # Act
    summary = run_reminder_sweep(
        mock_family_repo, mock_shopping_repo, mock_dispatcher, now=NOW, window=_WINDOW
    )

    # Assert
    assert summary == {"fired": 1, "expired": 0, "errors": 0}
    mock_shopping_repo.list_with_reminder_before.assert_called_once_with(FAMILY_ID, NOW)
    mock_dispatcher.notify_reminder.assert_called_once_with(FAMILY_ID, item)
    mock_shopping_repo.clear_reminder.assert_called_once_with(FAMILY_ID, "i1")


def test_stale_reminder_cleared_without_alert(
    mock_family_repo, mock_shopping_repo, mock_dispatcher
):
    mock_shopping_repo.list_with_reminder_before.return_value = [
        make_item("i1", reminder_at=NOW - timedelta(hours=3))
    ]

    summary = run_reminder_sweep(
        mock_family_repo, mock_shopping_repo, mock_dispatcher, now=NOW, window=_WINDOW
    )

    assert summary == {"fired": 0, "expired": 1, "errors": 0}
    mock_dispatcher.notify_reminder.assert_not_called()
    mock_shopping_repo.clear_reminder.assert_called_once_with(FAMILY_ID, "i1")


def test_family_failure_does_not_stop_sweep(
    mock_family_repo, mock_shopping_repo, mock_dispatcher
):
    mock_family_repo.list_family_ids.return_value = ["broken", FAMILY_ID]
    item = make_item("i1", reminder_at=NOW - timedelta(minutes=1))
    mock_shopping_repo.list_with_reminder_before.side_effect = [
        RuntimeError("index missing"),
        [item],
    ]

    summary = run_reminder_sweep(
        mock_family_repo, mock_shopping_repo, mock_dispatcher, now=NOW, window=_WINDOW
    )

    assert summary == {"fired": 1, "expired": 0, "errors": 1}


def test_alert_failure_clears_item_and_continues(
    mock_family_repo, mock_shopping_repo, mock_dispatcher
):
    # Arrange: 1つ目のファミリーで通知が例外になる
    mock_family_repo.list_family_ids.return_value = ["fam-a", "fam-b"]
    mock_shopping_repo.list_with_reminder_before.side_effect = [
        [make_item("a1", reminder_at=NOW - timedelta(minutes=1))],
        [make_item("b1", reminder_at=NOW - timedelta(minutes=1))],
    ]
    mock_dispatcher.notify_reminder.side_effect = [
        RuntimeError("list_members failed"),
        AlertResult(sent=1),
    ]

    # Act
    summary = run_reminder_sweep(
        mock_family_repo, mock_shopping_repo, mock_dispatcher, now=NOW, window=_WINDOW
    )

    # Assert
    assert summary == {"fired": 1, "expired": 0, "errors": 1}
    cleared = [c.args for c in mock_shopping_repo.clear_reminder.call_args_list]
    assert cleared == [("fam-a", "a1"), ("fam-b", "b1")]


def test_clear_failure_moves_to_next_family(
    mock_family_repo, mock_shopping_repo, mock_dispatcher
):
    mock_family_repo.list_family_ids.return_value = ["fam-a", "fam-b"]
    mock_shopping_repo.list_with_reminder_before.side_effect = [
        [make_item("a1", reminder_at=NOW - timedelta(minutes=1))],
        [make_item("b1", reminder_at=NOW - timedelta(minutes=1))],
    ]
    mock_shopping_repo.clear_reminder.side_effect = [RuntimeError("DEADLINE_EXCEEDED"), None]

    summary = run_reminder_sweep(
        mock_family_repo, mock_shopping_repo, mock_dispatcher, now=NOW, window=_WINDOW
    )

    assert summary == {"fired": 2, "expired": 0, "errors": 1}
    assert mock_dispatcher.notify_reminder.call_count == 2


def test_delivery_errors_counted(mock_family_repo, mock_shopping_repo, mock_dispatcher):
    mock_dispatcher.notify_reminder.return_value = AlertResult(errors=2)
    mock_shopping_repo.list_with_reminder_before.return_value = [
        make_item("i1", reminder_at=NOW)
    ]

    summary = run_reminder_sweep(
        mock_family_repo, mock_shopping_repo, mock_dispatcher, now=NOW, window=_WINDOW
    )

    assert summary["errors"] == 2


@pytest.mark.parametrize(
    "value,expected",
    [("15", timedelta(minutes=15)), ("soon", timedelta(minutes=5))],
)
def test_sweep_window_from_env(value, expected):
    with patch.dict("os.environ", {"REMINDER_SWEEP_MINUTES": value}):
        assert _sweep_window() == expected
