from pathlib import Path

import pytest
import requests

from backup.types import RotationSummary
from notify.messages import format_backup_message, format_failure_message, format_stats_message
from notify.webhook import NotificationDeliveryFailure, WebhookNotifier
from stats.types import IndexationStats


class FakeResponse:
    def __init__(self, status_code: int) -> None:
        self.status_code = status_code


class FakeSession:
    def __init__(self, status_code: int = 204, exc: Exception | None = None) -> None:
        self.status_code = status_code
        self.exc = exc
        self.calls = []

    def post(self, url, **kwargs):
        self.calls.append((url, kwargs))
        if self.exc is not None:
            raise self.exc
        return FakeResponse(self.status_code)


def test_send_posts_content_payload():
    session = FakeSession()
    notifier = WebhookNotifier("https://discord.test/api/webhooks/1/abc", timeout=3, session=session)

    assert notifier.send("hello") is True

    url, kwargs = session.calls[0]
    assert url == "https://discord.test/api/webhooks/1/abc"
    assert kwargs["json"] == {"content": "hello"}
    assert kwargs["timeout"] == 3.0
    assert notifier.sent == ["hello"]


def test_send_is_skipped_without_url():
    session = FakeSession()
    notifier = WebhookNotifier("  ", session=session)

    assert notifier.enabled is False
    assert notifier.send("hello") is False
    assert session.calls == []
    assert notifier.describe() == "disabled"


def test_send_swallows_delivery_failures():
    notifier = WebhookNotifier("https://discord.test/hook", session=FakeSession(exc=requests.ConnectionError("down")))

    assert notifier.send("hello") is False
    assert notifier.sent == []


def test_deliver_raises_on_http_error():
    notifier = WebhookNotifier("https://discord.test/hook", session=FakeSession(status_code=500))

    with pytest.raises(NotificationDeliveryFailure):
        notifier.deliver("hello")


def test_describe_redacts_url():
    notifier = WebhookNotifier("https://discord.test/api/webhooks/1/secret", session=FakeSession())

    assert "secret" not in notifier.describe()


def test_stats_message_lists_counters():
    stats = IndexationStats(
        lines_processed=12345678,
        lines_written=12345000,
        start_time="2024-01-01 10:00:00",
        end_time="2024-01-01 10:05:00",
        doc_count=27000000,
    )

    message = format_stats_message(stats)

    assert "**12345678**" in message
    assert "**12345000**" in message
    assert "27000000" in message
    assert "2024-01-01 10:05:00" in message


def test_stats_message_marks_missing_values():
    message = format_stats_message(IndexationStats())

    assert "Lines processed: **n/a**" in message
    assert "Documents in index" not in message


def test_backup_and_failure_messages():
    summary = RotationSummary(kept=["esdata_b.tar", "esdata_a.tar"], removed=["esdata_old.tar"])

    backup_message = format_backup_message(summary, Path("/srv/backup"))
    failure_message = format_failure_message("process", RuntimeError("make failed"))

    assert "esdata_b.tar, esdata_a.tar" in backup_message
    assert "esdata_old.tar" in backup_message
    assert "/srv/backup" in backup_message
    assert "`process`" in failure_message
    assert "RuntimeError: make failed" in failure_message
