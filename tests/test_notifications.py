import pytest
import requests

from extensions import db
from trivia1v1.models import LogEntry, NotificationOutbox
from trivia1v1.models.enums import NotificationStatus
from trivia1v1.services import notification_service


class FakeResponse:
    def __init__(self, status_code=200):
        self.status_code = status_code

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} Server Error")


@pytest.fixture
def posted(monkeypatch):
    calls = []

    def fake_post(url, json=None, headers=None, timeout=None):
        calls.append({"url": url, "json": json, "headers": headers, "timeout": timeout})
        return FakeResponse(200)

    monkeypatch.setattr(notification_service.requests, "post", fake_post)
    return calls


@pytest.fixture
def failing_post(monkeypatch):
    def fake_post(url, json=None, headers=None, timeout=None):
        raise requests.ConnectionError("endpoint unreachable")

    monkeypatch.setattr(notification_service.requests, "post", fake_post)


def _queue_one():
    row = notification_service.queue_push("bob", "Hi", "It's your turn", related_id=1, related_type="trivia_match")
    db.session.commit()
    return row.id


def test_dispatch_posts_to_channel_endpoint(app, posted):
    notification_service.queue_push("bob", "Hi", "It's your turn", url="http://x/m/1")
    notification_service.queue_email("bob", "trivia_turn", "Turn", "Go", matchId=1)
    db.session.commit()

    summary = notification_service.dispatch_pending(now=100.0)

    assert summary == {"sent": 2, "retry": 0, "failed": 0, "skipped": 0}
    assert [c["url"] for c in posted] == [
        "http://push.test/send-push-notification",
        "http://mail.test/send-trivia-turn-email",
    ]
    assert posted[0]["headers"]["Authorization"] == "Bearer test-key"
    assert posted[0]["json"]["userId"] == "bob"
    assert posted[1]["json"]["matchId"] == 1
    statuses = {r.status for r in NotificationOutbox.query.all()}
    assert statuses == {NotificationStatus.SENT.value}


def test_failed_delivery_backs_off_exponentially(app, failing_post):
    row_id = _queue_one()

    summary = notification_service.dispatch_pending(now=1000.0)
    row = db.session.get(NotificationOutbox, row_id)
    assert summary["retry"] == 1
    assert row.status == NotificationStatus.PENDING.value
    assert row.attempts == 1
    assert row.next_attempt_at == 1030.0
    assert "unreachable" in row.last_error

    # not due yet
    assert notification_service.dispatch_pending(now=1010.0)["retry"] == 0

    notification_service.dispatch_pending(now=1030.0)
    row = db.session.get(NotificationOutbox, row_id)
    assert row.attempts == 2
    assert row.next_attempt_at == 1030.0 + 60.0


def test_dead_letter_after_max_attempts(app, failing_post):
    row_id = _queue_one()
    now = 0.0
    for _ in range(5):
        notification_service.dispatch_pending(now=now)
        now += 10_000.0

    row = db.session.get(NotificationOutbox, row_id)
    assert row.status == NotificationStatus.FAILED.value
    assert row.attempts == 5
    assert LogEntry.query.filter_by(source="notifications").count() == 1
    assert notification_service.dispatch_pending(now=now) == {"sent": 0, "retry": 0, "failed": 0, "skipped": 0}


def test_http_error_status_is_retried(app, monkeypatch):
    monkeypatch.setattr(notification_service.requests, "post", lambda *a, **kw: FakeResponse(503))
    _queue_one()
    assert notification_service.dispatch_pending(now=0.0)["retry"] == 1


def test_channel_without_endpoint_is_skipped(app, posted):
    app.config["EMAIL_NOTIFICATION_URL"] = ""
    notification_service.queue_email("bob", "trivia_turn", "Turn", "Go")
    db.session.commit()

    assert notification_service.dispatch_pending(now=0.0)["skipped"] == 1
    assert posted == []


def test_failures_do_not_block_turns(driver, failing_post):
    driver.spin()
    driver.answer_wrong()
    notification_service.dispatch_pending()
    assert driver.current() == "bob"
