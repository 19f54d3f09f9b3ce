from datetime import datetime, timedelta, timezone

import pytest
import requests

from appstats.infrastructure.database import models
from appstats.infrastructure.external.logsnag import LogSnag
from appstats.infrastructure.external.notifications import NotificationDispatcher, is_due

WEEKLY = "0 0 * * 1"
# środa
WEDNESDAY = datetime(2026, 10, 14, 12, 0, tzinfo=timezone.utc)


class Clock:
    def __init__(self, now):
        self.now = now

    def __call__(self):
        return self.now


@pytest.fixture
def post(mocker):
    response = mocker.Mock()
    response.raise_for_status.return_value = None
    return mocker.patch("requests.post", return_value=response)


def send(dispatcher, user_id="owner-1"):
    return dispatcher.send_notification("user:update_fail", {"current_app_id": "com.example.app"}, user_id, WEEKLY, "orange")


class TestIsDue:
    def test_never_sent(self):
        assert is_due(None, WEEKLY, WEDNESDAY)

    def test_sent_after_last_tick(self):
        assert not is_due(WEDNESDAY - timedelta(days=1), WEEKLY, WEDNESDAY)

    def test_sent_before_last_tick(self):
        assert is_due(WEDNESDAY - timedelta(days=3), WEEKLY, WEDNESDAY)

    def test_naive_datetime_is_treated_as_utc(self):
        assert not is_due(datetime(2026, 10, 13, 8, 0), WEEKLY, WEDNESDAY)


class TestNotificationDispatcher:
    def test_first_notification_is_delivered(self, db, post):
        dispatcher = NotificationDispatcher(db, webhook_url="https://hooks.test/notify", clock=Clock(WEDNESDAY))

        assert send(dispatcher) is True

        post.assert_called_once()
        assert post.call_args.kwargs["json"]["user_id"] == "owner-1"
        assert post.call_args.kwargs["json"]["color"] == "orange"
        record = db.get(models.Notification, "user:update_fail__owner-1")
        assert record.total_send == 1

    def test_second_notification_in_same_week_is_suppressed(self, db, post):
        clock = Clock(WEDNESDAY)
        dispatcher = NotificationDispatcher(db, webhook_url="https://hooks.test/notify", clock=clock)
        send(dispatcher)

        clock.now = WEDNESDAY + timedelta(days=2)
        assert send(dispatcher) is False
        assert post.call_count == 1

    def test_notification_allowed_again_next_week(self, db, post):
        clock = Clock(WEDNESDAY)
        dispatcher = NotificationDispatcher(db, webhook_url="https://hooks.test/notify", clock=clock)
        send(dispatcher)

        clock.now = WEDNESDAY + timedelta(days=7)
        assert send(dispatcher) is True
        assert db.get(models.Notification, "user:update_fail__owner-1").total_send == 2

    def test_dedup_is_per_user(self, db, post):
        dispatcher = NotificationDispatcher(db, webhook_url="https://hooks.test/notify", clock=Clock(WEDNESDAY))

        assert send(dispatcher, "owner-1") is True
        assert send(dispatcher, "owner-2") is True

    def test_missing_webhook_is_not_sent(self, db, post):
        dispatcher = NotificationDispatcher(db, webhook_url=None, clock=Clock(WEDNESDAY))

        assert send(dispatcher) is False
        post.assert_not_called()
        assert db.get(models.Notification, "user:update_fail__owner-1") is None

    def test_webhook_error_is_not_raised(self, db, mocker):
        mocker.patch("requests.post", side_effect=requests.exceptions.ConnectionError("down"))
        dispatcher = NotificationDispatcher(db, webhook_url="https://hooks.test/notify", clock=Clock(WEDNESDAY))

        assert send(dispatcher) is False
        assert db.get(models.Notification, "user:update_fail__owner-1") is None


class TestLogSnag:
    def test_track_posts_event(self, post):
        assert LogSnag(token="secret", project="appstats").track("updates", "update fail", "⚠️", "owner-1", notify=True)

        body = post.call_args.kwargs["json"]
        assert body["project"] == "appstats"
        assert body["channel"] == "updates"
        assert body["notify"] is True
        assert post.call_args.kwargs["headers"] == {"Authorization": "Bearer secret"}

    def test_track_without_token_is_skipped(self, post):
        assert LogSnag(token=None).track("updates", "update fail", "⚠️", "owner-1") is False
        post.assert_not_called()

    def test_track_errors_are_swallowed(self, mocker):
        mocker.patch("requests.post", side_effect=requests.exceptions.Timeout("slow"))

        assert LogSnag(token="secret").track("updates", "update fail", "⚠️", "owner-1") is False
