# appstats/infrastructure/external/notifications.py
import logging
from datetime import datetime, timezone
from typing import Callable, Optional

import requests
from croniter import croniter
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from appstats.config import HTTP_TIMEOUT, NOTIFICATION_WEBHOOK_URL
from appstats.infrastructure.database import models

logger = logging.getLogger(__name__)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def is_due(last_send_at: Optional[datetime], cron: str, now: datetime) -> bool:
    """
    Powiadomienie wolno wysłać raz na "okno" harmonogramu:
    ostatni tick crona musi być późniejszy niż poprzednia wysyłka.
    """
    if last_send_at is None:
        return True
    if last_send_at.tzinfo is None:
        # SQLite zwraca daty bez strefy, zapisujemy zawsze UTC
        last_send_at = last_send_at.replace(tzinfo=timezone.utc)
    last_tick = croniter(cron, now).get_prev(datetime)
    return last_tick > last_send_at


class NotificationDispatcher:
    """
    Wysyła powiadomienia do właściciela aplikacji przez webhook.
    Deduplikacja po (event, user_id) w tabeli notifications.
    """

    def __init__(self, db: Session, webhook_url: Optional[str] = NOTIFICATION_WEBHOOK_URL,
                 timeout: float = HTTP_TIMEOUT, clock: Callable[[], datetime] = utc_now):
        self.db = db
        self.webhook_url = webhook_url
        self.timeout = timeout
        self.clock = clock

    def send_notification(self, event: str, payload: dict, user_id: str, cron: str, color: str) -> bool:
        now = self.clock()
        notif_id = f"{event}__{user_id}"
        record = self.db.get(models.Notification, notif_id)

        if record and not is_due(record.last_send_at, cron, now):
            logger.info(f"🔕 Notification {notif_id} already sent in this window, skipping.")
            return False

        if not self._deliver(event, payload, user_id, color):
            return False

        try:
            if record is None:
                record = models.Notification(id=notif_id, event=event, user_id=user_id, total_send=0)
                self.db.add(record)
            record.last_send_at = now
            record.total_send = (record.total_send or 0) + 1
            self.db.commit()
        except SQLAlchemyError as e:
            # powiadomienie już poszło, brak zapisu oznacza tylko ewentualny duplikat
            self.db.rollback()
            logger.error(f"❌ Failed to store notification state {notif_id}: {e}")

        logger.info(f"📨 Notification {event} sent to {user_id}")
        return True

    def _deliver(self, event: str, payload: dict, user_id: str, color: str) -> bool:
        if not self.webhook_url:
            logger.warning(f"⚠️ NOTIFICATION_WEBHOOK_URL not set, {event} for {user_id} not sent.")
            return False
        try:
            response = requests.post(
                self.webhook_url,
                json={"event": event, "user_id": user_id, "color": color, "payload": payload},
                timeout=self.timeout,
            )
            response.raise_for_status()
            return True
        except requests.exceptions.RequestException as e:
            logger.error(f"❌ Notification webhook error ({event}): {e}")
            return False
