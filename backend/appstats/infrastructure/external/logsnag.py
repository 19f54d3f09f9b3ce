# appstats/infrastructure/external/logsnag.py
import logging
from typing import Optional

import requests

from appstats.config import HTTP_TIMEOUT, LOGSNAG_PROJECT, LOGSNAG_TOKEN

logger = logging.getLogger(__name__)

LOGSNAG_URL = "https://api.logsnag.com/v1/log"


class LogSnag:
    """Zdarzenia analityczne. Fire-and-forget: błędy tylko logujemy."""

    def __init__(self, token: Optional[str] = LOGSNAG_TOKEN, project: str = LOGSNAG_PROJECT,
                 timeout: float = HTTP_TIMEOUT):
        self.token = token
        self.project = project
        self.timeout = timeout

    def track(self, channel: str, event: str, icon: str, user_id: str, notify: bool = False) -> bool:
        if not self.token:
            logger.debug(f"LogSnag disabled, skipping '{event}'")
            return False

        try:
            response = requests.post(
                LOGSNAG_URL,
                json={
                    "project": self.project,
                    "channel": channel,
                    "event": event,
                    "icon": icon,
                    "user_id": user_id,
                    "notify": notify,
                },
                headers={"Authorization": f"Bearer {self.token}"},
                timeout=self.timeout,
            )
            response.raise_for_status()
            return True
        except requests.exceptions.RequestException as e:
            logger.warning(f"⚠️ LogSnag track failed ({event}): {e}")
            return False
