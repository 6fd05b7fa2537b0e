"""
Best-effort usage analytics via the GA4 Measurement Protocol.
Without a measurement id and API secret every call is a no-op.

Events are sent from daemon threads so a slow or unreachable collector
never stalls a game action.
"""

import logging
import threading
import uuid
from typing import Any, Dict, List, Optional

import requests

logger = logging.getLogger(__name__)

GA_COLLECT_URL = "https://www.google-analytics.com/mp/collect"


class Analytics:
    def __init__(self, measurement_id: Optional[str] = None, api_secret: Optional[str] = None,
                 client_id: Optional[str] = None, timeout: float = 5.0):
        self.measurement_id = measurement_id
        self.api_secret = api_secret
        self.client_id = client_id or str(uuid.uuid4())
        self.timeout = timeout
        self._pending: List[threading.Thread] = []

    @property
    def enabled(self) -> bool:
        return bool(self.measurement_id and self.api_secret)

    def track_event(self, name: str, params: Optional[Dict[str, Any]] = None) -> bool:
        """Queue one event for a background send; returns False when disabled"""
        if not self.enabled:
            return False

        body = {
            "client_id": self.client_id,
            "events": [{"name": name, "params": params or {}}],
        }
        self._pending = [t for t in self._pending if t.is_alive()]
        sender = threading.Thread(target=self._send, args=(name, body), daemon=True, name="Analytics")
        self._pending.append(sender)
        sender.start()
        return True

    def _send(self, name: str, body: Dict[str, Any]) -> bool:
        try:
            r = requests.post(
                GA_COLLECT_URL,
                params={"measurement_id": self.measurement_id, "api_secret": self.api_secret},
                json=body,
                timeout=self.timeout,
            )
            r.raise_for_status()
        except requests.RequestException as e:
            logger.warning(f"Analytics event {name} not sent: {e}")
            return False
        return True

    def flush(self, timeout: Optional[float] = None) -> None:
        """Wait for in-flight sends, e.g. before the process exits"""
        for sender in list(self._pending):
            sender.join(timeout)
        self._pending = [t for t in self._pending if t.is_alive()]
