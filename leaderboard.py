"""
Online leaderboard client.

POST <base>/api/score       -> {"ok": true, "record": {...}}
GET  <base>/api/leaderboard -> {"ok": true, "items": [...]}

Any network or protocol problem yields None.
"""

import logging
from typing import Any, Dict, List, Optional

import requests

logger = logging.getLogger(__name__)

DEFAULT_API_BASE = "https://rank-api.beijingfushengji.xyz"


class LeaderboardClient:
    def __init__(self, api_base: str = DEFAULT_API_BASE, timeout: float = 10.0):
        self.api_base = api_base.rstrip("/")
        self.timeout = timeout

    def submit_score(self, payload: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        """payload: playerName, totalWealth, cash, bank, debt, health, fame"""
        try:
            r = requests.post(f"{self.api_base}/api/score", json=payload, timeout=self.timeout)
            r.raise_for_status()
            data = r.json()
        except (requests.RequestException, ValueError) as e:
            logger.warning(f"Score submission failed: {e}")
            return None

        if not isinstance(data, dict) or not data.get("ok") or not data.get("record"):
            return None
        return data["record"]

    def fetch_leaderboard(self) -> Optional[List[Dict[str, Any]]]:
        try:
            r = requests.get(
                f"{self.api_base}/api/leaderboard",
                headers={"Cache-Control": "no-store"},
                timeout=self.timeout,
            )
            r.raise_for_status()
            data = r.json()
        except (requests.RequestException, ValueError) as e:
            logger.warning(f"Leaderboard fetch failed: {e}")
            return None

        if not isinstance(data, dict) or not data.get("ok") or not isinstance(data.get("items"), list):
            return None
        return data["items"]
