"""Client for the optional community statistics service.

Only aggregate numbers are sent: file count, raw size and archive size, tagged
with a random client id. File names, paths and contents never leave the machine.
Every call is best-effort; network and server failures are logged and reported
through the return value, never raised.
"""

import json
import logging
import uuid
from typing import Any, Dict, List, Optional

import requests

from zipdrop.storage import KeyValueStore

logger = logging.getLogger(__name__)

CLIENT_ID_KEY = "zipdrop:clientId"
STATS_PERIODS = ("daily", "weekly", "monthly")
DEFAULT_TIMEOUT = 10


class RemoteStatsClient:
    """Send completion events to, and read aggregates from, a statistics service.

    An empty base URL disables the client: every call then returns immediately
    without touching the network.

    Attributes:
        base_url (str): Service root without trailing slash, e.g.
            ``https://stats.example.com``.
        store (KeyValueStore): Where the anonymous client id is kept.
        timeout (float): Per-request timeout in seconds.
    """

    def __init__(self, base_url: Optional[str], store: KeyValueStore, timeout: float = DEFAULT_TIMEOUT) -> None:
        self.base_url = (base_url or "").rstrip("/")
        self.store = store
        self.timeout = timeout

    @property
    def enabled(self) -> bool:
        return bool(self.base_url)

    def get_client_id(self) -> str:
        """Return the anonymous client id, generating and persisting it on first use."""
        client_id = self.store.get(CLIENT_ID_KEY)
        if not isinstance(client_id, str) or not client_id:
            client_id = str(uuid.uuid4())
            self.store.set(CLIENT_ID_KEY, client_id)
        return client_id

    def record_event(self, files_count: int, raw_size_bytes: int, zipped_size_bytes: int) -> bool:
        """Report one completed archive.

        Returns:
            True if the service accepted the event, False if the client is disabled
            or the request failed.
        """
        if not self.enabled:
            return False

        payload = {
            "filesCount": files_count,
            "rawSizeBytes": raw_size_bytes,
            "zippedSizeBytes": zipped_size_bytes,
            "clientId": self.get_client_id(),
        }
        url = f"{self.base_url}/api/events"
        try:
            logger.debug("Posting completion event to %s", url)
            response = requests.post(url, json=payload, timeout=self.timeout)
            response.raise_for_status()
        except requests.exceptions.RequestException as e:
            logger.warning("Failed to record event at %s: %s", url, e)
            return False
        return True

    def _get_json(self, path: str, params: Optional[Dict[str, Any]] = None) -> Optional[Any]:
        url = f"{self.base_url}{path}"
        try:
            logger.debug("Fetching %s", url)
            response = requests.get(url, params=params, timeout=self.timeout)
            response.raise_for_status()
            return response.json()
        except requests.exceptions.RequestException as e:
            logger.warning("Failed to fetch %s: %s", url, e)
            return None
        except json.JSONDecodeError as e:
            logger.warning("Invalid JSON from %s: %s", url, e)
            return None

    def fetch_stats(self) -> Optional[Dict[str, Any]]:
        """Fetch all-time totals, or None if disabled or unavailable."""
        if not self.enabled:
            return None
        return self._get_json("/api/stats")

    def fetch_today_stats(self) -> Optional[Dict[str, Any]]:
        """Fetch today's totals, or None if disabled or unavailable."""
        if not self.enabled:
            return None
        return self._get_json("/api/stats/today")

    def fetch_period_stats(self, period: str, limit: int = 30) -> Optional[List[Dict[str, Any]]]:
        """Fetch per-period totals, newest first.

        Args:
            period: One of ``daily``, ``weekly`` or ``monthly``.
            limit: Maximum number of periods.

        Returns:
            The period rows, or None if disabled or unavailable.

        Raises:
            ValueError: If ``period`` is not a known period.
        """
        if period not in STATS_PERIODS:
            raise ValueError(f"Unknown statistics period: {period!r} (expected one of {', '.join(STATS_PERIODS)})")
        if not self.enabled:
            return None

        data = self._get_json(f"/api/stats/{period}", params={"limit": limit})
        if data is None:
            return None
        if isinstance(data, dict):
            return list(data.get("data") or [])
        return list(data)
