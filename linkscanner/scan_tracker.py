# linkscanner/scan_tracker.py

"""
Last-call-wins bookkeeping for overlapping scans.

Each client gets a monotonically increasing token per scan. A result is
only applied to the client's display state if its token is still the
newest one issued; anything older is discarded.
"""

from __future__ import annotations

import threading
from collections import OrderedDict
from typing import Any, Optional

MAX_TRACKED_CLIENTS = 10_000


class ScanTracker:
    def __init__(self, max_clients: int = MAX_TRACKED_CLIENTS):
        self._lock = threading.Lock()
        self._max_clients = max_clients
        self._tokens: "OrderedDict[str, int]" = OrderedDict()
        self._results: dict[str, Any] = {}

    def begin(self, client_id: str) -> int:
        with self._lock:
            token = self._tokens.pop(client_id, 0) + 1
            self._tokens[client_id] = token
            while len(self._tokens) > self._max_clients:
                evicted, _ = self._tokens.popitem(last=False)
                self._results.pop(evicted, None)
            return token

    def apply(self, client_id: str, token: int, result: Any) -> bool:
        with self._lock:
            if self._tokens.get(client_id) != token:
                return False
            self._results[client_id] = result
            return True

    def latest(self, client_id: str) -> Optional[Any]:
        with self._lock:
            return self._results.get(client_id)

    def reset(self) -> None:
        with self._lock:
            self._tokens.clear()
            self._results.clear()
