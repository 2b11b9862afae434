"""Thread-safe FIFO of roles awaiting handling."""

from __future__ import annotations

import logging
import threading
from collections import deque
from typing import Any

log = logging.getLogger(__name__)


class RoleList:
    """A locked queue of roles; ``erase`` uninitialises and drops them all."""

    def __init__(self) -> None:
        self._roles: deque[Any] = deque()
        self._lock = threading.Lock()

    def push(self, role: Any) -> None:
        """Append a role; ``None`` is ignored."""
        if role is None:
            return
        with self._lock:
            self._roles.append(role)

    def pop(self) -> Any | None:
        """Remove and return the oldest role, or ``None`` when empty."""
        with self._lock:
            return self._roles.popleft() if self._roles else None

    def erase(self) -> None:
        """Uninitialise every role and empty the list."""
        with self._lock:
            log.debug("RoleList.erase, count=%d", len(self._roles))
            for role in self._roles:
                role.uninit()
            self._roles.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._roles)