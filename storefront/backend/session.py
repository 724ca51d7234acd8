import time
import logging
from dataclasses import dataclass, field
from typing import Callable, Optional

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SessionHandle:
    """Authenticated Odoo user for one database"""
    uid: int
    db: str
    created_at: float = field(default_factory=time.monotonic)


class SessionProvider:
    """Interface: hands out a usable session handle"""

    def get(self) -> SessionHandle:
        raise NotImplementedError

    def invalidate(self) -> None:
        raise NotImplementedError


class CachedSessionProvider(SessionProvider):
    """
    Logs in once and reuses the handle.

    With ttl_seconds=None the handle lives for the whole process. Two threads
    racing on the first call may both log in; the last handle written wins,
    which is harmless because Odoo sessions over XML-RPC are stateless per
    credential set.
    """

    def __init__(self, login: Callable[[], SessionHandle], ttl_seconds: Optional[float] = None,
                 clock: Callable[[], float] = time.monotonic):
        self._login = login
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._handle: Optional[SessionHandle] = None
        self._expires_at: Optional[float] = None

    def get(self) -> SessionHandle:
        if self._handle is not None and not self._expired():
            return self._handle

        if self._handle is not None:
            logger.info("Odoo session expired, authenticating again")

        handle = self._login()
        self._handle = handle
        self._expires_at = self._clock() + self.ttl_seconds if self.ttl_seconds else None
        return handle

    def invalidate(self) -> None:
        self._handle = None
        self._expires_at = None

    def _expired(self) -> bool:
        return self._expires_at is not None and self._clock() >= self._expires_at
