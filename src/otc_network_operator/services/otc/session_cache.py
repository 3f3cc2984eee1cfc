"""Cache of authenticated provider sessions.

A session is reused for every managed resource that points at the same
provider config, as long as the config and its credentials are unchanged
and the session is not about to expire. A session replaced on credential
rotation or expiry, or dropped by ``invalidate``, is retired and closed once
a grace period has passed, so cycles still holding it can finish.
"""

from __future__ import annotations

import hashlib
import logging
import time
from dataclasses import dataclass
from typing import Callable

from ... import metrics
from ...settings import SESSION_REFRESH_MARGIN_SECONDS, SESSION_TTL_SECONDS
from ...utils.locks import ReaderWriterLock
from .auth import authenticate
from .client import OTCSession
from .models import ResolvedProviderConfig

logger = logging.getLogger(__name__)


def fingerprint(config: ResolvedProviderConfig) -> str:
    """SHA-256 over every input that influences authentication."""
    material = "|".join([
        config.domain_name,
        config.project_id,
        config.region,
        config.credentials.access_key,
        config.credentials.secret_key,
    ])
    return hashlib.sha256(material.encode("utf-8")).hexdigest()


@dataclass
class CachedSession:
    session: OTCSession
    expires_at: float
    fingerprint: str


@dataclass
class RetiredSession:
    session: OTCSession
    retired_at: float


class SessionCache:
    """Thread-safe map from provider config identity to an open session."""

    def __init__(
        self,
        authenticator: Callable[[ResolvedProviderConfig], OTCSession] = authenticate,
        clock: Callable[[], float] = time.time,
        ttl: float = SESSION_TTL_SECONDS,
        refresh_margin: float = SESSION_REFRESH_MARGIN_SECONDS,
        retire_grace: float = SESSION_REFRESH_MARGIN_SECONDS,
    ) -> None:
        self._authenticator = authenticator
        self._clock = clock
        self._ttl = ttl
        self._refresh_margin = refresh_margin
        self._retire_grace = retire_grace
        self._sessions: dict[str, CachedSession] = {}
        self._retired: list[RetiredSession] = []
        self._lock = ReaderWriterLock()

    def _usable(self, entry: CachedSession | None, digest: str) -> bool:
        return (
            entry is not None
            and entry.fingerprint == digest
            and entry.expires_at - self._clock() > self._refresh_margin
        )

    def _retire(self, entry: CachedSession | None) -> None:
        if entry is not None:
            self._retired.append(RetiredSession(entry.session, self._clock()))

    def _close_retired(self, force: bool = False) -> None:
        now = self._clock()
        kept = []
        for retired in self._retired:
            if force or now - retired.retired_at >= self._retire_grace:
                retired.session.close()
            else:
                kept.append(retired)
        self._retired = kept

    def get_session(self, identity: str, config: ResolvedProviderConfig) -> OTCSession:
        """Return a live session for ``identity``, authenticating if needed.

        Raises:
            AuthenticationError: The handshake failed; nothing is cached
        """
        digest = fingerprint(config)

        with self._lock.read_lock():
            entry = self._sessions.get(identity)
            if self._usable(entry, digest):
                metrics.session_cache_total.labels(result="hit").inc()
                return entry.session

        with self._lock.write_lock():
            # Another worker may have refreshed the entry while we waited.
            entry = self._sessions.get(identity)
            if self._usable(entry, digest):
                metrics.session_cache_total.labels(result="hit").inc()
                return entry.session

            self._close_retired()
            reason = "miss" if entry is None else "refresh"
            metrics.session_cache_total.labels(result=reason).inc()
            logger.info(f"Authenticating provider config {identity} ({reason})")

            session = self._authenticator(config)
            self._retire(entry)
            self._sessions[identity] = CachedSession(
                session=session,
                expires_at=self._clock() + self._ttl,
                fingerprint=digest,
            )
            return session

    def invalidate(self, identity: str) -> None:
        """Drop the entry for ``identity`` so the next lookup re-authenticates."""
        with self._lock.write_lock():
            self._retire(self._sessions.pop(identity, None))
            self._close_retired()

    def close(self) -> None:
        """Close every session, cached or retired."""
        with self._lock.write_lock():
            for entry in self._sessions.values():
                self._retire(entry)
            self._sessions.clear()
            self._close_retired(force=True)

    def __len__(self) -> int:
        with self._lock.read_lock():
            return len(self._sessions)
