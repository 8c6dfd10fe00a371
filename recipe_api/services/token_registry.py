"""In-process bearer token registry.

Tokens are opaque random strings; a token is valid exactly while it is a
member of the registry and its expiry has not been reached. Nothing is
signed, so validation is a dictionary lookup plus one timestamp comparison.
State lives only in this process and is lost on restart.
"""
from datetime import datetime, timedelta
from typing import Callable, Dict, Optional

from recipe_api.schemas.auth import Identity, TokenInfo
from recipe_api.utils.auth import generate_token, utcnow
from recipe_api.utils.logger import logger, token_prefix
from recipe_api.utils.rwlock import ReadWriteLock


class TokenRegistry:
    """Issues, validates, revokes and purges bearer tokens.

    All operations share one :class:`ReadWriteLock`: ``validate``,
    ``get_info`` and ``active_count`` take the read side, ``issue``,
    ``revoke`` and ``purge_expired`` take the write side. The background
    cleanup job goes through ``purge_expired`` like any other caller.
    """

    def __init__(
        self,
        ttl: timedelta = timedelta(hours=24),
        clock: Callable[[], datetime] = utcnow,
        token_factory: Callable[[], str] = generate_token,
    ):
        if ttl <= timedelta(0):
            raise ValueError("token TTL must be positive")
        self.ttl = ttl
        self._clock = clock
        self._token_factory = token_factory
        self._tokens: Dict[str, TokenInfo] = {}
        self._lock = ReadWriteLock()

    def issue(self, identity: Identity) -> str:
        """Create a token bound to ``identity`` and return it."""
        token = self._token_factory()
        now = self._clock()
        info = TokenInfo(identity=identity, created_at=now, expires_at=now + self.ttl)

        with self._lock.write_locked():
            self._tokens[token] = info

        logger.info(
            f"Issued token for {identity.username}",
            extra={"username": identity.username, "action": "issue_token"},
        )
        return token

    def get_info(self, token: str) -> Optional[TokenInfo]:
        """Return the entry for a live token without side effects."""
        if not token:
            return None
        with self._lock.read_locked():
            info = self._tokens.get(token)
        if info is None or self._is_expired(info):
            return None
        return info

    def validate(self, token: str) -> Optional[Identity]:
        """Return the identity bound to ``token``, or None if it is unknown or expired.

        An expired entry is removed on the way out. The removal cannot change
        the answer: the expiry decision is made first and is final.
        """
        if not token:
            return None

        with self._lock.read_locked():
            info = self._tokens.get(token)

        if info is None:
            return None

        if self._is_expired(info):
            self._discard_expired(token)
            return None

        return info.identity

    def revoke(self, token: str) -> bool:
        """Remove ``token``. Returns False if it was not registered."""
        with self._lock.write_locked():
            info = self._tokens.pop(token, None)

        if info is None:
            return False

        logger.info(
            f"Revoked token for {info.identity.username}",
            extra={"username": info.identity.username, "action": "revoke_token"},
        )
        return True

    def purge_expired(self) -> int:
        """Drop every expired entry and return how many were removed."""
        now = self._clock()
        with self._lock.write_locked():
            expired = [token for token, info in self._tokens.items() if now >= info.expires_at]
            for token in expired:
                del self._tokens[token]
        return len(expired)

    def active_count(self) -> int:
        with self._lock.read_locked():
            return len(self._tokens)

    def clear(self) -> None:
        """Drop every token. Used at shutdown."""
        with self._lock.write_locked():
            self._tokens.clear()

    # ------------------------------------------------------------------

    def _is_expired(self, info: TokenInfo) -> bool:
        return self._clock() >= info.expires_at

    def _discard_expired(self, token: str) -> None:
        try:
            with self._lock.write_locked():
                info = self._tokens.get(token)
                # Tokens are never re-registered, so an entry still present is the expired one
                if info is not None and self._is_expired(info):
                    del self._tokens[token]
        except Exception:
            logger.warning(
                f"Failed to remove expired token {token_prefix(token)}",
                extra={"action": "expire_token"},
                exc_info=True,
            )
