"""
Token lifecycle manager: login, refresh, authorize and logout.

The signature establishes that a token is authentic; the session store
decides whether it is still current. Two strategies are available and picked
once at construction time:

- SessionStoreStrategy: the latest access/refresh token of each user is kept
  in the session store. Anything else, including a correctly signed and
  unexpired token, is rejected. Refresh rotates both tokens, so a refresh
  token works once.
- StatelessStrategy: tokens are trusted on signature and expiry alone.
  Nothing is stored and nothing can be revoked before it expires.

Login and refresh write the two session slots independently. If one write
fails the caller gets StorageFailure and nothing is rolled back. Concurrent
refreshes for one user race; the last write wins.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Optional

from models.session_store import SessionStore, access_key, refresh_key
from services.errors import (
    BadCredentials,
    MissingToken,
    NotFound,
    Unauthorized,
)
from utils.security import ACCESS, REFRESH, TokenCodec

logger = logging.getLogger(__name__)

BEARER_SCHEME = "Bearer"


@dataclass(frozen=True)
class TokenPair:
    access_token: str
    refresh_token: str
    user_id: str


class TokenStrategy:
    """How issued tokens are remembered and checked for currency."""

    name = "base"

    def remember(self, user_id: str, pair: TokenPair, access_ttl: int, refresh_ttl: int) -> None:
        raise NotImplementedError

    def check_access(self, user_id: str, token: str) -> None:
        raise NotImplementedError

    def check_refresh(self, user_id: str, token: str) -> None:
        raise NotImplementedError

    def forget(self, user_id: str) -> None:
        raise NotImplementedError


class SessionStoreStrategy(TokenStrategy):
    name = "session"

    def __init__(self, store: SessionStore):
        self.store = store

    def remember(self, user_id, pair, access_ttl, refresh_ttl):
        self.store.set(access_key(user_id), pair.access_token, access_ttl)
        self.store.set(refresh_key(user_id), pair.refresh_token, refresh_ttl)

    def _check(self, key: str, token: str) -> None:
        current = self.store.get(key)
        if current is None or current != token:
            logger.warning("rejected token not current for %s", key)
            raise Unauthorized()

    def check_access(self, user_id, token):
        self._check(access_key(user_id), token)

    def check_refresh(self, user_id, token):
        self._check(refresh_key(user_id), token)

    def forget(self, user_id):
        self.store.delete(access_key(user_id), refresh_key(user_id))


class StatelessStrategy(TokenStrategy):
    name = "stateless"

    def remember(self, user_id, pair, access_ttl, refresh_ttl):
        pass

    def check_access(self, user_id, token):
        pass

    def check_refresh(self, user_id, token):
        pass

    def forget(self, user_id):
        pass


def parse_authorization(header: Optional[str]) -> str:
    """Accept `Bearer <token>` or the raw token string."""
    token = (header or "").strip()
    scheme, _, rest = token.partition(" ")
    if scheme == BEARER_SCHEME:
        token = rest.strip()
    if not token:
        raise MissingToken()
    return token


class AuthService:
    """Orchestrates the token codec, the token strategy and the user store."""

    def __init__(
        self,
        codec: TokenCodec,
        strategy: TokenStrategy,
        find_user: Callable[[str], object],
        verify_password: Callable[[str, str], bool],
        access_ttl: int = 900,
        refresh_ttl: int = 2592000,
    ):
        self.codec = codec
        self.strategy = strategy
        self.find_user = find_user
        self.verify_password = verify_password
        self.access_ttl = int(access_ttl)
        self.refresh_ttl = int(refresh_ttl)

    def _issue_pair(self, user_id: str) -> TokenPair:
        pair = TokenPair(
            access_token=self.codec.issue(user_id, self.access_ttl, ACCESS),
            refresh_token=self.codec.issue(user_id, self.refresh_ttl, REFRESH),
            user_id=user_id,
        )
        self.strategy.remember(user_id, pair, self.access_ttl, self.refresh_ttl)
        return pair

    def login(self, username: str, password: str) -> TokenPair:
        user = self.find_user(username)
        if user is None:
            logger.info("login failed: unknown username")
            raise NotFound()
        if not self.verify_password(password, user.password_hash):
            logger.info("login failed: bad password for user %s", user.id)
            raise BadCredentials()
        pair = self._issue_pair(user.id)
        logger.info("user %s logged in", user.id)
        return pair

    def refresh(self, refresh_token: Optional[str]) -> TokenPair:
        if not refresh_token:
            raise MissingToken("Refresh token not provided")
        claims = self.codec.verify(refresh_token, expected_type=REFRESH)
        user_id = claims["sub"]
        self.strategy.check_refresh(user_id, refresh_token)
        pair = self._issue_pair(user_id)
        logger.info("rotated tokens for user %s", user_id)
        return pair

    def authorize(self, authorization: Optional[str]) -> str:
        """
        Validate the Authorization header value and return the user id.

        The session store is consulted before the signature, so a revoked
        token is rejected from store state alone.
        """
        token = parse_authorization(authorization)
        user_id = self.codec.decode_unverified(token)
        self.strategy.check_access(user_id, token)
        claims = self.codec.verify(token, expected_type=ACCESS)
        return claims["sub"]

    def logout(self, user_id: str) -> None:
        self.strategy.forget(user_id)
        logger.info("cleared sessions for user %s", user_id)


def build_strategy(name: str, store: SessionStore | None) -> TokenStrategy:
    name = (name or "session").lower()
    if name == "stateless":
        return StatelessStrategy()
    if name == "session":
        if store is None:
            raise ValueError("the session strategy needs a session store")
        return SessionStoreStrategy(store)
    raise ValueError(f"Unknown TOKEN_STRATEGY: {name}")
