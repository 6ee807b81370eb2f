# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Client-side sessions: a small key/value map plus a flash queue in one cookie.

The JSON payload is encrypted with the block key (JWE, dir + A256GCM) and the
result is signed and timestamped with the hash key (itsdangerous). A cookie
that fails any of these steps is treated as if it were absent.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Dict, List, Optional

from fastapi import Request, Response
from itsdangerous import BadSignature, URLSafeTimedSerializer
from jose import jwe
from jose.exceptions import JOSEError

from authstatic.config import DEFAULT_MAX_AGE_SECONDS, KEY_LENGTH
from authstatic.errors import ConfigError

logger = logging.getLogger(__name__)

SESSION_SALT = "authstatic.session.v1"


class SessionError(RuntimeError):
    """Raised when a session cannot be encoded for the response."""


class Session:
    """Session state of one user agent for the duration of a request."""

    def __init__(
        self,
        store: "CookieSessionStore",
        values: Optional[Dict[str, Any]] = None,
        flashes: Optional[List[str]] = None,
    ) -> None:
        self._store = store
        self.values: Dict[str, Any] = dict(values or {})
        self.flashes: List[str] = list(flashes or [])

    def get(self, name: str, default: Any = None) -> Any:
        return self.values.get(name, default)

    def set(self, key: str, value: Any) -> None:
        self.values[key] = value

    def delete(self, key: str) -> None:
        self.values.pop(key, None)

    def flash(self, message: str) -> None:
        self.flashes.append(str(message))

    def drain_flashes(self) -> List[str]:
        out, self.flashes = self.flashes, []
        return out

    def save(self, response: Response) -> None:
        """Write the current state to ``response`` as a Set-Cookie header."""
        self._store.write(response, self)


class CookieSessionStore:
    def __init__(
        self,
        hash_key: str,
        block_key: str,
        *,
        name: str = "auth-static",
        secure: bool = False,
        max_age: int = DEFAULT_MAX_AGE_SECONDS,
    ) -> None:
        if len(hash_key) != KEY_LENGTH or len(block_key) != KEY_LENGTH:
            raise ConfigError(f"session keys must be exactly {KEY_LENGTH} chars")
        self.name = name
        self.secure = secure
        self.max_age = max_age
        self._block_key = block_key.encode("utf-8")
        self._signer = URLSafeTimedSerializer(secret_key=hash_key, salt=SESSION_SALT)
        if len(self._block_key) != KEY_LENGTH:
            raise ConfigError(f"block key must encode to {KEY_LENGTH} bytes")

    def open(self, request: Request) -> Session:
        token = request.cookies.get(self.name, "")
        if not token:
            return Session(self)
        payload = self.decode(token)
        if payload is None:
            return Session(self)
        return Session(self, payload["values"], payload["flashes"])

    def encode(self, session: Session) -> str:
        payload = {"values": session.values, "flashes": session.flashes}
        try:
            encrypted = jwe.encrypt(
                json.dumps(payload),
                self._block_key,
                algorithm="dir",
                encryption="A256GCM",
            )
        except (JOSEError, TypeError, ValueError) as e:
            raise SessionError("Could not encrypt session") from e
        if isinstance(encrypted, bytes):
            encrypted = encrypted.decode("ascii")
        return self._signer.dumps(encrypted)

    def decode(self, token: str) -> Optional[Dict[str, Any]]:
        """Return ``{"values": ..., "flashes": ...}`` or None if the cookie is unusable."""
        try:
            encrypted = self._signer.loads(token, max_age=self.max_age)
            payload = json.loads(jwe.decrypt(encrypted, self._block_key))
        except BadSignature:
            logger.debug("Discarding session cookie with bad signature or expired timestamp")
            return None
        except (JOSEError, TypeError, ValueError):
            logger.debug("Discarding undecryptable session cookie")
            return None

        if not isinstance(payload, dict):
            return None
        values = payload.get("values")
        flashes = payload.get("flashes")
        if not isinstance(values, dict) or not isinstance(flashes, list):
            return None
        return {"values": values, "flashes": [str(f) for f in flashes]}

    def write(self, response: Response, session: Session) -> None:
        response.set_cookie(
            self.name,
            self.encode(session),
            max_age=self.max_age,
            path="/",
            httponly=True,
            secure=self.secure,
            samesite="lax",
        )
