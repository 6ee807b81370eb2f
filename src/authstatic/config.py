# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

from __future__ import annotations

from dataclasses import dataclass

from authstatic.errors import ConfigError

KEY_LENGTH = 32
DEFAULT_MAX_AGE_SECONDS = 86400 * 30  # 30 days


@dataclass(frozen=True)
class Config:
    """Runtime settings, built once at startup and shared by every handler."""

    hash_key: str = ""
    block_key: str = ""
    secure: bool = False
    session_name: str = "auth-static"
    session_max_age: int = DEFAULT_MAX_AGE_SECONDS
    user_id_key: str = "user_id"

    # URL path of the protected area visible to the user.
    protected_external: str = "/private/"
    # URL path of the protected area only reachable through an internal redirect.
    protected_internal: str = "/internal/"
    protected_home: str = "main.html"

    dsn: str = "prod.db"
    host: str = "localhost"
    port: int = 9000

    @property
    def home_url(self) -> str:
        return self.protected_external + self.protected_home

    def validate(self) -> "Config":
        if len(self.hash_key) != KEY_LENGTH or len(self.block_key) != KEY_LENGTH:
            raise ConfigError(f"please provide hashkey and blockkey both with {KEY_LENGTH} chars")
        if not self.protected_external.startswith("/"):
            raise ConfigError("external path must start with '/'")
        return self
