# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

from __future__ import annotations

import secrets
from typing import Optional

from argon2 import PasswordHasher
from argon2.exceptions import VerifyMismatchError

CODE_BYTES = 16

DEFAULT_HASHER = PasswordHasher()


def new_hasher(time_cost: Optional[int] = None, memory_cost: Optional[int] = None) -> PasswordHasher:
    """Build a hasher with a custom work factor; unset values keep argon2's defaults."""
    kwargs = {}
    if time_cost is not None:
        kwargs["time_cost"] = time_cost
    if memory_cost is not None:
        kwargs["memory_cost"] = memory_cost
    return PasswordHasher(**kwargs)


def generate_code() -> str:
    """Return 32 lowercase hex chars drawn from the OS CSPRNG."""
    return secrets.token_hex(CODE_BYTES)


def hash_password(plain: str, *, hasher: PasswordHasher = DEFAULT_HASHER) -> str:
    if not plain:
        raise ValueError("empty password")
    return hasher.hash(plain)


def verify_password(hash_value: str, plain: str, *, hasher: PasswordHasher = DEFAULT_HASHER) -> bool:
    """Mismatch is a normal ``False``; a corrupt hash raises."""
    if not hash_value or not plain:
        return False
    try:
        return hasher.verify(hash_value, plain)
    except VerifyMismatchError:
        return False
