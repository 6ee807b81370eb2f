# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

"""User-presentable validation errors.

Anything that is not a :class:`UserError` is an infrastructure failure and
must never be shown to the client.
"""

from __future__ import annotations


class UserError(ValueError):
    """Base class of the closed set of domain errors. ``str(err)`` is the flash text."""

    message = ""

    def __init__(self, message: str = "") -> None:
        super().__init__(message or self.message)


class EmailRequired(UserError):
    message = "email required"


class UnknownCode(UserError):
    message = "code unknown"


class PasswordTooShort(UserError):
    message = "password too short"


class PasswordNotConfirmed(UserError):
    message = "password doesn't match confirmation"


class ConfigError(ValueError):
    """Invalid startup configuration."""
