# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Authentication building blocks.

This package provides:
- Signup codes and password hashing/verification (argon2)
- The SQL-backed user store
- Encrypted, signed session cookies (python-jose + itsdangerous)
"""
