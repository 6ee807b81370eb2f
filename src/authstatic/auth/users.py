# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

from __future__ import annotations

import logging
import uuid
from typing import Optional

from argon2 import PasswordHasher
from sqlalchemy import func, select, update
from sqlalchemy.dialects.sqlite import insert
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker

from authstatic.auth import passwords
from authstatic.errors import EmailRequired, PasswordNotConfirmed, PasswordTooShort, UnknownCode
from authstatic.infra.database import User

logger = logging.getLogger(__name__)

PASSWORD_MIN_LENGTH = 8


def _now():
    return func.datetime("now")


class UserService:
    """Invitations, passwords and identity lookups on the ``users`` table.

    Every mutation is a single statement; concurrent ``create`` calls for the
    same email are serialised by the unique constraint through the upsert.
    """

    def __init__(self, engine: Engine, *, hasher: Optional[PasswordHasher] = None) -> None:
        self._db = sessionmaker(bind=engine)
        self._hasher = hasher or passwords.DEFAULT_HASHER

    def create(self, email: str) -> str:
        """Invite ``email`` and return its new signup code.

        Re-inviting an existing email keeps its id and created_at but replaces
        the code and clears the password hash, so the account has to sign up
        again. This doubles as a way to lock a user out.
        """
        if not email:
            raise EmailRequired()

        code = passwords.generate_code()
        stmt = insert(User).values(
            id=str(uuid.uuid4()),
            email=email,
            code=code,
            hash="",
            created_at=_now(),
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=["email"],
            set_={"code": code, "hash": "", "updated_at": _now()},
        )
        with self._db.begin() as db:
            db.execute(stmt)
        logger.info("invitation created for %s", email)
        return code

    def lookup_id_by_code(self, code: str) -> uuid.UUID:
        # Redeemed users have code == "", so an empty code must never match.
        if not code:
            raise UnknownCode()
        return self._get_id(User.code == code)

    def lookup_id_by_email(self, email: str) -> uuid.UUID:
        return self._get_id(User.email == email)

    def _get_id(self, clause) -> uuid.UUID:
        with self._db() as db:
            found = db.execute(select(User.id).where(clause)).scalar_one_or_none()
        if found is None:
            raise UnknownCode()
        return uuid.UUID(found)

    def set_password(self, user_id: uuid.UUID, password: str, confirmation: str) -> None:
        """Install a password hash and consume the signup code.

        Both inputs are trimmed. Length is checked before confirmation and
        both before hashing.
        """
        password = (password or "").strip()
        confirmation = (confirmation or "").strip()

        if len(password) < PASSWORD_MIN_LENGTH:
            raise PasswordTooShort()
        if password != confirmation:
            raise PasswordNotConfirmed()

        hashed = passwords.hash_password(password, hasher=self._hasher)
        stmt = (
            update(User)
            .where(User.id == str(user_id))
            .values(hash=hashed, code="", updated_at=_now())
            .execution_options(synchronize_session=False)
        )
        with self._db.begin() as db:
            db.execute(stmt)

    def verify_password(self, email: str, password: str) -> bool:
        """True iff a user with ``email`` exists and ``password`` matches its hash.

        An unknown email and a wrong password both yield ``False``.
        """
        email = (email or "").strip()
        password = (password or "").strip()

        with self._db() as db:
            stored = db.execute(select(User.hash).where(User.email == email)).scalar_one_or_none()
        if stored is None:
            return False
        return passwords.verify_password(stored, password, hasher=self._hasher)

    def exists(self, user_id: uuid.UUID) -> bool:
        with self._db() as db:
            count = db.execute(
                select(func.count(User.id)).where(User.id == str(user_id))
            ).scalar_one()
        return count == 1
