# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

from __future__ import annotations

import logging
import mimetypes
import uuid
from pathlib import Path, PurePosixPath
from typing import Optional

from fastapi import APIRouter, Depends, FastAPI, Form, Request
from fastapi.responses import HTMLResponse, PlainTextResponse, RedirectResponse, Response
from fastapi.templating import Jinja2Templates
from starlette.convertors import Convertor, register_url_convertor

from authstatic.auth.session import CookieSessionStore, Session, SessionError
from authstatic.auth.users import PASSWORD_MIN_LENGTH, UserService
from authstatic.config import Config
from authstatic.errors import UserError

logger = logging.getLogger(__name__)

BASE_DIR = Path(__file__).resolve().parent
templates = Jinja2Templates(directory=str(BASE_DIR / "templates"))
mimetypes.init()

NOT_FOUND_TEXT = "404 Not Found"
SIGNIN_FAILED = "email and/or password wrong"
# Any method under the protected prefix gets the same answer as GET.
PROTECTED_METHODS = ["GET", "HEAD", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"]


class SignupCodeConvertor(Convertor):
    regex = "[a-z0-9]{32}"

    def convert(self, value: str) -> str:
        return value

    def to_string(self, value: str) -> str:
        return value


register_url_convertor("signupcode", SignupCodeConvertor())

router = APIRouter()


def get_config(request: Request) -> Config:
    return request.app.state.config


def get_users(request: Request) -> UserService:
    return request.app.state.users


def get_sessions(request: Request) -> CookieSessionStore:
    return request.app.state.sessions


def _render(request: Request, template_name: str, ctx: dict) -> HTMLResponse:
    return templates.TemplateResponse(request, template_name, ctx)


def _redirect(session: Session, url: str) -> RedirectResponse:
    resp = RedirectResponse(url=url, status_code=302)
    session.save(resp)
    return resp


def _server_error() -> PlainTextResponse:
    return PlainTextResponse("Internal Server Error", status_code=500)


def _not_found() -> Response:
    return Response(content=NOT_FOUND_TEXT, status_code=404)


# ------------------ Sign up ------------------


@router.get("/signup/{code:signupcode}", response_class=HTMLResponse)
def signup_form(request: Request, code: str, sessions: CookieSessionStore = Depends(get_sessions)):
    try:
        session = sessions.open(request)
        resp = _render(
            request,
            "signup.html",
            {"code": code, "password_min_length": PASSWORD_MIN_LENGTH, "errors": session.drain_flashes()},
        )
        session.save(resp)
        return resp
    except Exception:
        logger.exception("Rendering signup form failed")
        return _server_error()


@router.post("/signup/{code:signupcode}")
def signup(
    request: Request,
    code: str,
    password: str = Form(""),
    confirmation: str = Form(""),
    config: Config = Depends(get_config),
    users: UserService = Depends(get_users),
    sessions: CookieSessionStore = Depends(get_sessions),
):
    """Redeem a signup code: set the password and sign the user in."""
    try:
        session = sessions.open(request)
        try:
            user_id = users.lookup_id_by_code(code)
            users.set_password(user_id, password, confirmation)
        except UserError as e:
            logger.info("Signup rejected: %s", e)
            session.flash(str(e))
            return _redirect(session, f"/signup/{code}")

        session.set(config.user_id_key, str(user_id))
        logger.info("User %s signed up", user_id)
        return _redirect(session, config.home_url)
    except Exception:
        logger.exception("Signup failed")
        return _server_error()


# ------------------ Sign in ------------------


@router.get("/signin", response_class=HTMLResponse)
def signin_form(request: Request, sessions: CookieSessionStore = Depends(get_sessions)):
    try:
        session = sessions.open(request)
        resp = _render(request, "signin.html", {"errors": session.drain_flashes()})
        session.save(resp)
        return resp
    except Exception:
        logger.exception("Rendering signin form failed")
        return _server_error()


@router.post("/signin")
def signin(
    request: Request,
    email: str = Form(""),
    password: str = Form(""),
    config: Config = Depends(get_config),
    users: UserService = Depends(get_users),
    sessions: CookieSessionStore = Depends(get_sessions),
):
    """Exchange email and password for a session.

    Unknown email and wrong password produce the same flash message.
    """
    try:
        authenticated = users.verify_password(email, password)
        session = sessions.open(request)
        if not authenticated:
            session.flash(SIGNIN_FAILED)
            return _redirect(session, "/signin")

        user_id = users.lookup_id_by_email(email.strip())
        session.set(config.user_id_key, str(user_id))
        logger.info("User %s signed in", user_id)
        return _redirect(session, config.home_url)
    except Exception:
        logger.exception("Signin failed")
        return _server_error()


@router.post("/signout")
def signout(
    request: Request,
    config: Config = Depends(get_config),
    sessions: CookieSessionStore = Depends(get_sessions),
):
    try:
        session = sessions.open(request)
        session.delete(config.user_id_key)
        return _redirect(session, "/signin")
    except Exception:
        logger.exception("Signout failed")
        return _server_error()


# ------------------ Protected area ------------------


def _request_uri(request: Request) -> str:
    """The request target as the client sent it, percent-encoding untouched."""
    raw = request.scope.get("raw_path")
    uri = raw.decode("latin-1").split("?", 1)[0] if raw else request.url.path
    query = request.scope.get("query_string", b"").decode("latin-1")
    if query:
        uri += "?" + query
    return uri


def _content_type(path: str) -> Optional[str]:
    # Last extension only: backup.tar.gz maps by ".gz".
    ext = PurePosixPath(path).suffix
    return mimetypes.types_map.get(ext) or mimetypes.types_map.get(ext.lower())


def authorize(request: Request) -> Response:
    """Hand the request back to the proxy as an internal redirect, or 404.

    Every failure (no cookie, bad cookie, no user id, malformed id, unknown
    user, storage error) yields the same response as a missing file.
    """
    config: Config = request.app.state.config
    users: UserService = request.app.state.users
    sessions: CookieSessionStore = request.app.state.sessions

    try:
        session = sessions.open(request)
    except SessionError:
        logger.debug("Denied %s: session unreadable", request.url.path)
        return _not_found()

    raw_id = session.get(config.user_id_key)
    if raw_id is None:
        logger.debug("Denied %s: no user in session", request.url.path)
        return _not_found()

    try:
        user_id = uuid.UUID(str(raw_id))
    except ValueError:
        logger.debug("Denied %s: malformed user id", request.url.path)
        return _not_found()

    try:
        found = users.exists(user_id)
    except Exception:
        logger.exception("User lookup failed while authorizing %s", request.url.path)
        return _not_found()
    if not found:
        logger.debug("Denied %s: unknown user %s", request.url.path, user_id)
        return _not_found()

    headers = {
        "X-Accel-Redirect": _request_uri(request).replace(
            config.protected_external, config.protected_internal, 1
        ),
    }
    content_type = _content_type(request.url.path)
    if content_type:
        headers["Content-Type"] = content_type
    return Response(status_code=200, headers=headers)


def create_app(
    config: Config,
    users: UserService,
    sessions: Optional[CookieSessionStore] = None,
) -> FastAPI:
    config.validate()
    if sessions is None:
        sessions = CookieSessionStore(
            config.hash_key,
            config.block_key,
            name=config.session_name,
            secure=config.secure,
            max_age=config.session_max_age,
        )

    app = FastAPI(title="auth-static", docs_url=None, redoc_url=None, openapi_url=None)
    app.state.config = config
    app.state.users = users
    app.state.sessions = sessions

    app.include_router(router)
    # Registered last so a broad prefix cannot shadow the sign-in routes.
    app.add_api_route(
        config.protected_external + "{asset:path}",
        authorize,
        methods=PROTECTED_METHODS,
        include_in_schema=False,
    )
    return app
