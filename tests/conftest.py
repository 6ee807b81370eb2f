import sys
from pathlib import Path as _Path
sys.path.insert(0, str(_Path(__file__).resolve().parents[1] / "src"))

from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from authstatic.app import create_app
from authstatic.auth.passwords import new_hasher
from authstatic.auth.session import CookieSessionStore
from authstatic.auth.users import UserService
from authstatic.config import Config
from authstatic.infra.database import create_db_engine, init_db

HASH_KEY = "0123456789abcdef0123456789abcdef"
BLOCK_KEY = "fedcba9876543210fedcba9876543210"
EMAIL = "webmaster@example.com"


@pytest.fixture()
def dsn(tmp_path: Path) -> str:
    return str(tmp_path / "test.db")


@pytest.fixture()
def engine(dsn):
    eng = create_db_engine(dsn)
    init_db(eng)
    yield eng
    eng.dispose()


@pytest.fixture()
def users(engine) -> UserService:
    # Minimal work factor keeps the suite fast.
    return UserService(engine, hasher=new_hasher(time_cost=1, memory_cost=1024))


@pytest.fixture()
def config(dsn) -> Config:
    return Config(hash_key=HASH_KEY, block_key=BLOCK_KEY, dsn=dsn)


@pytest.fixture()
def sessions(config) -> CookieSessionStore:
    return CookieSessionStore(config.hash_key, config.block_key, name=config.session_name)


@pytest.fixture()
def client(config, users, sessions) -> TestClient:
    app = create_app(config, users, sessions)
    return TestClient(app, follow_redirects=False)


@pytest.fixture()
def signed_up(users, client):
    """Invite EMAIL, redeem the code through the form, return (code, client)."""
    code = users.create(EMAIL)
    r = client.post(f"/signup/{code}", data={"password": "kkkkkkkk", "confirmation": "kkkkkkkk"})
    assert r.status_code == 302
    return code, client
