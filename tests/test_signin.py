from sqlalchemy import text

from conftest import EMAIL


def test_signin_form_renders(client):
    r = client.get("/signin")
    assert r.status_code == 200
    assert 'action="/signin"' in r.text
    assert "<ul>" not in r.text


def test_signin_success(signed_up, config):
    _, client = signed_up
    client.cookies.clear()
    r = client.post("/signin", data={"email": EMAIL, "password": "kkkkkkkk"})
    assert r.status_code == 302
    assert r.headers["location"] == "/private/main.html"
    assert client.get("/private/main.html").status_code == 200


def test_signin_trims_input(signed_up):
    _, client = signed_up
    client.cookies.clear()
    r = client.post("/signin", data={"email": f" {EMAIL} ", "password": " kkkkkkkk "})
    assert r.headers["location"] == "/private/main.html"


def test_signin_unknown_email(client):
    r = client.post("/signin", data={"email": "nobody@example.com", "password": "kkkkkkkk"})
    assert r.status_code == 302
    assert r.headers["location"] == "/signin"
    r = client.get("/signin")
    assert "<li>email and/or password wrong</li>" in r.text


def test_signin_wrong_password_has_same_message(signed_up):
    _, client = signed_up
    r = client.post("/signin", data={"email": EMAIL, "password": "wrongpass"})
    assert r.headers["location"] == "/signin"
    assert "<li>email and/or password wrong</li>" in client.get("/signin").text


def test_signin_invited_user_without_password(users, client):
    users.create(EMAIL)
    r = client.post("/signin", data={"email": EMAIL, "password": "kkkkkkkk"})
    assert r.headers["location"] == "/signin"


def test_signin_corrupt_hash_is_500(users, client, engine):
    users.create(EMAIL)
    with engine.begin() as conn:
        conn.execute(text("UPDATE users SET hash = 'garbage' WHERE email = :e"), {"e": EMAIL})
    r = client.post("/signin", data={"email": EMAIL, "password": "kkkkkkkk"})
    assert r.status_code == 500


def test_signout_revokes_access(signed_up):
    _, client = signed_up
    assert client.get("/private/main.html").status_code == 200
    r = client.post("/signout")
    assert r.status_code == 302
    assert r.headers["location"] == "/signin"
    assert client.get("/private/main.html").status_code == 404
