from sqlalchemy import text

from conftest import EMAIL


def test_signup_form_renders(client):
    code = "73d3e3502ab73f40d4943fdcc16d05dd"
    r = client.get(f"/signup/{code}")
    assert r.status_code == 200
    assert r.headers["content-type"].startswith("text/html")
    assert f'action="/signup/{code}"' in r.text
    assert "at least 8 characters" in r.text
    assert "<ul>" not in r.text


def test_signup_route_requires_code_shape(client):
    assert client.get("/signup/" + "a" * 31).status_code == 404
    assert client.get("/signup/" + "a" * 33).status_code == 404
    assert client.get("/signup/" + "A" * 32).status_code == 404
    assert client.post("/signup/not-a-code", data={"password": "kkkkkkkk"}).status_code == 404


def test_signup_success(users, client, engine):
    code = users.create(EMAIL)
    r = client.post(f"/signup/{code}", data={"password": "kkkkkkkk", "confirmation": "kkkkkkkk"})
    assert r.status_code == 302
    assert r.headers["location"] == "/private/main.html"
    assert r.headers["set-cookie"].startswith("auth-static=")

    with engine.connect() as conn:
        row = conn.execute(text("SELECT code, hash FROM users WHERE email = :e"), {"e": EMAIL}).one()
    assert row.code == ""
    assert row.hash


def test_signup_password_too_short(users, client):
    code = users.create(EMAIL)
    r = client.post(f"/signup/{code}", data={"password": "kkkkkkk", "confirmation": "kkkkkkk"})
    assert r.status_code == 302
    assert r.headers["location"] == f"/signup/{code}"

    r = client.get(f"/signup/{code}")
    assert r.status_code == 200
    assert "<li>password too short</li>" in r.text

    # Flashes are shown once.
    r = client.get(f"/signup/{code}")
    assert "password too short" not in r.text


def test_signup_confirmation_mismatch(users, client):
    code = users.create(EMAIL)
    r = client.post(f"/signup/{code}", data={"password": "kkkkkkkk", "confirmation": "kkkkkkkj"})
    assert r.headers["location"] == f"/signup/{code}"
    r = client.get(f"/signup/{code}")
    assert "match confirmation" in r.text


def test_signup_unknown_code(users, client):
    users.create(EMAIL)
    code = "0" * 32
    r = client.post(f"/signup/{code}", data={"password": "kkkkkkkk", "confirmation": "kkkkkkkk"})
    assert r.status_code == 302
    assert r.headers["location"] == f"/signup/{code}"
    assert "code unknown" in client.get(f"/signup/{code}").text


def test_signup_code_cannot_be_redeemed_twice(signed_up):
    code, client = signed_up
    r = client.post(f"/signup/{code}", data={"password": "llllllll", "confirmation": "llllllll"})
    assert r.headers["location"] == f"/signup/{code}"
    assert "code unknown" in client.get(f"/signup/{code}").text


def test_signup_missing_fields_is_a_validation_error(users, client):
    code = users.create(EMAIL)
    r = client.post(f"/signup/{code}")
    assert r.status_code == 302
    assert "password too short" in client.get(f"/signup/{code}").text


def test_signup_storage_failure_is_500(users, client, engine):
    code = users.create(EMAIL)
    with engine.begin() as conn:
        conn.execute(text("DROP TABLE users"))
    r = client.post(f"/signup/{code}", data={"password": "kkkkkkkk", "confirmation": "kkkkkkkk"})
    assert r.status_code == 500
    assert r.text == "Internal Server Error"
