"""Auth API tests — the full cookie flow through POST /graphql.

Learn: Tests cover:
1. Registration (cookies set, no password in the response, duplicates)
2. Login (cookies on success, none on failure)
3. refreshToken (new access cookie only; tampered token rejected)
4. logout (both cookies cleared)
"""

import pytest

from authgate.auth.jwt import verify_access_token
from helpers import (
    LOGIN,
    REGISTER,
    error_code,
    gql,
    register_input,
    set_cookie_headers,
)


def _cookie_header(response, name: str) -> str:
    matches = [h for h in set_cookie_headers(response) if h.startswith(f"{name}=")]
    assert len(matches) == 1, set_cookie_headers(response)
    return matches[0]


# ═══════════════════════════════════════════════════════════
# Registration
# ═══════════════════════════════════════════════════════════


@pytest.mark.asyncio
async def test_register_example_scenario(client):
    r, body = await gql(client, REGISTER, {"input": register_input()})

    assert "errors" not in body
    user = body["data"]["register"]["user"]
    assert user["email"] == "ada@x.com"
    assert user["fullname"] == "Ada"
    assert user["avatarUrl"] is None
    assert "password" not in user

    for name in ("access_token", "refresh_token"):
        header = _cookie_header(r, name)
        assert "httponly" in header.lower()
        assert "path=/" in header.lower()
    assert "access_token" in client.cookies
    assert "refresh_token" in client.cookies


@pytest.mark.asyncio
async def test_user_type_has_no_password_field(client):
    _, body = await gql(
        client,
        "mutation($input: RegisterInput!) { register(registerInput: $input) { user { password } } }",
        {"input": register_input()},
    )
    assert "errors" in body
    assert "password" in body["errors"][0]["message"]


@pytest.mark.asyncio
async def test_register_password_mismatch(client):
    r, body = await gql(
        client, REGISTER, {"input": register_input(confirmPassword="otherpw123")}
    )
    assert error_code(body) == "VALIDATION_ERROR"
    assert body["errors"][0]["extensions"]["fields"] == {
        "confirmPassword": "Password and confirm password don't match"
    }
    assert set_cookie_headers(r) == []


@pytest.mark.asyncio
async def test_register_short_password(client):
    _, body = await gql(
        client,
        REGISTER,
        {"input": register_input(password="abc", confirmPassword="abc")},
    )
    assert error_code(body) == "VALIDATION_ERROR"
    assert "password" in body["errors"][0]["extensions"]["fields"]


@pytest.mark.asyncio
async def test_register_duplicate_email(client):
    _, first = await gql(client, REGISTER, {"input": register_input()})
    client.cookies.clear()

    r, second = await gql(
        client, REGISTER, {"input": register_input(fullname="Second Ada")}
    )
    assert error_code(second) == "CONFLICT"
    assert set_cookie_headers(r) == []

    # First user untouched
    _, login = await gql(
        client, LOGIN, {"input": {"email": "ada@x.com", "password": "longpw123"}}
    )
    assert login["data"]["login"]["user"]["fullname"] == "Ada"
    assert login["data"]["login"]["user"]["id"] == first["data"]["register"]["user"]["id"]


# ═══════════════════════════════════════════════════════════
# Login
# ═══════════════════════════════════════════════════════════


@pytest.mark.asyncio
async def test_login_success_sets_cookies(client):
    await gql(client, REGISTER, {"input": register_input()})
    client.cookies.clear()

    r, body = await gql(
        client, LOGIN, {"input": {"email": "ada@x.com", "password": "longpw123"}}
    )
    assert body["data"]["login"]["user"]["email"] == "ada@x.com"
    _cookie_header(r, "access_token")
    _cookie_header(r, "refresh_token")


@pytest.mark.asyncio
async def test_login_wrong_password(client):
    await gql(client, REGISTER, {"input": register_input()})
    client.cookies.clear()

    r, body = await gql(
        client, LOGIN, {"input": {"email": "ada@x.com", "password": "wrongpw123"}}
    )
    assert error_code(body) == "UNAUTHORIZED"
    assert body["errors"][0]["message"] == "Invalid credentials"
    assert set_cookie_headers(r) == []
    assert len(client.cookies) == 0


@pytest.mark.asyncio
async def test_login_nonexistent_user(client):
    r, body = await gql(
        client, LOGIN, {"input": {"email": "nobody@x.com", "password": "whatever1"}}
    )
    assert error_code(body) == "UNAUTHORIZED"
    assert body["errors"][0]["message"] == "Invalid credentials"
    assert set_cookie_headers(r) == []


# ═══════════════════════════════════════════════════════════
# Token refresh
# ═══════════════════════════════════════════════════════════


@pytest.mark.asyncio
async def test_refresh_token_reissues_access_cookie_only(client):
    _, reg = await gql(client, REGISTER, {"input": register_input()})
    user_id = reg["data"]["register"]["user"]["id"]

    r, body = await gql(client, "mutation { refreshToken }")
    token = body["data"]["refreshToken"]

    assert verify_access_token(token).subject == user_id
    assert _cookie_header(r, "access_token").startswith(f"access_token={token}")
    assert not any(h.startswith("refresh_token=") for h in set_cookie_headers(r))


@pytest.mark.asyncio
async def test_refresh_without_cookie(client):
    r, body = await gql(client, "mutation { refreshToken }")
    assert error_code(body) == "UNAUTHORIZED"
    assert body["errors"][0]["message"] == "Refresh token not found"
    assert set_cookie_headers(r) == []


@pytest.mark.asyncio
async def test_refresh_with_tampered_token(client):
    await gql(client, REGISTER, {"input": register_input()})
    head, payload, sig = client.cookies["refresh_token"].split(".")
    i = len(sig) // 2
    tampered = ".".join(
        [head, payload, sig[:i] + ("A" if sig[i] != "A" else "B") + sig[i + 1:]]
    )
    client.cookies.clear()
    client.cookies.set("refresh_token", tampered)

    r, body = await gql(client, "mutation { refreshToken }")
    assert error_code(body) == "UNAUTHORIZED"
    assert set_cookie_headers(r) == []


@pytest.mark.asyncio
async def test_access_token_cannot_refresh(client):
    await gql(client, REGISTER, {"input": register_input()})
    access = client.cookies["access_token"]
    client.cookies.clear()
    client.cookies.set("refresh_token", access)

    _, body = await gql(client, "mutation { refreshToken }")
    assert error_code(body) == "UNAUTHORIZED"


# ═══════════════════════════════════════════════════════════
# Logout
# ═══════════════════════════════════════════════════════════


@pytest.mark.asyncio
async def test_logout_clears_cookies(client):
    await gql(client, REGISTER, {"input": register_input()})
    assert "access_token" in client.cookies

    r, body = await gql(client, "mutation { logout }")
    assert body["data"]["logout"] == "Successfully logged out"
    for name in ("access_token", "refresh_token"):
        assert "max-age=0" in _cookie_header(r, name).lower()
    assert "access_token" not in client.cookies
    assert "refresh_token" not in client.cookies


@pytest.mark.asyncio
async def test_logout_without_session_still_succeeds(client):
    _, body = await gql(client, "mutation { logout }")
    assert body["data"]["logout"] == "Successfully logged out"


@pytest.mark.asyncio
async def test_hello(client):
    _, body = await gql(client, "query { hello }")
    assert body == {"data": {"hello": "hello"}}


def test_context_keeps_the_request_cookie_collector():
    """An empty collector is still the one the route applies afterwards."""
    from types import SimpleNamespace

    from authgate.auth.cookies import ResponseCookies
    from authgate.gql.app import get_context_value

    collector = ResponseCookies()
    request = SimpleNamespace(
        state=SimpleNamespace(db=None, cookies=collector),
        app=SimpleNamespace(state=SimpleNamespace()),
        scope={},
    )
    assert get_context_value(request)["cookies"] is collector
