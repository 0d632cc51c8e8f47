"""
Registration, login and token-authenticated requests over GraphQL.
"""
import pytest

from knowledge_base.auth import Role

REGISTER = """
mutation Register($input: RegisterInput!) {
  register(input: $input) {
    token
    user { id email username name role }
  }
}
"""

LOGIN = """
mutation Login($input: LoginInput!) {
  login(input: $input) {
    token
    user { id email role }
  }
}
"""

ME = "query { me { id email username role } }"


def _registration(suffix: str = "ada", **overrides) -> dict:
    payload = {
        "email": f"{suffix}@example.com",
        "username": suffix,
        "password": "s3cret-pass",
        "name": "Ada Lovelace",
    }
    payload.update(overrides)
    return payload


# ---------------------------------------------------------------------------
# register
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_register_creates_viewer_and_returns_token(gql):
    status, body = await gql(REGISTER, {"input": _registration()})
    assert status == 200, body
    payload = body["data"]["register"]
    assert payload["token"]
    assert payload["user"]["email"] == "ada@example.com"
    assert payload["user"]["username"] == "ada"
    assert payload["user"]["name"] == "Ada Lovelace"
    assert payload["user"]["role"] == "VIEWER"


@pytest.mark.asyncio
async def test_registered_token_authenticates_me(gql):
    _, body = await gql(REGISTER, {"input": _registration()})
    token = body["data"]["register"]["token"]

    status, body = await gql(ME, headers={"Authorization": f"Bearer {token}"})
    assert status == 200
    assert body["data"]["me"]["username"] == "ada"
    assert body["data"]["me"]["role"] == "VIEWER"


@pytest.mark.asyncio
async def test_bare_token_without_bearer_prefix_is_accepted(gql):
    _, body = await gql(REGISTER, {"input": _registration()})
    token = body["data"]["register"]["token"]

    _, body = await gql(ME, headers={"Authorization": token})
    assert body["data"]["me"]["email"] == "ada@example.com"


@pytest.mark.asyncio
async def test_register_rejects_requested_role(gql):
    """RegisterInput has no role field; asking for one is rejected."""
    status, body = await gql(REGISTER, {"input": _registration(role="ADMIN")})
    assert status == 400
    assert "errors" in body


@pytest.mark.asyncio
async def test_register_duplicate_email_is_conflict(gql):
    await gql(REGISTER, {"input": _registration()})
    status, body = await gql(REGISTER, {"input": _registration(username="other")})
    assert status == 400
    assert body["errors"][0]["extensions"]["code"] == "CONFLICT"


@pytest.mark.asyncio
async def test_register_duplicate_username_is_conflict(gql):
    await gql(REGISTER, {"input": _registration()})
    status, body = await gql(REGISTER, {"input": _registration(email="other@example.com")})
    assert status == 400
    assert body["errors"][0]["extensions"]["code"] == "CONFLICT"


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "overrides",
    [
        {"email": "not-an-email"},
        {"password": "short"},
        {"username": "ab"},
        {"username": "has spaces"},
    ],
)
async def test_register_invalid_input_is_bad_user_input(gql, overrides):
    status, body = await gql(REGISTER, {"input": _registration(**overrides)})
    assert status == 400
    assert body["errors"][0]["extensions"]["code"] == "BAD_USER_INPUT"


@pytest.mark.asyncio
async def test_register_password_over_bcrypt_limit_is_rejected(gql):
    status, body = await gql(REGISTER, {"input": _registration(password="x" * 73)})
    assert status == 400
    assert body["errors"][0]["extensions"]["code"] == "BAD_USER_INPUT"

    # Nothing was persisted.
    status, _ = await gql(REGISTER, {"input": _registration()})
    assert status == 200


# ---------------------------------------------------------------------------
# login
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_login_round_trip(gql):
    await gql(REGISTER, {"input": _registration()})

    status, body = await gql(LOGIN, {"input": {"email": "ada@example.com", "password": "s3cret-pass"}})
    assert status == 200, body
    token = body["data"]["login"]["token"]
    assert body["data"]["login"]["user"]["email"] == "ada@example.com"

    _, body = await gql(ME, headers={"Authorization": f"Bearer {token}"})
    assert body["data"]["me"]["email"] == "ada@example.com"


@pytest.mark.asyncio
async def test_login_wrong_password_is_unauthenticated(gql):
    await gql(REGISTER, {"input": _registration()})

    status, body = await gql(LOGIN, {"input": {"email": "ada@example.com", "password": "wrong-pass"}})
    assert status == 400
    error = body["errors"][0]
    assert error["message"] == "Invalid credentials"
    assert error["extensions"]["code"] == "UNAUTHENTICATED"


@pytest.mark.asyncio
async def test_login_unknown_email_gives_same_error(gql):
    status, body = await gql(LOGIN, {"input": {"email": "nobody@example.com", "password": "whatever"}})
    assert status == 400
    error = body["errors"][0]
    assert error["message"] == "Invalid credentials"
    assert error["extensions"]["code"] == "UNAUTHENTICATED"


@pytest.mark.asyncio
async def test_login_reflects_role_granted_after_registration(gql, make_user):
    await make_user("chief", role=Role.EDITOR, password="editor-pass")
    _, body = await gql(LOGIN, {"input": {"email": "chief@example.com", "password": "editor-pass"}})
    assert body["data"]["login"]["user"]["role"] == "EDITOR"


# ---------------------------------------------------------------------------
# me
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_me_without_token_is_unauthenticated(gql):
    status, body = await gql(ME)
    assert status == 400
    assert body["data"]["me"] is None
    assert body["errors"][0]["extensions"]["code"] == "UNAUTHENTICATED"


@pytest.mark.asyncio
@pytest.mark.parametrize("header", ["Bearer garbage", "Bearer a.b.c", "Basic dXNlcjpwYXNz"])
async def test_me_with_invalid_token_is_unauthenticated(gql, header):
    status, body = await gql(ME, headers={"Authorization": header})
    assert status == 400
    assert body["errors"][0]["extensions"]["code"] == "UNAUTHENTICATED"


@pytest.mark.asyncio
async def test_hello_is_public(gql):
    status, body = await gql("{ hello }")
    assert status == 200
    assert body["data"]["hello"]
