"""
Regression tests for issues found during code review.

1. A failed field must roll back the whole operation's writes
2. Unexpected exceptions must not leak internal detail to clients
3. X-Query-Count must report the actual number of SQL statements
4. CORS must not set allow_credentials=true with allow_origins=*
5. A token keeps the role it was issued with until it expires
"""
import pytest
from graphql import GraphQLError
from httpx import AsyncClient

from knowledge_base.auth import Role
from knowledge_base.errors import Forbidden
from knowledge_base.graphql.errors import format_error
from knowledge_base.services import category_service


# ---------------------------------------------------------------------------
# 1. Operation-level rollback
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_failed_mutation_field_rolls_back_earlier_fields(gql, make_user):
    """
    Two mutations in one document: the first succeeds, the second fails
    validation.  Nothing from the first may be committed.
    """
    _, editor = await make_user("writer", role=Role.EDITOR)
    document = """
    mutation {
      first: createCategory(input: {name: "Would Be Kept"}) { id }
      second: createCategory(input: {name: "???"}) { id }
    }
    """
    status, body = await gql(document, headers=editor)
    assert status == 400
    assert body["errors"][0]["extensions"]["code"] == "BAD_USER_INPUT"

    _, body = await gql("{ categories { name } }")
    assert body["data"]["categories"] == []


# ---------------------------------------------------------------------------
# 2. Internal errors are masked
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_unexpected_exception_is_masked(gql, monkeypatch):
    async def explode(db):
        raise RuntimeError("connection string postgres://secret@db")

    monkeypatch.setattr(category_service, "get_categories", explode)

    status, body = await gql("{ categories { id } }")
    assert status == 400
    error = body["errors"][0]
    assert error["message"] == "Internal server error"
    assert error["extensions"]["code"] == "INTERNAL_SERVER_ERROR"
    assert "secret" not in str(body)


def test_format_error_keeps_domain_message_and_code():
    error = GraphQLError("ignored", original_error=Forbidden())
    formatted = format_error(error)
    assert formatted["message"] == "Insufficient permissions"
    assert formatted["extensions"] == {"code": "FORBIDDEN"}


def test_format_error_masks_unexpected_exception():
    error = GraphQLError("boom", original_error=KeyError("password_hash"))
    formatted = format_error(error)
    assert formatted["message"] == "Internal server error"
    assert formatted["extensions"] == {"code": "INTERNAL_SERVER_ERROR"}

    detailed = format_error(error, debug=True)
    assert "password_hash" in detailed["extensions"]["exception"]


def test_format_error_passes_graphql_validation_errors_through():
    formatted = format_error(GraphQLError("Cannot query field 'nope' on type 'Query'."))
    assert formatted["message"] == "Cannot query field 'nope' on type 'Query'."
    assert formatted["extensions"]["code"] == "GRAPHQL_VALIDATION_FAILED"


# ---------------------------------------------------------------------------
# 3. X-Query-Count reports actual query count
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_query_count_header_counts_nested_resolvers(async_client: AsyncClient, gql, make_user):
    """
    One published article listed with its tags: one SELECT for the list
    page plus one SELECT per article for ``Article.tags``.
    """
    _, editor = await make_user("writer", role=Role.EDITOR)
    _, body = await gql(
        "mutation { createArticle(input: {title: \"Counted\", content: \"x\"}) { id } }", headers=editor
    )
    await gql(
        "mutation P($id: ID!) { publishArticle(id: $id) { id } }",
        {"id": body["data"]["createArticle"]["id"]},
        editor,
    )

    resp = await async_client.post("/graphql", json={"query": "{ articles { id } }"})
    assert int(resp.headers["x-query-count"]) == 1

    resp = await async_client.post("/graphql", json={"query": "{ articles { id tags { id } } }"})
    assert int(resp.headers["x-query-count"]) == 2


# ---------------------------------------------------------------------------
# 4. CORS headers
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_cors_no_credentials_with_wildcard_origin(async_client: AsyncClient):
    """
    When allow_origins=["*"], the response must NOT include
    Access-Control-Allow-Credentials: true; browsers reject that combination.
    """
    resp = await async_client.options(
        "/graphql",
        headers={
            "Origin": "https://example.com",
            "Access-Control-Request-Method": "POST",
        },
    )
    cred_header = resp.headers.get("access-control-allow-credentials", "").lower()
    assert cred_header != "true", (
        "CORS must not combine allow_origins=* with allow_credentials=true"
    )


# ---------------------------------------------------------------------------
# 5. Claims are read from the token, not the database
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_token_of_deleted_user_reads_me_as_null(gql, make_user):
    _, admin = await make_user("boss", role=Role.ADMIN)
    target, target_headers = await make_user("leaving")

    await gql("mutation D($id: ID!) { deleteUser(id: $id) }", {"id": target["id"]}, admin)

    status, body = await gql("{ me { id } }", headers=target_headers)
    assert status == 200
    assert body["data"]["me"] is None
