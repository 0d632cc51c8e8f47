import json

from ariadne import graphql
from ariadne.explorer import ExplorerGraphiQL
from fastapi import APIRouter, Depends, Request
from fastapi.responses import HTMLResponse, JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from knowledge_base.config import settings
from knowledge_base.database import get_db
from knowledge_base.graphql import schema
from knowledge_base.graphql.context import build_context
from knowledge_base.graphql.errors import format_error

router = APIRouter(tags=["graphql"])

explorer_html = ExplorerGraphiQL(title="Knowledge Base API").html(None)


@router.get("/graphql", response_class=HTMLResponse)
async def graphql_explorer():
    return HTMLResponse(explorer_html)


@router.post("/graphql")
async def graphql_server(request: Request, db: AsyncSession = Depends(get_db)):
    try:
        data = await request.json()
    except json.JSONDecodeError:
        return JSONResponse({"errors": [{"message": "Request body is not valid JSON"}]}, status_code=400)

    context = build_context(request, db)
    success, result = await graphql(
        schema,
        data,
        context_value=context,
        error_formatter=format_error,
        debug=settings.DEBUG,
        logger="knowledge_base.graphql",
    )

    # A failed field must not leave half of a mutation behind; get_db
    # commits whatever is still pending once the response is returned.
    if result.get("errors"):
        await db.rollback()

    return JSONResponse(result, status_code=200 if success else 400)
