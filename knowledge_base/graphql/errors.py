from ariadne import unwrap_graphql_error
from graphql import GraphQLError

from knowledge_base.errors import KnowledgeBaseError

INTERNAL_ERROR_MESSAGE = "Internal server error"


def format_error(error: GraphQLError, debug: bool = False) -> dict:
    """
    Turn a resolver failure into a client-safe GraphQL error payload.

    Domain errors keep their message and expose their code under
    ``extensions.code``.  Anything unexpected is reported as a generic
    internal error; ariadne has already logged it with its traceback.
    Parse and validation errors from graphql-core pass through unchanged.
    """
    formatted = dict(error.formatted)
    original = unwrap_graphql_error(error)

    if isinstance(original, KnowledgeBaseError):
        formatted["message"] = original.message
        formatted["extensions"] = {"code": original.code}
    elif original is not None and not isinstance(original, GraphQLError):
        formatted["message"] = INTERNAL_ERROR_MESSAGE
        extensions = {"code": "INTERNAL_SERVER_ERROR"}
        if debug:
            extensions["exception"] = repr(original)
        formatted["extensions"] = extensions
    else:
        formatted.setdefault("extensions", {}).setdefault("code", "GRAPHQL_VALIDATION_FAILED")

    return formatted
