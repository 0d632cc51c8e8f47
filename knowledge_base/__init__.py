"""Knowledge base publishing API: articles, taxonomy and comments over GraphQL."""

__version__ = "1.0.0"
