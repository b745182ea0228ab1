"""
API Module
"""
from .graphql import create_graphql_router, schema
from .middleware import RequestLoggingMiddleware

__all__ = [
    "create_graphql_router",
    "schema",
    "RequestLoggingMiddleware",
]
