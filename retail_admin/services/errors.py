"""
Service Errors

Every failure a service reports carries a ``kind`` and a human-readable
message. ``extensions`` is picked up by graphql-core when the error is
raised inside a resolver, so clients see the kind next to the message.
"""

from typing import Any, Dict


class RetailAdminError(Exception):
    """Base class for errors raised by the core services"""

    kind = "RetailAdminError"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    @property
    def extensions(self) -> Dict[str, Any]:
        return {"kind": self.kind}

    def __str__(self) -> str:
        return self.message


class NotFound(RetailAdminError):
    """Referenced product, sale or inventory row does not exist"""
    kind = "NotFound"


class ValidationError(RetailAdminError):
    """A field constraint was violated"""
    kind = "ValidationError"


class InvalidAdjustment(RetailAdminError):
    """Stock adjustment would drive the stock count below zero"""
    kind = "InvalidAdjustment"


class InvalidQuantity(RetailAdminError):
    """Restock quantity was zero or negative"""
    kind = "InvalidQuantity"


class IntegrityError(RetailAdminError):
    """Uniqueness, foreign-key or check violation reported by the store"""
    kind = "IntegrityError"


class ConcurrentUpdate(RetailAdminError):
    """Inventory row changed between read and write"""
    kind = "ConcurrentUpdate"
