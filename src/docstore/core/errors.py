from __future__ import annotations

import typing as t


class DocstoreError(Exception):
    """Base error carrying a stable machine-readable code and an HTTP status."""

    code: str = "INTERNAL"
    status: int = 500
    default_message: str = "Server error"

    def __init__(self, message: t.Optional[str] = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)

    def to_dict(self) -> t.Dict[str, t.Any]:
        return {"error": {"code": self.status, "type": self.code, "text": self.message}}


class UnauthorizedError(DocstoreError):
    code = "UNAUTHORIZED"
    status = 401
    default_message = "Unauthorized"


class ForbiddenError(DocstoreError):
    code = "FORBIDDEN"
    status = 403
    default_message = "Access denied"


class AccessDenied(ForbiddenError):
    """Raised by the access evaluator when the visibility rule fails."""


class NotFoundError(DocstoreError):
    code = "NOT_FOUND"
    status = 404
    default_message = "Not found"


class ConflictError(DocstoreError):
    code = "CONFLICT"
    status = 409
    default_message = "Login already exists"


class InvalidInputError(DocstoreError):
    code = "INVALID_INPUT"
    status = 400
    default_message = "Invalid parameters"


class InternalError(DocstoreError):
    code = "INTERNAL"
    status = 500
    default_message = "Server error"


class GenerationError(InternalError):
    """Secure random source unavailable while minting a session token."""

    default_message = "Token generation failed"


class DuplicateLoginError(Exception):
    """Raised by storage adapters when a login is already taken."""

    def __init__(self, login: str) -> None:
        self.login = login
        super().__init__(f"login already exists: {login}")
