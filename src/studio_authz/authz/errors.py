"""
studio_authz.authz.errors

Error taxonomy for authorization and the API layer built on it.

Responsibilities:
- Define request-time outcomes (Unauthorized, Forbidden, NotFound, Validation).
- Define programming-error outcomes (unknown feature, missing projection schema).
- Carry a user-facing message, an action hint and an HTTP status code.
"""

from __future__ import annotations

from collections.abc import Iterable
from typing import Any


class AuthzError(Exception):
    status_code: int = 500
    default_message: str = "An unexpected error occurred."
    default_action: str = "Contact the system administrator."

    def __init__(self, message: str | None = None, *, action: str | None = None) -> None:
        self.message = message or self.default_message
        self.action = action or self.default_action
        super().__init__(self.message)

    @property
    def name(self) -> str:
        return type(self).__name__

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "detail": self.message,
            "action": self.action,
            "status_code": self.status_code,
        }


class ValidationError(AuthzError):
    status_code = 400
    default_message = "The submitted data is invalid."
    default_action = "Fix the submitted data and try again."


class UnauthorizedError(AuthzError):
    status_code = 401
    default_message = "User is not authenticated."
    default_action = "Sign in with a valid session and try again."


class ForbiddenError(AuthzError):
    status_code = 403
    default_message = "You are not allowed to perform this operation."
    default_action = "Check that your account holds the required feature."

    def __init__(
        self,
        message: str | None = None,
        *,
        feature: str | None = None,
        action: str | None = None,
    ) -> None:
        # Feature names are not secrets; naming the one checked helps operators.
        if message is None and feature is not None:
            message = f'Missing required feature "{feature}".'
        super().__init__(message, action=action)
        self.feature = feature

    def to_dict(self) -> dict[str, Any]:
        body = super().to_dict()
        if self.feature is not None:
            body["feature"] = self.feature
        return body


class NonEditableUserError(ForbiddenError):
    default_message = "This user cannot be edited by another user."
    default_action = "Ask the user to make the change themselves."


class NotFoundError(AuthzError):
    status_code = 404
    default_message = "Resource not found."
    default_action = "Check that the path is correct."


class UnknownFeatureError(AuthzError):
    """
    A feature outside the catalog was referenced.

    This is a defect (bad guard declaration, bad assignment code path), never a
    normal deny.
    """

    status_code = 500
    default_action = "Fix the feature reference; it must exist in the feature catalog."

    def __init__(self, features: Iterable[str]) -> None:
        self.features = tuple(sorted(set(features)))
        names = ", ".join(f'"{f}"' for f in self.features)
        super().__init__(f"Unknown feature(s): {names}.")


class ProjectionNotDefinedError(AuthzError):
    status_code = 500
    default_action = "Register a projection schema for the feature."

    def __init__(self, feature: str) -> None:
        self.feature = feature
        super().__init__(f'No projection schema registered for feature "{feature}".')


# --- Module Notes -----------------------------------------------------------
# The PDP and projection functions only raise the last two classes. Deny
# outcomes are turned into Unauthorized/Forbidden by `authz.guard` alone.
