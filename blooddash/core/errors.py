from __future__ import annotations

from sqlalchemy.exc import SQLAlchemyError


class ActionError(Exception):
    """
    Terminal failure of a server action.

    Rendered to callers as {"data": null, "error": message}; the message is
    always human readable and never a structured code.
    """

    status_code = 400

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationFailed(ActionError):
    status_code = 400


class NotAuthenticated(ActionError):
    status_code = 401

    def __init__(self, message: str = "Not authenticated"):
        super().__init__(message)


class Forbidden(ActionError):
    status_code = 403


class NotFound(ActionError):
    status_code = 404


class ProviderError(ActionError):
    """Auth provider failure; message is passed through verbatim."""

    status_code = 400


class LinkFailed(ActionError):
    status_code = 500


NO_CENTER_ASSIGNED = "No center assigned to your account. Please contact an administrator."


def store_message(exc: SQLAlchemyError) -> str:
    orig = getattr(exc, "orig", None)
    return str(orig) if orig is not None else str(exc)
