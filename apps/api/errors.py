"""Errors that carry the HTTP status they should be reported with."""


class StatusCodeError(Exception):
    status_code: int = 500


class InvalidRequestError(StatusCodeError):
    status_code = 400


class NotFoundError(StatusCodeError):
    status_code = 404


class AuditTransitionError(StatusCodeError):
    """Raised when an audit that already reached a terminal state is completed again."""

    status_code = 409
