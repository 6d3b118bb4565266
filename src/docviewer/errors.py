"""Error taxonomy shared by the access-control core and the HTTP layer."""


class DocViewerError(Exception):
    """Base error. `kind` is the stable, machine-readable name sent to clients."""

    kind = "DocViewerError"
    status = 500

    def __init__(self, message: str = "") -> None:
        super().__init__(message or self.kind)
        self.message = message or self.kind


class InvalidCredentials(DocViewerError):
    kind = "InvalidCredentials"
    status = 401

    def __init__(self, message: str = "Invalid username or password") -> None:
        super().__init__(message)


class SessionInvalid(DocViewerError):
    """Missing, unknown, expired or revoked session token."""

    kind = "SessionInvalid"
    status = 401

    def __init__(self, message: str = "Invalid or expired session") -> None:
        super().__init__(message)


class IdentifierRejected(DocViewerError):
    """Malformed or traversal-attempting identifier. Always a client error."""

    kind = "IdentifierRejected"
    status = 400


class AccessDenied(DocViewerError):
    """Authorization failure.

    For catalog documents this is rendered exactly like a missing document so
    callers cannot probe for existence; `status` is 404 in that case.
    """

    kind = "AccessDenied"
    status = 403

    def __init__(self, message: str = "Access denied", status: int | None = None) -> None:
        super().__init__(message)
        if status is not None:
            self.status = status


class ResourceNotFound(DocViewerError):
    kind = "ResourceNotFound"
    status = 404


class StorageUnavailable(DocViewerError):
    """Unexpected filesystem or document-store fault."""

    kind = "StorageUnavailable"
    status = 503
