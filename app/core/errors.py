"""
Failure reasons for registry, journal and query operations.

Every error is an HTTPException so services can raise them the same way they
raise any other HTTP error, while callers that use the services directly can
still tell the reasons apart by type or by the stable `code` attribute.
"""
from fastapi import HTTPException, Request, status
from fastapi.responses import JSONResponse


class ProvenanceError(HTTPException):
    code = "provenance_error"
    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, detail: str):
        super().__init__(status_code=self.status_code, detail=detail)


class Unauthorized(ProvenanceError):
    """Caller lacks the role the operation requires."""
    code = "unauthorized"
    status_code = status.HTTP_403_FORBIDDEN


class NotFound(ProvenanceError):
    """No active product exists at the handle."""
    code = "not_found"
    status_code = status.HTTP_404_NOT_FOUND


class InvalidTransition(ProvenanceError):
    """Requested stage is out of range or not strictly after the current one."""
    code = "invalid_transition"
    status_code = status.HTTP_409_CONFLICT


class DuplicateProduct(ProvenanceError):
    code = "duplicate_product"
    status_code = status.HTTP_409_CONFLICT


class AlreadyAuthorized(ProvenanceError):
    code = "already_authorized"
    status_code = status.HTTP_409_CONFLICT


class NotAuthorized(ProvenanceError):
    code = "not_authorized"
    status_code = status.HTTP_409_CONFLICT


class CannotRevokeAdmin(ProvenanceError):
    code = "cannot_revoke_admin"
    status_code = status.HTTP_409_CONFLICT


class InvalidInput(ProvenanceError):
    """Empty required string, empty principal or negative amount."""
    code = "invalid_input"
    status_code = status.HTTP_400_BAD_REQUEST


class InvalidTarget(InvalidInput):
    code = "invalid_target"


class InvalidRole(InvalidInput):
    code = "invalid_role"


async def provenance_error_handler(request: Request, exc: ProvenanceError) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.detail, "code": exc.code},
    )
