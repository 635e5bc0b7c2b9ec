from fastapi import HTTPException

from app.services.results import ServiceErrorCode, ServiceResult

HTTP_STATUS_BY_ERROR = {
    ServiceErrorCode.NOT_FOUND: 404,
    ServiceErrorCode.VALIDATION: 422,
    ServiceErrorCode.REJECTED: 400,
    ServiceErrorCode.UNAUTHORIZED: 403,
    ServiceErrorCode.CONFLICT: 409,
}


def raise_for_result(result: ServiceResult) -> None:  # type: ignore[type-arg]
    """Raise the HTTPException matching a failed service result."""
    if result.success:
        return
    status_code = HTTP_STATUS_BY_ERROR.get(result.error, 400)  # type: ignore[arg-type]
    raise HTTPException(status_code=status_code, detail=result.message)
