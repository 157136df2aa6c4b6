from fastapi import HTTPException, status

from salon_api.services.results import ActionResult

REASON_STATUS_CODES = {
    'persistence': status.HTTP_503_SERVICE_UNAVAILABLE,
    'capacity': status.HTTP_409_CONFLICT,
    'conflict': status.HTTP_409_CONFLICT,
    'not_found': status.HTTP_404_NOT_FOUND,
    'invalid': status.HTTP_400_BAD_REQUEST,
    'forbidden': status.HTTP_403_FORBIDDEN,
    'unauthorized': status.HTTP_401_UNAUTHORIZED,
}


def raise_for_result(result: ActionResult):
    """Return ``result.data`` or raise the HTTP error matching the failure reason."""
    if result.success:
        return result.data

    raise HTTPException(
        status_code=REASON_STATUS_CODES.get(result.reason, status.HTTP_400_BAD_REQUEST),
        detail=result.message,
    )
