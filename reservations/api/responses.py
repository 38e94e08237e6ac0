from fastapi import status
from fastapi.responses import JSONResponse

from reservations.core.errors import ErrorCode, status_for
from reservations.schemas.common import ApiResponse


def envelope_response(result: ApiResponse, success_status: int = status.HTTP_200_OK) -> JSONResponse:
    """HTTP status follows the envelope: ``success_status`` on success, else mapped from the error code."""
    if result.success:
        code = success_status
    else:
        try:
            code = status_for(ErrorCode(result.error))
        except ValueError:
            code = status.HTTP_400_BAD_REQUEST
    return JSONResponse(status_code=code, content=result.model_dump(mode="json", exclude_none=True))
