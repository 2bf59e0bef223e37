"""ServiceResult -> HTTP response"""

from typing import Any, List, Optional

from fastapi import status
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse
from pydantic import TypeAdapter

from digital_wallet.api.v1.schemas import ApiResponse
from digital_wallet.domain.exceptions import ErrorKind
from digital_wallet.domain.models import ServiceResult

STATUS_BY_KIND = {
    ErrorKind.VALIDATION: status.HTTP_422_UNPROCESSABLE_ENTITY,
    ErrorKind.NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorKind.FORBIDDEN: status.HTTP_403_FORBIDDEN,
    ErrorKind.UNAUTHORIZED: status.HTTP_401_UNAUTHORIZED,
    ErrorKind.INVALID_OTP: status.HTTP_400_BAD_REQUEST,
    ErrorKind.INSUFFICIENT_BALANCE: status.HTTP_402_PAYMENT_REQUIRED,
    ErrorKind.LIMIT_EXCEEDED: status.HTTP_422_UNPROCESSABLE_ENTITY,
    ErrorKind.DUPLICATE: status.HTTP_409_CONFLICT,
    ErrorKind.CONFLICT: status.HTTP_409_CONFLICT,
    ErrorKind.UNEXPECTED: status.HTTP_500_INTERNAL_SERVER_ERROR,
}


def error_response(kind: ErrorKind, message: str, errors: Optional[List[str]] = None) -> JSONResponse:
    body = ApiResponse(success=False, message=message, data=None, errors=errors or [message])
    return JSONResponse(status_code=STATUS_BY_KIND.get(kind, 500), content=jsonable_encoder(body))


def render(result: ServiceResult, data_type: Any = None, status_code: int = status.HTTP_200_OK) -> JSONResponse:
    """
    Wrap a service result in the API envelope.

    data_type, when given, is the schema the result data is validated into
    before serialization (a model, List[model] or PageOut[model]).
    """
    if not result.is_success:
        return error_response(result.error, result.message, result.errors)

    data = result.data
    if data_type is not None and data is not None:
        data = TypeAdapter(data_type).validate_python(data, from_attributes=True)

    body = ApiResponse(success=True, message=result.message, data=data, errors=[])
    return JSONResponse(status_code=status_code, content=jsonable_encoder(body))
