from typing import Any, Optional

from fastapi import status
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse


def api_response(
    data: Optional[Any] = None,
    message: str = "",
    status_code: int = status.HTTP_200_OK,
) -> JSONResponse:
    """Wrap a payload in the ``{success, statusCode, message, data}`` envelope."""
    return JSONResponse(
        status_code=status_code,
        content=jsonable_encoder(
            {
                "success": 200 <= status_code < 300,
                "statusCode": status_code,
                "message": message,
                "data": data if data is not None else {},
            }
        ),
    )
