"""Response envelope and Result -> HTTP translation.

Every response body has the shape ``{success, data?, message?, error?}``.
"""

from typing import Any, Iterable, Optional

from fastapi.responses import JSONResponse
from pydantic import BaseModel

from ..results import Err, ErrorKind, FieldError

STATUS_CODES = {
    ErrorKind.NOT_FOUND: 404,
    ErrorKind.CONFLICT: 400,
    ErrorKind.INVALID_RANGE: 400,
    ErrorKind.VALIDATION: 400,
}


def dump(value: Any) -> Any:
    """Convert models (or lists of models) into JSON-ready camelCase data."""
    if isinstance(value, BaseModel):
        return value.model_dump(mode="json", by_alias=True)
    if isinstance(value, (list, tuple)):
        return [dump(item) for item in value]
    return value


def success(
    data: Any = None, message: Optional[str] = None, status_code: int = 200
) -> JSONResponse:
    """Build a success envelope."""
    body: dict[str, Any] = {"success": True}
    if data is not None:
        body["data"] = dump(data)
    if message:
        body["message"] = message
    return JSONResponse(status_code=status_code, content=body)


def failure(error: str, status_code: int, data: Any = None) -> JSONResponse:
    """Build a failure envelope."""
    body: dict[str, Any] = {"success": False, "error": error}
    if data is not None:
        body["data"] = data
    return JSONResponse(status_code=status_code, content=body)


def validation_failure(fields: Iterable[FieldError]) -> JSONResponse:
    """Build the 400 envelope listing field-level problems."""
    details = [{"field": f.field, "message": f.message} for f in fields]
    return failure("Validation failed", 400, data={"details": details})


def from_err(err: Err) -> JSONResponse:
    """Translate a core Err into its HTTP response."""
    if err.kind == ErrorKind.VALIDATION:
        return validation_failure(err.fields)
    return failure(err.detail, STATUS_CODES[err.kind])
