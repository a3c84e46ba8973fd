from pydantic import BaseModel
from datetime import datetime
from typing import Dict


class ErrorResponse(BaseModel):
    """Body returned for every handled error."""
    error_id: str
    timestamp: datetime
    status: int
    code: str
    message: str
    path: str


class ValidationErrorResponse(ErrorResponse):
    """Error body for rejected request input, with one message per field."""
    field_errors: Dict[str, str]
