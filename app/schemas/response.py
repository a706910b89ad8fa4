from typing import Generic, TypeVar, Optional, List
from pydantic import BaseModel

T = TypeVar("T")

class APIResponse(BaseModel, Generic[T]):
    """
    Standard API response wrapper.
    """
    message: str = "success"
    data: Optional[T] = None

class ValidationErrorDetail(BaseModel):
    """
    Structure for a single validation error.
    """
    field: str
    message: str

class ValidationErrorResponse(BaseModel):
    """
    Response schema for validation errors (400 Bad Request).
    """
    message: str = "Validation Error"
    data: List[ValidationErrorDetail]

    model_config = {
        "json_schema_extra": {
            "example": {
                "message": "Validation Error",
                "data": [
                    {
                        "field": "number_of_members",
                        "message": "Input should be greater than or equal to 2"
                    },
                    {
                        "field": "currency",
                        "message": "Field required"
                    }
                ]
            }
        }
    }

class ErrorCode(BaseModel):
    code: str | None = None

class HTTPErrorResponse(BaseModel):
    """
    Schema for domain and HTTP errors (401, 403, 404, 409, 410).
    """
    message: str
    data: ErrorCode = ErrorCode()

    model_config = {
        "json_schema_extra": {
            "example": {
                "message": "Round is full",
                "data": {"code": "CONFLICT"}
            }
        }
    }
