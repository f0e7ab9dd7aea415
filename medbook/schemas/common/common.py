# medbook/schemas/common/common.py
from pydantic import BaseModel
from typing import Optional


class ErrorResponse(BaseModel):
    success: bool = False
    data: None = None
    error: str
    code: Optional[str] = None
    field: Optional[str] = None
