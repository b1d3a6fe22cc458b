from typing import Any, List, Optional

from pydantic import BaseModel


class ErrorResponse(BaseModel):
    detail: str
    errors: Optional[List[Any]] = None


class MessageResponse(BaseModel):
    message: str
