# schemas/common.py
"""
Shared response envelopes.
"""
from pydantic import BaseModel


class ErrorResponse(BaseModel):
     """Schema for domain errors."""
     success: bool = False
     message: str
     code: str
