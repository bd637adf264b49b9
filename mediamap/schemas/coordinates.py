"""Schemas for the free-text coordinate parser endpoint."""

from typing import Optional

from pydantic import BaseModel, Field


class ParseRequest(BaseModel):
    text: str = Field(..., max_length=2000, examples=["lat 22.889299 lon 22.169399"])
    ocr: bool = Field(False, description="Also try the OCR quirk templates")


class ParseResponse(BaseModel):
    found: bool
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    template: Optional[str] = None
