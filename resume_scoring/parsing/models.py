from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, Field, field_validator

ExtractedSource = Literal["pdf", "word", "text"]


class ExtractedText(BaseModel):
    filename: str
    source_type: ExtractedSource
    text: str
    characters: int = Field(ge=0)
    details: dict[str, Any] = Field(default_factory=dict)

    @field_validator("filename")
    @classmethod
    def _validate_filename(cls, value: str) -> str:
        normalized = value.strip()
        return normalized or "uploaded-file"
