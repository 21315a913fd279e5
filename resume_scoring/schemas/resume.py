from __future__ import annotations

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field

from .analysis import AnalysisResponse

NoticeVariant = Literal["default", "destructive"]


class ResumeRecord(BaseModel):
    id: str
    user_id: str | None = None
    filename: str
    file_path: str
    file_size: int = Field(ge=0)
    content_preview: str | None = None
    uploaded_at: datetime
    updated_at: datetime


class Notice(BaseModel):
    title: str
    description: str
    variant: NoticeVariant = "default"


class PasteRequest(BaseModel):
    text: str = Field(default="", max_length=200000)


class ResumeIntakeResponse(BaseModel):
    filename: str
    text: str
    characters: int = Field(ge=0)
    record: ResumeRecord | None = None
    analysis: AnalysisResponse
    notice: Notice


class ResumeListResponse(BaseModel):
    items: list[ResumeRecord] = Field(default_factory=list)


class SessionContentRequest(BaseModel):
    text: str = Field(default="", max_length=200000)
    filename: str | None = Field(default=None, max_length=255)
