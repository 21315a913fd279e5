from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

ScoreBand = Literal["success", "warning", "destructive"]
AnalysisStatus = Literal["empty", "analyzing", "ready", "failed"]


class AnalysisInput(BaseModel):
    model_config = ConfigDict(frozen=True)

    text: str = Field(default="", max_length=200000)
    filename: str | None = Field(default=None, max_length=255)


class ScoreBreakdown(BaseModel):
    model_config = ConfigDict(frozen=True)

    formatting: int = Field(ge=0, le=100)
    keywords: int = Field(ge=0, le=100)
    grammar: int = Field(ge=0, le=100)
    # Capped at 100 but intentionally not floored.
    readability: int = Field(le=100)


class ReadabilityMetrics(BaseModel):
    model_config = ConfigDict(frozen=True)

    sentences: int = Field(ge=0)
    avg_words_per_sentence: float = Field(ge=0.0)
    complex_words: int = Field(ge=0)


class AnalysisResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    overall: int
    breakdown: ScoreBreakdown
    suggestions: tuple[str, ...] = ()
    matched_keywords: tuple[str, ...] = ()
    grammar_issues: tuple[str, ...] = ()
    readability_metrics: ReadabilityMetrics


class AnalysisResponse(BaseModel):
    status: AnalysisStatus
    filename: str | None = None
    result: AnalysisResult | None = None
    label: str | None = None
    bands: dict[str, ScoreBand] = Field(default_factory=dict)


class AnalysisState(BaseModel):
    model_config = ConfigDict(frozen=True)

    status: AnalysisStatus = "empty"
    filename: str | None = None
    result: AnalysisResult | None = None
    generation: int = Field(default=0, ge=0)
