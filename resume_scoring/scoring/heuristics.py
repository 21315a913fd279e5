from __future__ import annotations

import math
import re
from typing import Sequence

from resume_scoring.core.config.scoring import get_keyword_vocabulary
from resume_scoring.schemas.analysis import (
    AnalysisResult,
    ReadabilityMetrics,
    ScoreBand,
    ScoreBreakdown,
)

_SENTENCE_SPLIT_RE = re.compile(r"[.!?]+")
_YEAR_RE = re.compile(r"\b\d{4}\b", re.ASCII)

GRAMMAR_PENALTY = 15
COMPLEX_WORD_MIN_LENGTH = 8
TARGET_WORDS_PER_SENTENCE = 15
SHORT_TEXT_CHARS = 200
LONG_TEXT_CHARS = 5000

LOWERCASE_I_ISSUE = 'Use of lowercase "i" instead of "I"'
MISSING_END_PUNCTUATION_ISSUE = "Missing punctuation at the end"
DOUBLE_SPACE_ISSUE = "Multiple consecutive spaces found"

KEYWORD_SUGGESTION = "Include more relevant industry keywords and technical skills"
GRAMMAR_SUGGESTION = "Review grammar and punctuation throughout the document"
READABILITY_SUGGESTION = "Simplify sentence structure and reduce complex terminology"
FORMATTING_SUGGESTION = "Ensure proper formatting with consistent structure and contact information"
SKILLS_SUGGESTION = "Add more specific technical skills and industry-relevant terms"


def round_half_up(value: float) -> int:
    """Round to the nearest integer with ties going up, also for negatives (-2.5 -> -2)."""
    return int(math.floor(value + 0.5))


def _sentences(text: str) -> list[str]:
    return [fragment for fragment in _SENTENCE_SPLIT_RE.split(text) if fragment.strip()]


def _words(text: str) -> list[str]:
    return text.split()


def keyword_matches(text: str, keywords: Sequence[str]) -> list[str]:
    folded = text.casefold()
    return [keyword for keyword in keywords if keyword.casefold() in folded]


def keyword_score(matched: Sequence[str], keywords: Sequence[str]) -> float:
    if not keywords:
        return 0.0
    return min(len(matched) / len(keywords) * 100, 100.0)


def grammar_issues(text: str) -> list[str]:
    issues: list[str] = []
    if " i " in text:
        issues.append(LOWERCASE_I_ISSUE)
    if not text.strip().endswith((".", "!", "?")):
        issues.append(MISSING_END_PUNCTUATION_ISSUE)
    if "  " in text:
        issues.append(DOUBLE_SPACE_ISSUE)
    return issues


def grammar_score(issues: Sequence[str]) -> float:
    return float(max(100 - len(issues) * GRAMMAR_PENALTY, 0))


def readability(text: str) -> tuple[float, int, float, int]:
    """Return (score, sentence count, average words per sentence, complex word count).

    With no sentences the average falls back to 0.0, and with no words the
    complex-word ratio is 0. The score is capped at 100 but has no lower bound.
    """
    sentence_count = len(_sentences(text))
    words = _words(text)
    word_count = len(words)

    avg_words = word_count / sentence_count if sentence_count else 0.0
    complex_words = sum(1 for word in words if len(word) >= COMPLEX_WORD_MIN_LENGTH)
    complex_ratio = complex_words / word_count if word_count else 0.0

    score = min(
        100 - abs(avg_words - TARGET_WORDS_PER_SENTENCE) * 2 - complex_ratio * 50,
        100.0,
    )
    return score, sentence_count, avg_words, complex_words


def formatting_score(text: str) -> float:
    score = 100
    if len(text) < SHORT_TEXT_CHARS:
        score -= 30
    if len(text) > LONG_TEXT_CHARS:
        score -= 20
    if "@" not in text:
        score -= 10
    if not _YEAR_RE.search(text):
        score -= 10
    return float(max(score, 0))


def build_suggestions(breakdown: ScoreBreakdown, matched_count: int) -> list[str]:
    suggestions: list[str] = []
    if breakdown.keywords < 60:
        suggestions.append(KEYWORD_SUGGESTION)
    if breakdown.grammar < 80:
        suggestions.append(GRAMMAR_SUGGESTION)
    if breakdown.readability < 70:
        suggestions.append(READABILITY_SUGGESTION)
    if breakdown.formatting < 80:
        suggestions.append(FORMATTING_SUGGESTION)
    if matched_count < 5:
        suggestions.append(SKILLS_SUGGESTION)
    return suggestions


def analyze(text: str, keywords: Sequence[str] | None = None) -> AnalysisResult:
    """Score resume text with the formatting, keyword, grammar and readability heuristics.

    Pure and total: any string, including an empty one, produces a result.
    Deciding whether blank input should be analysed at all is up to the caller.
    When ``keywords`` is omitted the default profile from config/scoring.yaml is used.
    """
    vocabulary = tuple(keywords) if keywords is not None else get_keyword_vocabulary()

    matched = keyword_matches(text, vocabulary)
    issues = grammar_issues(text)
    readability_value, sentence_count, avg_words, complex_words = readability(text)

    breakdown = ScoreBreakdown(
        formatting=round_half_up(formatting_score(text)),
        keywords=round_half_up(keyword_score(matched, vocabulary)),
        grammar=round_half_up(grammar_score(issues)),
        readability=round_half_up(readability_value),
    )
    overall = round_half_up(
        (breakdown.formatting + breakdown.keywords + breakdown.grammar + breakdown.readability) / 4
    )

    return AnalysisResult(
        overall=overall,
        breakdown=breakdown,
        suggestions=tuple(build_suggestions(breakdown, len(matched))),
        matched_keywords=tuple(matched),
        grammar_issues=tuple(issues),
        readability_metrics=ReadabilityMetrics(
            sentences=sentence_count,
            avg_words_per_sentence=round_half_up(avg_words * 10) / 10,
            complex_words=complex_words,
        ),
    )


def score_band(score: int) -> ScoreBand:
    if score >= 80:
        return "success"
    if score >= 60:
        return "warning"
    return "destructive"


def overall_label(score: int) -> str:
    if score >= 80:
        return "Excellent"
    if score >= 60:
        return "Good"
    return "Needs Improvement"


def breakdown_bands(breakdown: ScoreBreakdown) -> dict[str, ScoreBand]:
    return {category: score_band(value) for category, value in breakdown.model_dump().items()}
