from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from resume_scoring.core.config.scoring import get_keyword_vocabulary, list_keyword_profiles  # noqa: E402
from resume_scoring.parsing.extract import extract_text_from_upload  # noqa: E402
from resume_scoring.scoring.heuristics import analyze, overall_label  # noqa: E402


def main() -> int:
    parser = argparse.ArgumentParser(description="Score a resume file (PDF, DOCX or TXT) with the heuristic scorer.")
    parser.add_argument("path", help="Resume file to score")
    parser.add_argument(
        "--profile",
        default="default",
        choices=list_keyword_profiles(),
        help="Keyword vocabulary profile from config/scoring.yaml",
    )
    parser.add_argument("--json", action="store_true", help="Print the full analysis as JSON.")
    args = parser.parse_args()

    path = Path(args.path)
    extracted = extract_text_from_upload(path.name, path.read_bytes())
    if not extracted.text.strip():
        print(f"No text could be extracted from '{path.name}'.", file=sys.stderr)
        return 1

    result = analyze(extracted.text, get_keyword_vocabulary(args.profile))
    if args.json:
        print(json.dumps(result.model_dump(mode="json"), indent=2, ensure_ascii=False))
        return 0

    print(f"{path.name}: {result.overall}/100 ({overall_label(result.overall)})")
    for category, score in result.breakdown.model_dump().items():
        print(f"  {category:<12} {score}")
    if result.matched_keywords:
        print(f"  keywords: {', '.join(result.matched_keywords)}")
    for suggestion in result.suggestions:
        print(f"  - {suggestion}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
