"""
Load assessment definitions from JSON files.

Each file <slug>.json holds {"config": ..., "questions": [...],
"answers": [...], "buckets": [...]}.
"""

import copy
import json
from pathlib import Path
from typing import Any

from assessment_engine.engine.errors import AssessmentLoadError
from assessment_engine.state.assessment_state import AssessmentDefinition


REQUIRED_SECTIONS = ("config", "questions", "answers", "buckets")


class AssessmentLoader:
    """Load and cache assessment definitions from a directory."""

    def __init__(self, assessments_dir: str | Path = "assessments"):
        self.assessments_dir = Path(assessments_dir)
        self._cache: dict[str, AssessmentDefinition] = {}

    def list_assessments(self) -> list[str]:
        """Slugs of every assessment file in the directory."""
        if not self.assessments_dir.is_dir():
            return []
        return sorted(p.stem for p in self.assessments_dir.glob("*.json"))

    def load_assessment(self, slug: str) -> AssessmentDefinition:
        """
        Load an assessment definition by slug.

        Args:
            slug: Assessment identifier (e.g., "gtm_readiness")

        Returns:
            A deep copy of the definition, so callers may mutate it freely

        Raises:
            AssessmentLoadError: If the file is missing, not valid JSON, or
                lacks one of config/questions/answers/buckets
        """
        if slug not in self._cache:
            self._cache[slug] = self._read(slug)
        return copy.deepcopy(self._cache[slug])

    def _read(self, slug: str) -> AssessmentDefinition:
        if not slug or Path(slug).name != slug:
            raise AssessmentLoadError(f"Invalid assessment slug: {slug!r}")

        path = self.assessments_dir / f"{slug}.json"
        if not path.exists():
            raise AssessmentLoadError(f"Assessment file not found: {path}")

        try:
            with open(path, "r", encoding="utf-8") as f:
                raw: Any = json.load(f)
        except json.JSONDecodeError as e:
            raise AssessmentLoadError(f"Invalid JSON in {path}: {e}")

        if not isinstance(raw, dict):
            raise AssessmentLoadError(f"Assessment file {path} must contain a JSON object")

        missing = [section for section in REQUIRED_SECTIONS if section not in raw]
        if missing:
            raise AssessmentLoadError(f"Assessment {slug} is missing: {', '.join(missing)}")

        config = dict(raw["config"])
        config.setdefault("slug", slug)

        return {
            "config": config,
            "questions": list(raw["questions"]),
            "answers": list(raw["answers"]),
            "buckets": list(raw["buckets"]),
        }
