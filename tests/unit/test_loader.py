"""
Unit tests for the assessment loader.
"""

import json

import pytest

from assessment_engine.engine.errors import AssessmentLoadError
from assessment_engine.engine.loader import AssessmentLoader


class TestAssessmentLoader:
    """Test AssessmentLoader class."""

    def test_load_sample_assessment(self, assessments_dir):
        loader = AssessmentLoader(assessments_dir)
        assessment = loader.load_assessment("gtm_readiness")

        assert assessment["config"]["scoringMethod"] == "decision-tree"
        assert len(assessment["questions"]) == 2
        assert len(assessment["answers"]) == 5
        assert len(assessment["buckets"]) == 4

    def test_list_assessments(self, assessments_dir):
        loader = AssessmentLoader(assessments_dir)

        assert {"gtm_readiness", "pipeline_health"} <= set(loader.list_assessments())

    def test_list_missing_dir(self, tmp_path):
        assert AssessmentLoader(tmp_path / "nope").list_assessments() == []

    def test_unknown_slug(self, assessments_dir):
        loader = AssessmentLoader(assessments_dir)

        with pytest.raises(AssessmentLoadError):
            loader.load_assessment("unknown_assessment_xyz")

    def test_path_like_slug_rejected(self, assessments_dir):
        loader = AssessmentLoader(assessments_dir)

        with pytest.raises(AssessmentLoadError):
            loader.load_assessment("../pyproject")

    def test_invalid_json(self, tmp_path):
        (tmp_path / "broken.json").write_text("{not json", encoding="utf-8")

        with pytest.raises(AssessmentLoadError, match="Invalid JSON"):
            AssessmentLoader(tmp_path).load_assessment("broken")

    def test_missing_sections(self, tmp_path):
        (tmp_path / "partial.json").write_text(json.dumps({"config": {}, "questions": []}), encoding="utf-8")

        with pytest.raises(AssessmentLoadError, match="answers"):
            AssessmentLoader(tmp_path).load_assessment("partial")

    def test_slug_defaults_from_filename(self, tmp_path):
        body = {"config": {"scoringMethod": "points-based"}, "questions": [], "answers": [], "buckets": []}
        (tmp_path / "quick_check.json").write_text(json.dumps(body), encoding="utf-8")

        assessment = AssessmentLoader(tmp_path).load_assessment("quick_check")

        assert assessment["config"]["slug"] == "quick_check"

    def test_cache_returns_copies(self, assessments_dir):
        """Mutating a loaded assessment does not leak into the cache."""
        loader = AssessmentLoader(assessments_dir)
        first = loader.load_assessment("gtm_readiness")
        first["questions"].clear()

        second = loader.load_assessment("gtm_readiness")

        assert len(second["questions"]) == 2
