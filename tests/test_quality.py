"""Tests for archagent.utils.quality: validate_quality."""

from archagent.utils.quality import validate_quality


def _artifacts(missing=0, empty=0, total=10):
    artifacts = {}
    for i in range(total):
        if i < missing:
            artifacts[f"artifact_{i}"] = None
        elif i < missing + empty:
            artifacts[f"artifact_{i}"] = ""
        else:
            artifacts[f"artifact_{i}"] = "content"
    return artifacts


class TestValidateQuality:
    def test_all_present(self):
        report = validate_quality(_artifacts(), assumption_count=3)
        assert report.completeness_score == 100
        assert report.consistency_score == 100
        assert report.assumption_count == 3
        assert report.warnings == []

    def test_two_missing_of_ten(self):
        report = validate_quality(_artifacts(missing=2), assumption_count=0)
        assert report.completeness_score == 80
        assert report.consistency_score == 90
        assert report.warnings == ["Missing artifact: artifact_0", "Missing artifact: artifact_1"]

    def test_empty_artifact_warns(self):
        report = validate_quality(_artifacts(empty=1), assumption_count=0)
        assert report.completeness_score == 90
        assert report.warnings == ["Empty artifact: artifact_0"]

    def test_consistency_floor(self):
        report = validate_quality(_artifacts(missing=10), assumption_count=0)
        assert report.completeness_score == 0
        assert report.consistency_score == 60

    def test_no_artifacts(self):
        report = validate_quality({}, assumption_count=0)
        assert report.completeness_score == 0
        assert report.consistency_score == 100

    def test_paths_checked_on_disk(self, tmp_path):
        present = tmp_path / "a.md"
        present.write_text("x", encoding="utf-8")
        empty = tmp_path / "b.md"
        empty.write_text("", encoding="utf-8")
        missing = tmp_path / "c.md"

        report = validate_quality([present, empty, missing], assumption_count=1)

        assert report.completeness_score == 33
        assert report.warnings == [f"Empty artifact: {empty}", f"Missing artifact: {missing}"]

    def test_deterministic(self):
        artifacts = _artifacts(missing=1, empty=1)
        assert validate_quality(artifacts, 2) == validate_quality(artifacts, 2)
