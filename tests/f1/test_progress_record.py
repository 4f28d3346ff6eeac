"""Tests for the progress update rule (F1)."""

import pytest

from estudio.core.progress import (
    InvalidConfidenceError,
    ProgressRecord,
    ProgressUpdate,
    apply_update,
    validate_confidence,
)

NOW = "2024-05-01T10:00:00+00:00"


def _submit_all(levels: list[int]) -> ProgressRecord:
    record = ProgressRecord()
    for level in levels:
        record = apply_update(record, ProgressUpdate(confidence=level), now=NOW)
    return record


class TestApplyConfidence:
    """Tests for confidence submissions."""

    def test_first_submission(self):
        """First submission initializes every counter."""
        record = apply_update(ProgressRecord(), ProgressUpdate(confidence=4), now=NOW)

        assert record.veces_mostrada == 1
        assert record.confianza_count == 1
        assert record.confianza_sum == 4
        assert record.ultima_confianza == 4
        assert record.confianza_promedio == 4.0
        assert record.ultima_fecha_vista == NOW
        assert record.marcada_para_repaso is False

    def test_n_submissions_accumulate(self):
        """N submissions -> count N, rounded mean, last value."""
        record = _submit_all([5, 3, 4, 1])

        assert record.veces_mostrada == 4
        assert record.confianza_count == 4
        assert record.confianza_sum == 13
        assert record.confianza_promedio == 3.25
        assert record.ultima_confianza == 1

    def test_average_rounded_to_two_decimals(self):
        """Average is rounded to 2 decimals."""
        record = _submit_all([1, 1, 2])
        assert record.confianza_promedio == 1.33

    def test_count_matches_views(self):
        """confianza_count and veces_mostrada move together."""
        record = _submit_all([2, 2, 5, 3, 1, 4])
        assert record.confianza_count == record.veces_mostrada == 6

    def test_existing_record_not_mutated(self):
        """apply_update returns a new record."""
        existing = _submit_all([3])
        updated = apply_update(existing, ProgressUpdate(confidence=5), now=NOW)

        assert existing.veces_mostrada == 1
        assert existing.confianza_sum == 3
        assert updated.veces_mostrada == 2
        assert updated.confianza_promedio == 4.0


class TestApplyBookmark:
    """Tests for the bookmark flag."""

    def test_bookmark_does_not_touch_counters(self):
        """Toggling the bookmark never changes counts, sum or average."""
        record = _submit_all([4, 2])
        marked = apply_update(record, ProgressUpdate(marked=True), now=NOW)
        unmarked = apply_update(marked, ProgressUpdate(marked=False), now=NOW)

        for r in (marked, unmarked):
            assert r.veces_mostrada == 2
            assert r.confianza_count == 2
            assert r.confianza_sum == 6
            assert r.confianza_promedio == 3.0
            assert r.ultima_confianza == 2

        assert marked.marcada_para_repaso is True
        assert unmarked.marcada_para_repaso is False

    def test_bookmark_on_new_record(self):
        """Bookmarking an unseen question keeps confidence empty."""
        record = apply_update(ProgressRecord(), ProgressUpdate(marked=True), now=NOW)

        assert record.marcada_para_repaso is True
        assert record.veces_mostrada == 0
        assert record.ultima_confianza is None
        assert record.confianza_promedio is None
        assert record.ultima_fecha_vista == NOW

    def test_confidence_and_bookmark_together(self):
        """Both fields apply in one update."""
        record = apply_update(
            ProgressRecord(), ProgressUpdate(confidence=3, marked=True), now=NOW
        )
        assert record.confianza_count == 1
        assert record.marcada_para_repaso is True

    def test_empty_update_only_touches_timestamp(self):
        """An update with no fields only refreshes the timestamp."""
        record = _submit_all([5])
        updated = apply_update(record, ProgressUpdate(), now="2025-01-01T00:00:00+00:00")

        assert updated.confianza_count == 1
        assert updated.ultima_fecha_vista == "2025-01-01T00:00:00+00:00"


class TestValidateConfidence:
    """Tests for validate_confidence."""

    @pytest.mark.parametrize("level", [1, 2, 3, 4, 5])
    def test_valid_levels(self, level):
        assert validate_confidence(level) == level

    @pytest.mark.parametrize("level", [0, 6, -1, True, 3.0, "3", None])
    def test_invalid_levels(self, level):
        with pytest.raises(InvalidConfidenceError) as exc_info:
            validate_confidence(level)
        assert exc_info.value.level == level

    def test_error_is_value_error(self):
        """Callers can catch it as ValueError."""
        with pytest.raises(ValueError, match="Confianza inválida"):
            validate_confidence(9)


class TestProgressRecordSerialization:
    """Tests for to_dict / from_dict."""

    def test_from_empty_dict_is_zero_record(self):
        assert ProgressRecord.from_dict({}) == ProgressRecord()

    def test_from_stored_row(self):
        record = ProgressRecord.from_dict(
            {
                "veces_mostrada": 2,
                "ultima_confianza": 3,
                "confianza_sum": 7,
                "confianza_count": 2,
                "confianza_promedio": 3.5,
                "marcada_para_repaso": 1,
            }
        )
        assert record.marcada_para_repaso is True
        assert record.confianza_promedio == 3.5
        assert record.has_confidence

    def test_to_dict_keys(self):
        data = ProgressRecord().to_dict()
        assert set(data) == {
            "veces_mostrada",
            "ultima_confianza",
            "confianza_sum",
            "confianza_count",
            "confianza_promedio",
            "ultima_fecha_vista",
            "marcada_para_repaso",
        }
