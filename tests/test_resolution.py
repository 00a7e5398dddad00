"""
Tests for the resolution classifier and stored-outcome normalization.
"""

from __future__ import annotations

import pytest

from guessometer.stats.resolution import classify_outcome, is_resolved, normalize_outcome
from guessometer.stats.types import Outcome


class TestClassifyOutcome:
    @pytest.mark.parametrize(
        "predicted, known, expected",
        [
            ("Yes", "Yes", Outcome.CORRECT),
            ("No", "Yes", Outcome.INCORRECT),
            ("Yes", "No", Outcome.PENDING),
            ("No", "No", Outcome.PENDING),
            ("Yes", None, Outcome.PENDING),
            (None, "Yes", Outcome.PENDING),
            ("Maybe", "Yes", Outcome.PENDING),
            (None, None, Outcome.PENDING),
        ],
    )
    def test_policy(self, predicted, known, expected) -> None:
        assert classify_outcome(predicted, known) is expected

    def test_unknown_flag_is_pending(self) -> None:
        """Only an exact "Yes" marks the outcome as known."""
        assert classify_outcome("Yes", "yes please") is Outcome.PENDING
        assert classify_outcome("Yes", 1) is Outcome.PENDING

    def test_list_wrapped_markers(self) -> None:
        assert classify_outcome(["Yes"], ["Yes"]) is Outcome.CORRECT
        assert classify_outcome(["No"], "Yes") is Outcome.INCORRECT
        assert classify_outcome([], "Yes") is Outcome.PENDING

    def test_surrounding_whitespace_ignored(self) -> None:
        assert classify_outcome(" Yes ", "Yes\n") is Outcome.CORRECT


class TestNormalizeOutcome:
    def test_known_values(self) -> None:
        assert normalize_outcome("correct") is Outcome.CORRECT
        assert normalize_outcome("INCORRECT") is Outcome.INCORRECT
        assert normalize_outcome(" pending ") is Outcome.PENDING
        assert normalize_outcome(Outcome.CORRECT) is Outcome.CORRECT

    @pytest.mark.parametrize("value", [None, "", "resolved", 3])
    def test_unknown_values_are_pending(self, value) -> None:
        assert normalize_outcome(value) is Outcome.PENDING

    def test_is_resolved(self) -> None:
        assert is_resolved("correct")
        assert is_resolved("incorrect")
        assert not is_resolved("pending")
        assert not is_resolved(None)
