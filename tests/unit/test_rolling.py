"""
Unit tests for moving averages.
"""

import pytest

from sleep_insights.analysis.rolling import RollingMeanEstimator, rolling_mean


class TestRollingMeanEstimator:
    """Test the running-sum estimator."""

    def test_warm_up(self):
        """Test that no value is reported before a full window."""
        estimator = RollingMeanEstimator(window_size=3)

        estimator.update(1.0)
        estimator.update(2.0)

        assert estimator.peek() is None
        assert estimator.count == 2

    def test_window_slides(self):
        estimator = RollingMeanEstimator(window_size=2)

        for value in (1.0, 3.0, 5.0):
            estimator.update(value)

        assert estimator.peek() == pytest.approx(4.0)
        assert estimator.count == 2

    def test_invalid_window(self):
        with pytest.raises(ValueError):
            RollingMeanEstimator(window_size=0)


class TestRollingMean:
    """Test rolling_mean over sequences."""

    def test_same_length_as_input(self):
        values = [1.0, 2.0, 3.0, 4.0, 5.0]

        result = rolling_mean(values, 3, lambda v: v)

        assert len(result) == len(values)
        assert result[:2] == [None, None]
        assert result[2:] == pytest.approx([2.0, 3.0, 4.0])

    def test_window_of_one_is_identity(self):
        values = [0.1, 0.7, 0.2]

        result = rolling_mean(values, 1, lambda v: v)

        assert result == pytest.approx(values)

    def test_window_wider_than_sequence(self):
        """Test that every index is None when k exceeds N."""
        assert rolling_mean([1.0, 2.0], 5, lambda v: v) == [None, None]

    def test_empty_sequence(self):
        assert rolling_mean([], 3, lambda v: v) == []

    def test_accessor(self):
        items = [{"x": 2.0}, {"x": 4.0}]

        assert rolling_mean(items, 2, lambda i: i["x"]) == [None, pytest.approx(3.0)]

    def test_stage_percentage_series(self):
        """Test a two-night REM % series with window 2."""
        rem_pct = [1.6 / 8 * 100, 1.0 / 7 * 100]

        result = rolling_mean(rem_pct, 2, lambda v: v)

        assert result[0] is None
        assert result[1] == pytest.approx(17.142857, rel=1e-6)

    def test_invalid_window(self):
        with pytest.raises(ValueError):
            rolling_mean([1.0], 0, lambda v: v)
