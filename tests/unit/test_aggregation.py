"""
Unit tests for monthly aggregation.

Tests grouping, monthly means, table sorting and low-deep-sleep flagging.
"""

from datetime import date

import pytest

from sleep_insights.data.aggregation import (
    AggregationError,
    SortColumn,
    SortDirection,
    SortDirective,
    group_by_month,
    low_deep_bands,
    low_deep_months,
    month_bounds,
    month_key,
    sort_summaries,
    summarize_month,
    summarize_months,
)
from sleep_insights.data.schema import MonthlySummary


def _summary(key: str, deep: float = 15.0, rem: float = 20.0, nights: int = 10) -> MonthlySummary:
    return MonthlySummary(
        month_key=key,
        rem_pct_mean=rem,
        deep_pct_mean=deep,
        total_sleep_mean=7.5,
        awake_mean=0.5,
        night_count=nights,
    )


class TestGrouping:
    """Test month keys and grouping."""

    def test_month_key(self):
        assert month_key(date(2024, 3, 9)) == "2024-03"
        assert month_key(date(999, 12, 1)) == "0999-12"

    def test_group_by_month_chronological(self, night_factory):
        """Test that groups come out ordered by month regardless of input order."""
        nights = [
            night_factory(date(2024, 2, 3)),
            night_factory(date(2023, 12, 31)),
            night_factory(date(2024, 2, 1)),
        ]

        groups = group_by_month(nights)

        assert list(groups) == ["2023-12", "2024-02"]
        assert [n.date.day for n in groups["2024-02"]] == [3, 1]

    def test_month_bounds(self):
        assert month_bounds(date(2024, 2, 17)) == (date(2024, 2, 1), date(2024, 3, 1))
        assert month_bounds(date(2024, 12, 5)) == (date(2024, 12, 1), date(2025, 1, 1))


class TestSummarizeMonth:
    """Test per-month means."""

    def test_means(self, night_factory):
        nights = [
            night_factory(date(2024, 1, 1), total=8.0, rem=1.6, deep=1.2, awake=1.0),
            night_factory(date(2024, 1, 2), total=6.0, rem=1.5, deep=0.6, awake=0.5),
        ]

        summary = summarize_month("2024-01", nights)

        assert summary.night_count == 2
        assert summary.rem_pct_mean == pytest.approx(22.5)
        assert summary.deep_pct_mean == pytest.approx(12.5)
        assert summary.total_sleep_mean == pytest.approx(7.0)
        assert summary.awake_mean == pytest.approx(0.75)

    def test_zero_total_nights_excluded_from_percentages(self, night_factory):
        """Test that percentage means skip nights without sleep but totals keep them."""
        nights = [
            night_factory(date(2024, 1, 1), total=8.0, rem=2.0, deep=1.6),
            night_factory(date(2024, 1, 2), total=0.0, rem=0.0, deep=0.0, awake=2.0),
        ]

        summary = summarize_month("2024-01", nights)

        assert summary.rem_pct_mean == pytest.approx(25.0)
        assert summary.deep_pct_mean == pytest.approx(20.0)
        assert summary.total_sleep_mean == pytest.approx(4.0)
        assert summary.night_count == 2

    def test_month_without_sleep(self, night_factory):
        summary = summarize_month("2024-01", [night_factory(date(2024, 1, 1), total=0.0)])

        assert summary.rem_pct_mean == 0.0
        assert summary.deep_pct_mean == 0.0

    def test_empty_month(self):
        with pytest.raises(AggregationError):
            summarize_month("2024-01", [])

    def test_summarize_months(self, night_factory):
        nights = [night_factory(date(2024, m, d)) for m in (3, 1) for d in (1, 2)]

        summaries = summarize_months(nights)

        assert [s.month_key for s in summaries] == ["2024-01", "2024-03"]
        assert all(s.night_count == 2 for s in summaries)

    def test_night_counts_add_up(self, sample_night_rows):
        from sleep_insights.data.normalizers import normalize_nights

        nights, _ = normalize_nights(sample_night_rows)

        summaries = summarize_months(nights)

        assert sum(s.night_count for s in summaries) == len(nights)
        assert [s.night_count for s in summaries] == [31, 29]


class TestSortDirective:
    """Test column toggling."""

    def test_default_is_month_ascending(self):
        directive = SortDirective()

        assert directive.column == SortColumn.MONTH
        assert directive.direction == SortDirection.ASC

    def test_same_column_flips(self):
        directive = SortDirective().select(SortColumn.MONTH)

        assert directive.direction == SortDirection.DESC
        assert directive.select(SortColumn.MONTH).direction == SortDirection.ASC

    def test_new_column_starts_descending(self):
        directive = SortDirective().select(SortColumn.DEEP_PCT)

        assert directive.column == SortColumn.DEEP_PCT
        assert directive.direction == SortDirection.DESC

    def test_accepts_column_value(self):
        directive = SortDirective().select("night_count")

        assert directive.column == SortColumn.NIGHTS


class TestSortSummaries:
    """Test table ordering."""

    def test_sort_descending(self):
        summaries = [_summary("2024-01", deep=10.0), _summary("2024-02", deep=20.0)]

        result = sort_summaries(
            summaries, SortDirective(column=SortColumn.DEEP_PCT, direction=SortDirection.DESC)
        )

        assert [s.month_key for s in result] == ["2024-02", "2024-01"]

    def test_ties_keep_chronological_order(self):
        """Test stability in both directions."""
        summaries = [_summary("2024-01"), _summary("2024-02"), _summary("2024-03")]

        asc = sort_summaries(summaries, SortDirective(column=SortColumn.REM_PCT))
        desc = sort_summaries(
            summaries, SortDirective(column=SortColumn.REM_PCT, direction=SortDirection.DESC)
        )

        assert [s.month_key for s in asc] == ["2024-01", "2024-02", "2024-03"]
        assert [s.month_key for s in desc] == ["2024-01", "2024-02", "2024-03"]

    def test_default_order(self):
        summaries = [_summary("2024-02"), _summary("2024-01")]

        assert [s.month_key for s in sort_summaries(summaries)] == ["2024-01", "2024-02"]


class TestLowDeepMonths:
    """Test low-deep-sleep flagging."""

    def test_lowest_share_flagged(self):
        summaries = [
            _summary("2024-01", deep=18.0),
            _summary("2024-02", deep=9.0),
            _summary("2024-03", deep=15.0),
            _summary("2024-04", deep=21.0),
            _summary("2024-05", deep=12.0),
        ]

        assert low_deep_months(summaries, 20) == {"2024-02"}
        assert low_deep_months(summaries, 50) == {"2024-02", "2024-05", "2024-03"}

    def test_count_rounds_up(self):
        """Test that any positive percentile flags at least one month."""
        summaries = [_summary("2024-01", deep=18.0), _summary("2024-02", deep=9.0)]

        assert low_deep_months(summaries, 5) == {"2024-02"}

    def test_zero_and_empty(self):
        assert low_deep_months([_summary("2024-01")], 0) == set()
        assert low_deep_months([], 20) == set()

    def test_invalid_percentile(self):
        with pytest.raises(AggregationError):
            low_deep_months([_summary("2024-01")], 150)

    def test_bands_only_for_present_months(self, night_factory):
        nights = [night_factory(date(2024, 1, 5)), night_factory(date(2024, 1, 6)), night_factory(date(2024, 3, 2))]

        bands = low_deep_bands(nights, {"2024-01", "2024-02"})

        assert len(bands) == 1
        assert bands[0].month_key == "2024-01"
        assert bands[0].start == date(2024, 1, 1)
        assert bands[0].end == date(2024, 2, 1)
