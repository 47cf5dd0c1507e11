"""
tests/test_aggregator.py

Unit tests for the company / time / source rollups and the summary stats.

Coverage
--------
- The three-record reference example
- Count and total invariants across all views
- Stable descending company order on ties
- Chronological time order for shuffled input
- Per-bucket average price
- Non-numeric prices, unknown sources, missing periods
- Empty record set
- Caller's records left untouched
"""

from __future__ import annotations

import logging
from datetime import date

import pandas as pd
import pytest

from conftest import make_record
from sales_dashboard.aggregator import (
    COMPANY_COLUMNS,
    EMPTY,
    SOURCE_COLUMNS,
    TIME_COLUMNS,
    aggregate,
    is_empty,
    source_label,
    to_frame,
)
from sales_dashboard.data_layer import generate_data


# ---------------------------------------------------------------------------
# Reference example
# ---------------------------------------------------------------------------


class TestReferenceExample:
    def test_company_view(self, example_aggregates) -> None:
        assert example_aggregates["company"].to_dict("records") == [
            {"company": "B", "count": 1, "total_sales": 300},
            {"company": "A", "count": 2, "total_sales": 150},
        ]

    def test_source_view(self, example_aggregates) -> None:
        assert example_aggregates["source"].to_dict("records") == [
            {"source": "Source A", "count": 2, "total_sales": 150},
            {"source": "Source B", "count": 1, "total_sales": 300},
        ]

    def test_summary(self, example_aggregates) -> None:
        summary = example_aggregates["summary"]
        assert summary["total_records"] == 3
        assert summary["total_sales"] == pytest.approx(450)
        assert summary["avg_price"] == pytest.approx(150)

    def test_time_view(self, example_aggregates) -> None:
        view = example_aggregates["time"]
        assert list(view.columns) == TIME_COLUMNS
        assert view[["year", "month", "count"]].values.tolist() == [[2023, 1, 2], [2023, 2, 1]]
        assert view["total_sales"].tolist() == pytest.approx([400, 50])
        assert view["period_start"].tolist() == [pd.Timestamp("2023-01-01"),
                                                 pd.Timestamp("2023-02-01")]


# ---------------------------------------------------------------------------
# Invariants
# ---------------------------------------------------------------------------


class TestInvariants:
    @pytest.fixture()
    def sample(self) -> pd.DataFrame:
        return generate_data(400, seed=7)

    @pytest.mark.parametrize("key", ["company", "time", "source"])
    def test_counts_sum_to_record_count(self, sample, key) -> None:
        result = aggregate(sample)
        assert int(result[key]["count"].sum()) == len(sample)

    @pytest.mark.parametrize("key", ["company", "time", "source"])
    def test_totals_sum_to_summary_total(self, sample, key) -> None:
        result = aggregate(sample)
        assert result[key]["total_sales"].sum() == pytest.approx(result["summary"]["total_sales"])

    def test_company_view_sorted_descending(self, sample) -> None:
        totals = aggregate(sample)["company"]["total_sales"].tolist()
        assert totals == sorted(totals, reverse=True)

    def test_one_row_per_distinct_key(self, sample) -> None:
        result = aggregate(sample)
        assert len(result["company"]) == sample["company"].nunique()
        assert len(result["source"]) == sample["source"].nunique()
        assert len(result["time"]) == len(sample.groupby(["year", "month"]))


# ---------------------------------------------------------------------------
# Ordering
# ---------------------------------------------------------------------------


class TestOrdering:
    def test_company_ties_keep_first_encountered_order(self) -> None:
        records = [
            make_record("X", 100),
            make_record("Y", 100),
            make_record("Z", 50),
            make_record("W", 100),
        ]
        companies = aggregate(records)["company"]["company"].tolist()
        assert companies == ["X", "Y", "W", "Z"]

    def test_time_view_chronological_for_interleaved_input(self) -> None:
        records = [
            make_record(year=2024, month=3),
            make_record(year=2023, month=11),
            make_record(year=2024, month=1),
            make_record(year=2023, month=11),
            make_record(year=2022, month=12),
        ]
        view = aggregate(records)["time"]
        assert view[["year", "month"]].values.tolist() == [
            [2022, 12], [2023, 11], [2024, 1], [2024, 3],
        ]
        assert view["period_start"].is_monotonic_increasing

    def test_source_view_keeps_first_seen_order(self) -> None:
        records = [make_record(source="source_b"), make_record(source="source_a")]
        assert aggregate(records)["source"]["source"].tolist() == ["Source B", "Source A"]


# ---------------------------------------------------------------------------
# Time buckets
# ---------------------------------------------------------------------------


class TestTimeBuckets:
    def test_avg_price_is_per_bucket(self) -> None:
        records = [
            make_record(price=100, month=1),
            make_record(price=200, month=1),
            make_record(price=1000, month=2),
        ]
        view = aggregate(records)["time"]
        assert view["avg_price"].tolist() == pytest.approx([150, 1000])

    def test_period_derived_from_sale_date_when_missing(self) -> None:
        records = [make_record(year=None, month=None, sale_date="2023-05-17")]
        view = aggregate(records)["time"]
        assert view[["year", "month"]].values.tolist() == [[2023, 5]]

    def test_invalid_month_grouped_as_undated(self, caplog) -> None:
        records = [make_record(price=30, month=13), make_record(price=10, month=4)]
        with caplog.at_level(logging.WARNING, logger="sales_dashboard.aggregator"):
            view = aggregate(records)["time"]
        assert view["month"].iloc[0] == 4
        assert view["month"].isna().tolist() == [False, True]
        assert view["total_sales"].tolist() == pytest.approx([10, 30])
        assert "undated" in caplog.text

    def test_undated_bucket_keeps_count_invariant(self) -> None:
        records = [
            make_record(price=20, year=None, month=None),
            make_record(price=100, year=2023, month=1),
            make_record(price=40, year=None, month=None),
        ]
        result = aggregate(records)
        view = result["time"]
        assert int(view["count"].sum()) == len(records)
        assert view["total_sales"].sum() == pytest.approx(result["summary"]["total_sales"])

        undated = view.iloc[-1]
        assert pd.isna(undated["year"]) and pd.isna(undated["month"])
        assert pd.isna(undated["period_start"])
        assert undated["count"] == 2
        assert undated["avg_price"] == pytest.approx(30)

    def test_only_undated_records(self) -> None:
        view = aggregate([make_record(year=None, month=None)])["time"]
        assert list(view.columns) == TIME_COLUMNS
        assert view["count"].tolist() == [1]
        assert view["period_start"].isna().all()


# ---------------------------------------------------------------------------
# Recovered anomalies
# ---------------------------------------------------------------------------


class TestAnomalies:
    def test_non_numeric_price_counts_as_zero(self, caplog) -> None:
        records = [make_record("A", "n/a"), make_record("A", 40)]
        with caplog.at_level(logging.WARNING, logger="sales_dashboard.aggregator"):
            result = aggregate(records)
        assert result["company"].to_dict("records") == [
            {"company": "A", "count": 2, "total_sales": 40},
        ]
        assert result["summary"]["avg_price"] == pytest.approx(20)
        assert "non-numeric price" in caplog.text

    def test_missing_price_counts_as_zero(self) -> None:
        result = aggregate([make_record(price=None), make_record(price=10)])
        assert result["summary"]["total_sales"] == pytest.approx(10)
        assert result["summary"]["total_records"] == 2

    def test_unknown_source_passes_through(self) -> None:
        records = [make_record(source="partner_feed"), make_record(source="source_a")]
        sources = aggregate(records)["source"]["source"].tolist()
        assert sources == ["partner_feed", "Source A"]

    @pytest.mark.parametrize(
        ("raw", "label"),
        [("source_a", "Source A"), ("source_b", "Source B"), ("other", "other")],
    )
    def test_source_label(self, raw, label) -> None:
        assert source_label(raw) == label


# ---------------------------------------------------------------------------
# Summary
# ---------------------------------------------------------------------------


class TestSummary:
    def test_date_range_from_sale_dates(self) -> None:
        records = [
            make_record(sale_date="2023-03-02"),
            make_record(sale_date="2023-01-15"),
            make_record(sale_date=None),
        ]
        summary = aggregate(records)["summary"]
        assert summary["date_range_start"] == date(2023, 1, 15)
        assert summary["date_range_end"] == date(2023, 3, 2)

    @pytest.mark.parametrize(
        "sale_dates",
        [
            ["2023-01-05T00:00:00+00:00", "2023-02-05T12:00:00+05:00"],
            ["2023-01-05", "2023-02-05T12:00:00+05:00"],
        ],
    )
    def test_mixed_utc_offsets(self, sale_dates) -> None:
        records = [make_record(year=None, month=None, sale_date=d) for d in sale_dates]
        result = aggregate(records)
        assert result["summary"]["date_range_start"] == date(2023, 1, 5)
        assert result["summary"]["date_range_end"] == date(2023, 2, 5)
        assert result["time"][["year", "month"]].values.tolist() == [[2023, 1], [2023, 2]]

    def test_offset_timestamps_normalised_to_utc(self) -> None:
        frame = to_frame([make_record(sale_date="2023-03-01T02:00:00+05:00")])
        assert frame["sale_date"].dt.tz is None
        assert frame["sale_date"].iloc[0] == pd.Timestamp("2023-02-28 21:00")
        # year/month given explicitly win over the date
        assert (frame["year"].iloc[0], frame["month"].iloc[0]) == (2023, 1)

    def test_date_range_none_without_sale_dates(self, example_aggregates) -> None:
        summary = example_aggregates["summary"]
        assert summary["date_range_start"] is None
        assert summary["date_range_end"] is None


# ---------------------------------------------------------------------------
# Empty input
# ---------------------------------------------------------------------------


class TestEmpty:
    @pytest.mark.parametrize("records", [[], pd.DataFrame(), iter(())])
    def test_empty_record_set(self, records) -> None:
        result = aggregate(records)
        assert result["summary"] is EMPTY
        assert is_empty(result["summary"])
        assert not result["summary"]
        assert result["company"].empty and list(result["company"].columns) == COMPANY_COLUMNS
        assert result["time"].empty and list(result["time"].columns) == TIME_COLUMNS
        assert result["source"].empty and list(result["source"].columns) == SOURCE_COLUMNS

    def test_empty_marker_carries_message(self) -> None:
        assert "No data available" in aggregate([])["summary"].message


# ---------------------------------------------------------------------------
# Input ownership
# ---------------------------------------------------------------------------


class TestInputUntouched:
    def test_record_dicts_not_mutated(self, example_records) -> None:
        before = [dict(r) for r in example_records]
        aggregate(example_records)
        assert example_records == before

    def test_dataframe_not_mutated(self) -> None:
        frame = pd.DataFrame([make_record(price="12.5"), make_record(price="oops")])
        before = frame.copy()
        to_frame(frame)
        aggregate(frame)
        pd.testing.assert_frame_equal(frame, before)
