"""
Shared fixtures: the three-record example set and its aggregates.
"""

from __future__ import annotations

import pytest

from sales_dashboard.aggregator import aggregate


def make_record(
    company: str = "Acme",
    price=100.0,
    year=2023,
    month=1,
    source: str = "source_a",
    sale_date=None,
) -> dict:
    record = {
        "company": company,
        "price": price,
        "year": year,
        "month": month,
        "source": source,
    }
    if sale_date is not None:
        record["sale_date"] = sale_date
    return record


@pytest.fixture()
def example_records() -> list[dict]:
    return [
        make_record("A", 100, 2023, 1, "source_a"),
        make_record("B", 300, 2023, 1, "source_b"),
        make_record("A", 50, 2023, 2, "source_a"),
    ]


@pytest.fixture()
def example_aggregates(example_records) -> dict:
    return aggregate(example_records)
