"""
Stats aggregation over activity records.

Purpose
-------
Pure functions that fold a user's activity records into totals and
per-category breakdowns, optionally restricted to a time window.

Rules
-----
- total_emitted sums the positive carbon amounts
- total_saved sums the magnitudes of the negative carbon amounts
- zero amounts count toward neither
- breakdowns are sorted by descending total; equal totals keep the order in
  which their category first appeared

Results depend only on the records passed in, so repeated calls over an
unchanged record set return equal values.

Usage
-----
    from ecotrack.modules.stats.aggregator import aggregate_totals

    totals = aggregate_totals(records, TimeWindow.for_period("month"))
    totals.net_footprint
"""

from __future__ import annotations

from typing import Callable, Dict, Iterable, List, Optional, Sequence

from ecotrack.domain.models.carbon import (
    ActivityRecord,
    CategoryTotal,
    TimeWindow,
    UserTotals,
)
from ecotrack.modules.shared.constants import RECENT_ACTIVITY_COUNT


def _in_window(
    records: Iterable[ActivityRecord], window: Optional[TimeWindow]
) -> Iterable[ActivityRecord]:
    if window is None or window.is_unbounded:
        return records
    return (record for record in records if window.contains(record.timestamp))


def aggregate_totals(
    records: Iterable[ActivityRecord],
    window: Optional[TimeWindow] = None,
) -> UserTotals:
    """
    Fold records into emitted/saved totals.

    Args:
        records: Activity records of one user
        window: Optional time window; records outside it are ignored

    Returns:
        UserTotals; all zero for an empty input

    Example:
        >>> aggregate_totals([r(+5), r(-3), r(-2)])
        UserTotals(total_emitted=5.0, total_saved=5.0)
    """
    emitted = 0.0
    saved = 0.0

    for record in _in_window(records, window):
        if record.carbon_amount > 0:
            emitted += record.carbon_amount
        elif record.carbon_amount < 0:
            saved += -record.carbon_amount

    return UserTotals(total_emitted=emitted, total_saved=saved)


def _breakdown(
    records: Iterable[ActivityRecord],
    window: Optional[TimeWindow],
    amount: Callable[[ActivityRecord], Optional[float]],
) -> List[CategoryTotal]:
    totals: Dict[str, float] = {}
    counts: Dict[str, int] = {}

    for record in _in_window(records, window):
        value = amount(record)
        if value is None:
            continue
        totals[record.category] = totals.get(record.category, 0.0) + value
        counts[record.category] = counts.get(record.category, 0) + 1

    rows = [
        CategoryTotal(category=category, total=total, count=counts[category])
        for category, total in totals.items()
    ]
    rows.sort(key=lambda row: row.total, reverse=True)
    return rows


def emissions_breakdown(
    records: Iterable[ActivityRecord],
    window: Optional[TimeWindow] = None,
) -> List[CategoryTotal]:
    """Per-category sum of emitted (positive) amounts."""
    return _breakdown(
        records,
        window,
        lambda record: record.carbon_amount if record.carbon_amount > 0 else None,
    )


def savings_breakdown(
    records: Iterable[ActivityRecord],
    window: Optional[TimeWindow] = None,
) -> List[CategoryTotal]:
    """Per-category sum of saved amounts, reported as positive numbers."""
    return _breakdown(
        records,
        window,
        lambda record: -record.carbon_amount if record.carbon_amount < 0 else None,
    )


def category_breakdown(
    records: Iterable[ActivityRecord],
    window: Optional[TimeWindow] = None,
) -> List[CategoryTotal]:
    """
    Per-category sum of absolute amounts over every record.

    Mixes emissions and savings; kept for clients that chart overall
    activity volume per category.
    """
    return _breakdown(records, window, lambda record: abs(record.carbon_amount))


def recent_activities(
    records: Sequence[ActivityRecord],
    count: int = RECENT_ACTIVITY_COUNT,
) -> List[ActivityRecord]:
    """The `count` most recent records, newest first."""
    ordered = sorted(records, key=lambda record: record.timestamp, reverse=True)
    return ordered[:count]


__all__ = [
    "aggregate_totals",
    "emissions_breakdown",
    "savings_breakdown",
    "category_breakdown",
    "recent_activities",
]
