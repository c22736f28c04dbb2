"""
Leaderboard ranking.

Purpose
-------
Pure functions that order a population of user scores into a leaderboard,
look up one user's position, page through the board and summarise the
community.

Ordering
--------
- points descending, then total_saved descending
- complete ties keep their input order (stable sort)
- positions are dense and 1-based: every entry gets a distinct position

Category filtering keeps users with at least one activity in the category;
their points are not recomputed for that category.

Usage
-----
    from ecotrack.modules.leaderboard.ranker import build_leaderboard, find_position

    entries = build_leaderboard(scores)
    lookup = find_position(entries, "u-42", neighbours=5)
"""

from __future__ import annotations

import math
from collections import Counter
from typing import AbstractSet, Iterable, List, Mapping, Optional, Sequence

from ecotrack.domain.models.carbon import (
    CommunitySummary,
    LeaderboardEntry,
    LeaderboardPage,
    PositionLookup,
    ScoreRow,
)
from ecotrack.modules.shared.exceptions import NotFoundError
from ecotrack.modules.stats.scoring import tier_for_points


def build_leaderboard(
    scores: Iterable[ScoreRow],
    category_filter: Optional[str] = None,
    active_categories: Optional[Mapping[str, AbstractSet[str]]] = None,
) -> List[LeaderboardEntry]:
    """
    Rank user scores into leaderboard entries.

    Args:
        scores: One row per user
        category_filter: Keep only users active in this category
        active_categories: user_id -> categories the user has records in;
            required for filtering, users missing from it are excluded

    Returns:
        Entries ordered by position; empty for an empty population

    Example:
        >>> [e.position for e in build_leaderboard([a100, b100, c50])]
        [1, 2, 3]
    """
    rows = list(scores)

    if category_filter is not None:
        active = active_categories or {}
        rows = [row for row in rows if category_filter in active.get(row.user_id, ())]

    rows.sort(key=lambda row: (-row.points, -row.total_saved))

    return [
        LeaderboardEntry(
            position=index + 1,
            user_id=row.user_id,
            points=row.points,
            total_saved=row.total_saved,
            tier=row.tier or tier_for_points(row.points),
            display_name=row.display_name,
        )
        for index, row in enumerate(rows)
    ]


def find_position(
    entries: Sequence[LeaderboardEntry],
    user_id: str,
    neighbours: int = 5,
) -> PositionLookup:
    """
    Locate a user on a leaderboard with up to `neighbours` entries each side.

    The window is truncated at either end of the board.

    Raises:
        NotFoundError: If the user has no entry
    """
    for index, entry in enumerate(entries):
        if entry.user_id == user_id:
            span = max(0, neighbours)
            return PositionLookup(
                entry=entry,
                above=tuple(entries[max(0, index - span):index]),
                below=tuple(entries[index + 1:index + 1 + span]),
            )

    raise NotFoundError("LeaderboardEntry", user_id)


def paginate(
    entries: Sequence[LeaderboardEntry],
    page: int,
    limit: int,
) -> LeaderboardPage:
    """
    Slice one 1-based page out of a leaderboard.

    A page past the end yields no entries; `total_pages` is 0 for an
    empty board.
    """
    total_items = len(entries)
    start = (page - 1) * limit

    return LeaderboardPage(
        entries=tuple(entries[start:start + limit]),
        current_page=page,
        total_pages=math.ceil(total_items / limit) if limit > 0 else 0,
        total_items=total_items,
        items_per_page=limit,
    )


def community_summary(scores: Iterable[ScoreRow]) -> CommunitySummary:
    """
    Population totals and how many users sit in each tier.

    The tier distribution is sorted by count descending; equal counts keep
    the order in which the tier was first seen.
    """
    rows = list(scores)
    tiers = Counter(row.tier or tier_for_points(row.points) for row in rows)

    return CommunitySummary(
        total_users=len(rows),
        total_saved=sum(row.total_saved for row in rows),
        total_emitted=sum(row.total_emitted for row in rows),
        total_points=sum(row.points for row in rows),
        tier_distribution=tuple(tiers.most_common()),
    )


__all__ = [
    "build_leaderboard",
    "find_position",
    "paginate",
    "community_summary",
]
