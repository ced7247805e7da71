"""Ranking statistics computed on read.

Stats are never stored. They are folded from ``StatsBucket`` rows: grouped
counts from the store, or individual rankings with ``count=1``.
"""

from __future__ import annotations

from collections import Counter
from collections.abc import Iterable
from dataclasses import dataclass

from bellyfed.core.enums import TasteStatus

RANK_VALUES = (1, 2, 3, 4, 5)
OTHER_COUNTRY = "other"


@dataclass(frozen=True)
class StatsBucket:
    """Number of rankings sharing the same rank, taste status and owner country."""

    rank: int | None
    taste_status: TasteStatus | str | None
    country_code: str | None = None
    count: int = 1


@dataclass(frozen=True)
class Stats:
    """Aggregates over a set of rankings."""

    total_rankings: int
    average_rank: float
    ranks: dict[str, int]
    taste_statuses: dict[str, int]
    country_distribution: dict[str, int] | None = None

    def as_dict(self) -> dict[str, object]:
        data: dict[str, object] = {
            "total_rankings": self.total_rankings,
            "average_rank": self.average_rank,
            "ranks": dict(self.ranks),
            "taste_statuses": dict(self.taste_statuses),
        }
        if self.country_distribution is not None:
            data["country_distribution"] = dict(self.country_distribution)
        return data


def _status_key(value: TasteStatus | str) -> str:
    return value.value if isinstance(value, TasteStatus) else str(value)


def compute_stats(
    buckets: Iterable[StatsBucket],
    *,
    include_countries: bool = False,
    country_limit: int = 10,
) -> Stats:
    """Fold buckets into ranking stats.

    Args:
        buckets: Grouped or individual ranking rows.
        include_countries: Whether to build the country distribution.
        country_limit: Number of named countries reported; the remainder and
            rankings without an owner country (or with the literal code
            ``other``) are counted under ``other``.

    Returns:
        Stats where ``average_rank`` covers numerically ranked rows only and
        is 0.0 when there are none.
    """
    total = 0
    rank_sum = 0
    ranked = 0
    ranks = {str(value): 0 for value in RANK_VALUES}
    tastes = {status.value: 0 for status in TasteStatus}
    countries: Counter[str] = Counter()
    unknown_country = 0

    for bucket in buckets:
        if bucket.count <= 0:
            continue
        total += bucket.count
        if bucket.rank is not None:
            rank_sum += bucket.rank * bucket.count
            ranked += bucket.count
            key = str(bucket.rank)
            ranks[key] = ranks.get(key, 0) + bucket.count
        if bucket.taste_status is not None:
            key = _status_key(bucket.taste_status)
            tastes[key] = tastes.get(key, 0) + bucket.count
        if include_countries:
            code = (bucket.country_code or "").lower()
            if code and code != OTHER_COUNTRY:
                countries[code] += bucket.count
            else:
                unknown_country += bucket.count

    distribution: dict[str, int] | None = None
    if include_countries:
        # Ties are broken alphabetically so the reported set is deterministic.
        ordered = sorted(countries.items(), key=lambda item: (-item[1], item[0]))
        distribution = dict(ordered[:country_limit])
        distribution[OTHER_COUNTRY] = unknown_country + sum(
            count for _, count in ordered[country_limit:]
        )

    return Stats(
        total_rankings=total,
        average_rank=rank_sum / ranked if ranked else 0.0,
        ranks=ranks,
        taste_statuses=tastes,
        country_distribution=distribution,
    )
