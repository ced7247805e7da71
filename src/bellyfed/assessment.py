"""Ranking assessments as a tagged union.

A ranking is either numeric or qualitative. Request fields are converted to
an ``Assessment`` before touching the store, so a row can never carry both.
"""

from __future__ import annotations

from dataclasses import dataclass

from bellyfed.core.errors import ValidationError
from bellyfed.core.enums import TasteStatus

MIN_RANK = 1
MAX_RANK = 5


@dataclass(frozen=True)
class NumericRank:
    """Numeric rank, 1 being best."""

    rank: int

    @property
    def columns(self) -> tuple[int | None, TasteStatus | None]:
        return self.rank, None


@dataclass(frozen=True)
class TasteVerdict:
    """Qualitative verdict in place of a rank."""

    status: TasteStatus

    @property
    def columns(self) -> tuple[int | None, TasteStatus | None]:
        return None, self.status


Assessment = NumericRank | TasteVerdict


def parse_assessment(rank: object, taste_status: object) -> Assessment:
    """Build an assessment from nullable request fields.

    Raises:
        ValidationError: If both or neither are set, the rank is not an
            integer in [1, 5], or the taste status is unknown.
    """
    if (rank is None) == (taste_status is None):
        raise ValidationError(
            "A ranking must have either a rank or a taste status, but not both"
        )

    if rank is not None:
        if isinstance(rank, bool) or not isinstance(rank, int):
            raise ValidationError("Rank must be an integer")
        if not MIN_RANK <= rank <= MAX_RANK:
            raise ValidationError(f"Rank must be between {MIN_RANK} and {MAX_RANK}")
        return NumericRank(rank)

    try:
        return TasteVerdict(TasteStatus(taste_status))
    except ValueError as err:
        allowed = ", ".join(status.value for status in TasteStatus)
        raise ValidationError(f"Taste status must be one of: {allowed}") from err

