"""Enumerations shared by the service and the client library."""

import enum


class TasteStatus(str, enum.Enum):
    """Qualitative alternative to a numeric rank."""

    ACCEPTABLE = "ACCEPTABLE"
    SECOND_CHANCE = "SECOND_CHANCE"
    DISSATISFIED = "DISSATISFIED"
