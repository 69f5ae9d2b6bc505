from __future__ import annotations

import enum


class DayPart(enum.StrEnum):
    """Which part of the day a leave record covers."""

    FULL = "FULL"
    MORNING = "MORNING"
    AFTERNOON = "AFTERNOON"
    CUSTOM = "CUSTOM"

    @property
    def is_half_day(self) -> bool:
        return self in (DayPart.MORNING, DayPart.AFTERNOON)


class DayLabel(enum.StrEnum):
    """Primary label of a single day in the daily calendar view."""

    NONE = "NONE"
    HOLIDAY = "HOLIDAY"
    LEAVE = "LEAVE"
    VISIT = "VISIT"


class HolidayType(enum.StrEnum):
    """Whether a holiday is observed by everyone or opt-in."""

    MANDATORY = "MANDATORY"
    OPTIONAL = "OPTIONAL"


class VisitType(enum.StrEnum):
    """Where a user worked on a given day."""

    WFO = "WFO"
    WFH = "WFH"
    HYBRID = "HYBRID"
    OTHERS = "OTHERS"

    @classmethod
    def bucket_for(cls, value: str | None) -> VisitType:
        """Map a stored visit type onto its aggregation bucket.

        Anything missing or unrecognised is counted as OTHERS.
        """
        match value:
            case "WFO":
                return cls.WFO
            case "WFH":
                return cls.WFH
            case "HYBRID":
                return cls.HYBRID
            case _:
                return cls.OTHERS
