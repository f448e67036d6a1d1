"""
Categorical dimensions used to label and cross-tabulate UPR recommendations.

Four closed value sets:
  - ``HealthLabel``     — classifier output (never null after classification)
  - ``SdgLink``         — derived from the ``sdg_goals`` column (never null)
  - ``UprResponse``     — the reviewed state's response (optional)
  - ``ReviewMechanism`` — human-rights mechanism that issued the recommendation

Member order is the display/sort order used by report tables; the first
member of each binary enum is the "negative" category.

This module has NO imports from any other ``upr_health`` package.
"""

from enum import StrEnum
from typing import Optional


class HealthLabel(StrEnum):
    """Binary output of the keyword classifier."""

    NOT_HEALTH_RELATED = "Not health-related"
    HEALTH_RELATED = "Health-related"


class SdgLink(StrEnum):
    """Whether a recommendation is linked to at least one SDG."""

    NO_LINK = "No SDG link"
    LINKED = "Linked to an SDG"


class UprResponse(StrEnum):
    """Reviewed state's stated position on a recommendation."""

    SUPPORTED = "Supported"
    NOTED = "Noted"
    SUPPORTED_NOTED = "Supported/Noted"
    """Mixed or unclear response; excluded from the informative response tables."""

    PARTIALLY_SUPPORTED = "Partially supported"
    REJECTED = "Rejected"

    @classmethod
    def parse(cls, raw: str) -> Optional["UprResponse"]:
        """Match ``raw`` case-insensitively against member values.

        Returns ``None`` when nothing matches; the caller decides whether an
        unknown value is an error.
        """
        key = " ".join(raw.split()).lower()
        for member in cls:
            if member.value.lower() == key:
                return member
        return None


class ReviewMechanism(StrEnum):
    """UN human-rights mechanisms present in the source dataset."""

    UPR = "Universal Periodic Review"
    TREATY_BODIES = "Treaty Bodies"
    SPECIAL_PROCEDURES = "Special Procedures"
