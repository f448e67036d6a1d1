"""
UPR recommendation record.

One ``Recommendation`` per UPR paragraph. Instances are frozen: the loader
builds them, and the classifier returns new copies with ``health_related``
set (``model_copy(update=...)``) rather than mutating.

Only ``sdg_linked`` is mandatory at construction; ``health_related`` stays
``None`` until ``analysis.classifier.classify_records()`` has run.
"""

from __future__ import annotations

from datetime import date
from typing import Optional

from pydantic import BaseModel, ConfigDict, field_validator

from upr_health.taxonomy.categories import HealthLabel, SdgLink, UprResponse


class Recommendation(BaseModel):
    """A single recommendation issued to a state under review.

    Attributes:
        text:               Recommendation text. ``None`` only for a blank source cell.
        state_under_review: Country the recommendation is addressed to.
        cycle:              Ordinal UPR review cycle (1, 2, 3, 4).
        year:               January 1st of the review year.
        sdg_goals:          Raw SDG linkage string from the source dataset.
        sdg_linked:         Derived binary SDG-link category.
        response_upr:       State response, or ``None`` when unset / not applicable.
        document_code:      UN document symbol the paragraph comes from.
        paragraph:          Paragraph citation, ``"<number> | <title>"`` style.
        title:              Second ``|`` segment of ``paragraph``.
        health_related:     Classifier label; ``None`` before classification.
    """

    model_config = ConfigDict(frozen=True)

    text: Optional[str] = None
    state_under_review: Optional[str] = None
    cycle: Optional[int] = None
    year: Optional[date] = None
    sdg_goals: Optional[str] = None
    sdg_linked: SdgLink
    response_upr: Optional[UprResponse] = None
    document_code: Optional[str] = None
    paragraph: Optional[str] = None
    title: Optional[str] = None
    health_related: Optional[HealthLabel] = None

    @field_validator("cycle")
    @classmethod
    def validate_cycle(cls, v: Optional[int]) -> Optional[int]:
        if v is not None and v < 1:
            raise ValueError(f"cycle must be >= 1, got {v}.")
        return v

    @property
    def is_classified(self) -> bool:
        return self.health_related is not None
