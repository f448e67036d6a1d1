"""
Raw indicator observation as returned by the WHO GHO OData API.

The API returns one JSON object per (indicator, location, year, dimension
breakdown). ``IndicatorObservation.from_api()`` keeps only the fields the
joiner needs and resolves the location fields by ``SpatialDimType``:

  COUNTRY → ``country_code = SpatialDim``, ``region_code = ParentLocationCode``
  REGION  → ``region_code = SpatialDim``
  GLOBAL  → ``region_code = SpatialDim`` (usually ``"GLOBAL"``)

``value_raw`` is left untyped; numeric coercion happens after the join so a
non-numeric value becomes missing instead of failing validation.
"""

from __future__ import annotations

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict

GLOBAL_SCOPE = "GLOBAL"


class IndicatorObservation(BaseModel):
    """One observation of one GHO indicator.

    Attributes:
        indicator_code: GHO indicator code, e.g. ``"MDG_0000000026"``.
        spatial_type:   ``"COUNTRY"``, ``"REGION"``, ``"GLOBAL"`` or another GHO type.
        country_code:   ISO3 country code for country rows, else ``None``.
        region_code:    WHO region code (``"AFR"``, ``"EUR"``…), or ``"GLOBAL"``.
        year:           Reference year, ``None`` when the API omits it.
        value_raw:      ``NumericValue`` when present, else the display ``Value``.
    """

    model_config = ConfigDict(frozen=True)

    indicator_code: str
    spatial_type: Optional[str] = None
    country_code: Optional[str] = None
    region_code: Optional[str] = None
    year: Optional[int] = None
    value_raw: Any = None

    @property
    def is_global(self) -> bool:
        return self.spatial_type == GLOBAL_SCOPE

    @classmethod
    def from_api(cls, indicator_code: str, row: dict[str, Any]) -> "IndicatorObservation":
        """Build an observation from one element of the OData ``value`` list."""
        spatial_type = row.get("SpatialDimType")
        spatial_dim = row.get("SpatialDim")

        if spatial_type == "COUNTRY":
            country_code = spatial_dim
            region_code = row.get("ParentLocationCode")
        else:
            country_code = None
            region_code = spatial_dim

        year = row.get("TimeDim")
        value = row.get("NumericValue")
        if value is None:
            value = row.get("Value")

        return cls(
            indicator_code=row.get("IndicatorCode") or indicator_code,
            spatial_type=spatial_type,
            country_code=country_code,
            region_code=region_code,
            year=int(year) if year is not None else None,
            value_raw=value,
        )
