"""
Join raw GHO observations against reference tables into one common schema.

Steps for each indicator series
-------------------------------
1. Observations → DataFrame (``indicator_code``, ``spatial_type``,
   ``country_code``, ``region_code``, ``year``, ``value_raw``).
2. LEFT JOIN indicator names  on ``indicator_code``.
3. LEFT JOIN country names    on ``country_code``.
4. LEFT JOIN region names     on ``region_code``.
5. ``value`` = numeric ``value_raw`` (non-numeric → NaN).
6. ``date``  = January 1st of ``year``.
7. Rows with ``spatial_type == "GLOBAL"`` get ``region_name = global_label``
   whatever the region join returned.

A key missing from a reference table leaves the name null; nothing in this
module raises for unmatched keys. Reference tables are de-duplicated on
``code`` before joining, so a join never multiplies rows.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterable, Mapping

import pandas as pd

from upr_health.ingestion.gho_client import DimensionValue, GhoClient
from upr_health.models.indicator import IndicatorObservation
from upr_health.utils.time_utils import year_start

logger = logging.getLogger(__name__)

OBSERVATION_COLUMNS: tuple[str, ...] = (
    "indicator_code", "spatial_type", "country_code", "region_code", "year", "value_raw",
)
JOINED_COLUMNS: tuple[str, ...] = (
    "indicator_code", "indicator_name", "country_code", "country_name",
    "region_code", "region_name", "spatial_type", "year", "date", "value",
)


@dataclass(frozen=True)
class ReferenceTables:
    """Code → title lookups for indicators, countries and regions.

    Each frame has exactly two columns, ``code`` and ``title``.
    """

    indicators: pd.DataFrame
    countries: pd.DataFrame
    regions: pd.DataFrame


@dataclass(frozen=True)
class IndicatorTables:
    """Joined indicator output of one report run."""

    combined: pd.DataFrame
    maternal_mortality: pd.DataFrame


def reference_frame(values: Iterable[DimensionValue]) -> pd.DataFrame:
    """Build a de-duplicated ``code``/``title`` frame (first title per code wins)."""
    frame = pd.DataFrame(
        [{"code": v.code, "title": v.title} for v in values],
        columns=["code", "title"],
    )
    return frame.drop_duplicates(subset="code", keep="first").reset_index(drop=True)


def load_reference_tables(client: GhoClient) -> ReferenceTables:
    """Fetch the GHO, COUNTRY and REGION dimensions (three requests)."""
    return ReferenceTables(
        indicators=reference_frame(client.get_dimension_values("GHO")),
        countries=reference_frame(client.get_dimension_values("COUNTRY")),
        regions=reference_frame(client.get_dimension_values("REGION")),
    )


def observations_to_frame(observations: Iterable[IndicatorObservation]) -> pd.DataFrame:
    """Flatten observations into the raw observation frame."""
    return pd.DataFrame(
        [obs.model_dump() for obs in observations],
        columns=list(OBSERVATION_COLUMNS),
    )


def _lookup(frame: pd.DataFrame, reference: pd.DataFrame, key: str, name: str) -> pd.DataFrame:
    renamed = reference.rename(columns={"code": key, "title": name})
    return frame.merge(renamed, on=key, how="left")


def _year_start(year: object) -> pd.Timestamp:
    if pd.isna(year):
        return pd.NaT
    return pd.Timestamp(year_start(int(year)))


def join_indicator_series(
    observations: Iterable[IndicatorObservation],
    refs: ReferenceTables,
    global_label: str = "Global",
) -> pd.DataFrame:
    """Join one indicator series against the reference tables.

    Args:
        observations: Raw observations of one (or more) indicators.
        refs:         Reference lookups.
        global_label: Region name forced onto GLOBAL-scope rows.

    Returns:
        DataFrame with ``JOINED_COLUMNS``, in observation order.
    """
    observations = list(observations)
    is_global = [obs.is_global for obs in observations]
    frame = observations_to_frame(observations)
    frame = _lookup(frame, refs.indicators, "indicator_code", "indicator_name")
    frame = _lookup(frame, refs.countries, "country_code", "country_name")
    frame = _lookup(frame, refs.regions, "region_code", "region_name")

    frame["value"] = pd.to_numeric(frame["value_raw"], errors="coerce")
    frame["year"] = frame["year"].astype("Int64")
    frame["date"] = pd.to_datetime(frame["year"].map(_year_start))

    frame["region_name"] = frame["region_name"].astype(object)
    frame.loc[pd.Series(is_global, index=frame.index, dtype=bool), "region_name"] = global_label

    unresolved = int(frame["country_code"].notna().sum() - frame["country_name"].notna().sum())
    if unresolved:
        logger.warning("%d observation(s) have a country code with no name", unresolved)

    return frame[list(JOINED_COLUMNS)].reset_index(drop=True)


def combine_indicator_series(
    series_by_code: Mapping[str, list[IndicatorObservation]],
    refs: ReferenceTables,
    global_label: str = "Global",
) -> pd.DataFrame:
    """Join every series and concatenate them in ``series_by_code`` order."""
    joined = [
        join_indicator_series(observations, refs, global_label)
        for observations in series_by_code.values()
    ]
    if not joined:
        return pd.DataFrame(columns=list(JOINED_COLUMNS))
    combined = pd.concat(joined, ignore_index=True)
    logger.info(
        "Combined %d indicator series into %d rows", len(joined), len(combined)
    )
    return combined
