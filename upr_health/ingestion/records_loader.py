"""
Record loader: columnar file → list of ``Recommendation``.

Flow
----
1. Read the file with pyarrow (``.parquet``, ``.feather``/``.arrow``, ``.csv``).
2. Normalise column names with ``clean_column_name()``
   (``"State under Review"`` → ``state_under_review``).
3. Check required columns (``text``, ``mechanism``, ``sdg_goals``); optional
   columns that are absent become all-null.
4. Convert blank / whitespace-only string cells to ``None``.
5. Keep only rows whose ``mechanism`` equals ``config.mechanism``.
6. Derive typed fields: ``year`` (Jan 1 date), ``cycle`` (int),
   ``sdg_linked``, ``title``, ``response_upr``.

Any failure raises ``RecordLoadError`` and nothing is returned; there is no
partial or best-effort load.
"""

from __future__ import annotations

import logging
import re
from datetime import date
from pathlib import Path
from typing import Any, Optional

import pyarrow as pa
import pyarrow.csv as pa_csv
import pyarrow.feather as feather
import pyarrow.parquet as pq

from upr_health.config import LoaderConfig
from upr_health.models.recommendation import Recommendation
from upr_health.taxonomy.categories import SdgLink, UprResponse
from upr_health.utils.time_utils import year_start

logger = logging.getLogger(__name__)

REQUIRED_COLUMNS: tuple[str, ...] = ("text", "mechanism", "sdg_goals")
OPTIONAL_COLUMNS: tuple[str, ...] = (
    "state_under_review", "cycle", "year", "response_upr",
    "document_code", "paragraph",
)

_NON_ALNUM = re.compile(r"[^0-9a-z]+")
_DIGITS = re.compile(r"\d+")


class RecordLoadError(ValueError):
    """Input file is missing, unreadable, or does not match the record schema."""


# ── Column / cell helpers ─────────────────────────────────────────────────────

def clean_column_name(name: str) -> str:
    """Return the canonical snake_case form of a column header.

    ``"Response (UPR)"`` → ``"response_upr"``, ``"SDG Goals"`` → ``"sdg_goals"``.
    """
    return _NON_ALNUM.sub("_", name.strip().lower()).strip("_")


def blank_to_none(value: Any) -> Any:
    """Return ``None`` for empty / whitespace-only strings, else ``value``."""
    if isinstance(value, str) and not value.strip():
        return None
    return value


def derive_sdg_linked(sdg_goals: Optional[str], sentinel: str = "No SDG link identified") -> SdgLink:
    """``sentinel`` (exact, case-sensitive) → ``NO_LINK``; anything else → ``LINKED``."""
    if sdg_goals == sentinel:
        return SdgLink.NO_LINK
    return SdgLink.LINKED


def derive_title(paragraph: Optional[str]) -> Optional[str]:
    """Second ``|``-delimited segment of ``paragraph``, trimmed."""
    if paragraph is None:
        return None
    parts = paragraph.split("|")
    if len(parts) < 2:
        return None
    return parts[1].strip() or None


def parse_year(value: Any) -> Optional[date]:
    """Turn a bare year (int, float, numeric string, date) into January 1st.

    Raises:
        ValueError: If ``value`` is not interpretable as a year.
    """
    if value is None:
        return None
    if isinstance(value, date):
        return year_start(value.year)
    if isinstance(value, float):
        if not value.is_integer():
            raise ValueError(f"year {value!r} is not a whole number")
        value = int(value)
    year = int(str(value).strip())
    return year_start(year)


def parse_cycle(value: Any) -> Optional[int]:
    """Extract the cycle number from ``3``, ``"3"``, ``"Cycle 3"`` or ``"3rd cycle"``.

    Raises:
        ValueError: If no cycle number can be found, or a float cycle is
            not a whole number.
    """
    if value is None:
        return None
    if isinstance(value, float):
        if not value.is_integer():
            raise ValueError(f"cycle {value!r} is not a whole number")
        return int(value)
    if isinstance(value, int) and not isinstance(value, bool):
        return value
    match = _DIGITS.search(str(value))
    if match is None:
        raise ValueError(f"cycle {value!r} has no cycle number")
    return int(match.group())


# ── Reading ───────────────────────────────────────────────────────────────────

def read_table(path: Path) -> pa.Table:
    """Read a columnar file into an Arrow table, choosing the reader by suffix.

    Raises:
        RecordLoadError: If the file is missing, unsupported or unparsable.
    """
    if not path.exists():
        raise RecordLoadError(f"Records file not found: {path}")

    suffix = path.suffix.lower()
    try:
        if suffix == ".parquet":
            return pq.read_table(path)
        if suffix in (".feather", ".arrow"):
            return feather.read_table(path)
        if suffix == ".csv":
            return pa_csv.read_csv(path)
    except (OSError, pa.ArrowException) as exc:
        raise RecordLoadError(f"Could not read records file {path}: {exc}") from exc

    raise RecordLoadError(
        f"Unsupported records file format '{suffix}'. Use .parquet, .feather or .csv."
    )


def _normalise_columns(table: pa.Table) -> pa.Table:
    cleaned = [clean_column_name(c) for c in table.column_names]
    duplicates = sorted({c for c in cleaned if cleaned.count(c) > 1})
    if duplicates:
        raise RecordLoadError(
            f"Column names collide after normalisation: {duplicates}"
        )
    return table.rename_columns(cleaned)


# ── Public entry point ────────────────────────────────────────────────────────

def load_recommendations(
    path: Path | str,
    config: Optional[LoaderConfig] = None,
) -> list[Recommendation]:
    """Load UPR recommendations from a columnar file.

    Args:
        path:   Parquet, Feather or CSV file with one row per recommendation.
        config: Loader settings; defaults to ``LoaderConfig()``.

    Returns:
        Unclassified ``Recommendation`` records for the configured mechanism,
        in file order.

    Raises:
        RecordLoadError: On a missing/corrupt file, a missing required column,
            or a cell that cannot be converted to its typed field.
    """
    config = config or LoaderConfig()
    path = Path(path)

    table = _normalise_columns(read_table(path))

    missing = [c for c in REQUIRED_COLUMNS if c not in table.column_names]
    if missing:
        raise RecordLoadError(
            f"Records file {path} is missing required column(s): {missing}. "
            f"Found: {table.column_names}"
        )

    absent = [c for c in OPTIONAL_COLUMNS if c not in table.column_names]
    if absent:
        logger.warning("Optional column(s) absent, filled with nulls: %s", absent)

    rows = table.to_pylist()
    logger.info("Read %d rows from %s", len(rows), path)

    null_responses = {v.strip().lower() for v in config.null_response_values}
    records: list[Recommendation] = []
    skipped_mechanism = 0

    for line_no, raw in enumerate(rows, start=1):
        row = {key: blank_to_none(val) for key, val in raw.items()}
        mechanism = row.get("mechanism")
        if mechanism is None or str(mechanism).strip() != config.mechanism:
            skipped_mechanism += 1
            continue
        try:
            records.append(_build_record(row, config, null_responses))
        except ValueError as exc:
            raise RecordLoadError(f"{path} row {line_no}: {exc}") from exc

    logger.info(
        "Loaded %d '%s' records (%d rows from other mechanisms skipped)",
        len(records), config.mechanism, skipped_mechanism,
    )
    return records


def _build_record(
    row: dict[str, Any],
    config: LoaderConfig,
    null_responses: set[str],
) -> Recommendation:
    """Convert one blank-normalised row dict into a ``Recommendation``."""
    sdg_goals = _as_str(row.get("sdg_goals"))
    paragraph = _as_str(row.get("paragraph"))

    return Recommendation(
        text=_as_str(row.get("text")),
        state_under_review=_as_str(row.get("state_under_review")),
        cycle=parse_cycle(row.get("cycle")),
        year=parse_year(row.get("year")),
        sdg_goals=sdg_goals,
        sdg_linked=derive_sdg_linked(sdg_goals, config.no_sdg_link_sentinel),
        response_upr=_parse_response(row.get("response_upr"), config, null_responses),
        document_code=_as_str(row.get("document_code")),
        paragraph=paragraph,
        title=derive_title(paragraph),
    )


def _parse_response(
    value: Any,
    config: LoaderConfig,
    null_responses: set[str],
) -> Optional[UprResponse]:
    if value is None:
        return None
    raw = str(value).strip()
    if raw.lower() in null_responses:
        return None
    parsed = UprResponse.parse(raw)
    if parsed is not None:
        return parsed
    if config.strict_categories:
        raise ValueError(
            f"unknown response_upr value {raw!r}; expected one of "
            f"{[m.value for m in UprResponse]} or {config.null_response_values}"
        )
    logger.warning("Unknown response_upr value %r mapped to null", raw)
    return None


def _as_str(value: Any) -> Optional[str]:
    if value is None:
        return None
    return value if isinstance(value, str) else str(value)
