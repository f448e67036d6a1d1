"""
Descriptive aggregation of labelled recommendations.

``records_to_frame()`` turns a record list into a pandas DataFrame whose
categorical columns carry the fixed enum order (and an ordered ``cycle``), so
every table sorts the same way on every run.

``share_table()`` counts records per combination of ``dims`` and expresses
each count as a percentage of its group:

* group keys = ``dims[:-1]``, category = ``dims[-1]``
* ``n``     — records in the (group, category) cell
* ``n_tot`` — records in the group (sum of ``n`` over the group's categories)
* ``pct``   — ``n / n_tot * 100``

With a single dimension the whole filtered dataset is the group. Filters are
applied before grouping, records with a null grouping value are left out of
the table, and only observed combinations appear (no zero rows).
"""

from __future__ import annotations

from typing import Iterable, Mapping, Optional, Sequence

import pandas as pd

from upr_health.models.recommendation import Recommendation
from upr_health.taxonomy.categories import HealthLabel, SdgLink, UprResponse

RECORD_COLUMNS: tuple[str, ...] = (
    "text", "state_under_review", "cycle", "year", "sdg_goals", "sdg_linked",
    "response_upr", "document_code", "paragraph", "title", "health_related",
)

_ENUM_COLUMNS = {
    "sdg_linked": SdgLink,
    "response_upr": UprResponse,
    "health_related": HealthLabel,
}


def records_to_frame(records: Iterable[Recommendation]) -> pd.DataFrame:
    """Build the typed record table used by every aggregation.

    Enum columns become ``pd.Categorical`` with the enum's member order;
    ``cycle`` becomes an ordered categorical of the cycles present.
    """
    rows = [r.model_dump() for r in records]
    frame = pd.DataFrame(rows, columns=list(RECORD_COLUMNS))

    for col, enum_cls in _ENUM_COLUMNS.items():
        values = frame[col].map(lambda v: None if v is None else str(v))
        frame[col] = pd.Categorical(values, categories=[m.value for m in enum_cls])

    cycles = sorted({int(c) for c in frame["cycle"].dropna()})
    frame["cycle"] = pd.Categorical(
        frame["cycle"].map(lambda v: None if pd.isna(v) else int(v)),
        categories=cycles,
        ordered=True,
    )
    return frame


def share_table(
    frame: pd.DataFrame,
    dims: Sequence[str],
    *,
    exclude_null: Sequence[str] = (),
    exclude_values: Optional[Mapping[str, Iterable[str]]] = None,
) -> pd.DataFrame:
    """Count records per ``dims`` combination with within-group percentages.

    Args:
        frame:          Output of ``records_to_frame()``.
        dims:           Grouping dimensions; the last one is the category.
        exclude_null:   Drop records where any of these columns is null.
        exclude_values: ``{column: values}`` — drop records whose column holds
                        one of ``values`` (e.g. ``{"response_upr": ["Supported/Noted"]}``).

    Returns:
        DataFrame with columns ``[*dims, "n", "n_tot", "pct"]``.

    Raises:
        ValueError: If ``dims`` is empty or names an unknown column.
    """
    dims = list(dims)
    if not dims:
        raise ValueError("share_table() needs at least one dimension.")
    referenced = dims + list(exclude_null) + list(exclude_values or {})
    unknown = [c for c in referenced if c not in frame.columns]
    if unknown:
        raise ValueError(f"Unknown column(s) for share_table(): {unknown}")

    subset = frame
    for col in exclude_null:
        subset = subset[subset[col].notna()]
    for col, values in (exclude_values or {}).items():
        subset = subset[~subset[col].isin([str(v) for v in values])]
    subset = subset.dropna(subset=dims)

    counts = (
        subset.groupby(dims, observed=True, sort=True)
        .size()
        .rename("n")
        .reset_index()
    )

    group_keys = dims[:-1]
    if group_keys:
        counts["n_tot"] = counts.groupby(group_keys, observed=True)["n"].transform("sum")
    else:
        counts["n_tot"] = counts["n"].sum()

    counts["n"] = counts["n"].astype("int64")
    counts["n_tot"] = counts["n_tot"].astype("int64")
    counts["pct"] = counts["n"] / counts["n_tot"] * 100.0
    return counts
