"""
ASCII terminal formatters for CLI reporting commands.

All formatters accept in-memory report objects (DataFrames, quality reports,
rule matches) and return plain multi-line strings suitable for
``typer.echo()``.

No third-party dependencies beyond pandas (no ``rich``, no ``colorama``).
"""

from __future__ import annotations

from typing import Sequence

import pandas as pd

from upr_health.analysis.classifier import RuleMatch
from upr_health.analysis.quality import RecordQualityReport
from upr_health.taxonomy.categories import HealthLabel

_MAX_LABEL = 32


def _cell(value: object) -> str:
    text = "" if value is None or (isinstance(value, float) and pd.isna(value)) else str(value)
    return text if len(text) <= _MAX_LABEL else text[: _MAX_LABEL - 3] + "..."


# ── Share tables ──────────────────────────────────────────────────────────────


def format_share_table(
    table: pd.DataFrame,
    title: str,
    max_rows: int | None = None,
) -> str:
    """Format a ``share_table()`` result as an ASCII table.

    Dimension columns are left-aligned; ``n`` and ``n_tot`` are right-aligned
    integers and ``pct`` is shown with one decimal::

        === Health-related share per cycle ===
          cycle  health_related            n  n_tot    pct
          -------------------------------------------------
          1      Not health-related      812   1040   78.1
          1      Health-related          228   1040   21.9

    Args:
        table:    DataFrame with ``[*dims, "n", "n_tot", "pct"]``.
        title:    Header line.
        max_rows: Truncate after this many rows (a footer notes the rest).

    Returns:
        Multi-line string.
    """
    lines: list[str] = []
    lines.append("")
    lines.append(f"=== {title} ===")

    if table.empty:
        lines.append("  (no rows -- every record was filtered out)")
        return "\n".join(lines)

    dims = [c for c in table.columns if c not in ("n", "n_tot", "pct")]
    widths = {
        d: max(len(d), *(len(_cell(v)) for v in table[d])) for d in dims
    }

    header = "  " + "  ".join(f"{d:<{widths[d]}}" for d in dims)
    header += f"  {'n':>7}  {'n_tot':>7}  {'pct':>6}"
    lines.append(header)
    lines.append("  " + "-" * (len(header) - 2))

    shown = table if max_rows is None else table.head(max_rows)
    for row in shown.itertuples(index=False):
        values = row._asdict()
        line = "  " + "  ".join(f"{_cell(values[d]):<{widths[d]}}" for d in dims)
        line += f"  {values['n']:>7}  {values['n_tot']:>7}  {values['pct']:>6.1f}"
        lines.append(line)

    if max_rows is not None and len(table) > max_rows:
        lines.append(f"  ... {len(table) - max_rows} more row(s)")

    return "\n".join(lines)


# ── Quality report ────────────────────────────────────────────────────────────


def format_quality_report(report: RecordQualityReport) -> str:
    """Format a ``RecordQualityReport`` as a key/value block."""
    lines: list[str] = []
    lines.append("")
    lines.append("=== Record Quality ===")
    status = "CLEAN" if report.is_clean else "ISSUES -- some records have no text"
    lines.append(f"  Status:               {status}")
    lines.append(f"  Records:              {report.total_rows}")
    lines.append(f"  Null text:            {report.null_text}")
    lines.append(f"  Null response:        {report.null_response}")
    lines.append(f"  Null cycle:           {report.null_cycle}")
    lines.append(f"  Duplicate citations:  {report.duplicate_citations}")
    lines.append(f"  States under review:  {report.distinct_states}")
    cycles = ", ".join(str(c) for c in report.cycles) or "none"
    lines.append(f"  Cycles:               {cycles}")
    if report.year_range_start is not None:
        lines.append(
            f"  Years:                {report.year_range_start.year}"
            f"-{report.year_range_end.year}"
        )
    if report.classified_rows:
        lines.append(f"  Health-related:       {report.health_related_pct:.1f}%")
    lines.append(f"  SDG-linked:           {report.sdg_linked_pct:.1f}%")
    return "\n".join(lines)


# ── Classifier explanations ───────────────────────────────────────────────────


def format_rule_matches(
    label: HealthLabel,
    matches: Sequence[RuleMatch],
    ruleset_version: str = "",
) -> str:
    """Format the label and the rules that fired for one input.

    Example::

        Label: Health-related  (rule set v1)
          [health_terms]      text       terms: sanitation, clean water
          [sdg_health_goal]   sdg_goals  terms: health
    """
    lines: list[str] = []
    suffix = f"  (rule set {ruleset_version})" if ruleset_version else ""
    lines.append(f"Label: {label}{suffix}")
    if not matches:
        lines.append("  (no rule fired)")
        return "\n".join(lines)

    name_width = max(len(m.rule) for m in matches) + 2
    for m in matches:
        detail = f"terms: {', '.join(m.terms)}"
        if m.and_terms:
            detail += f"  AND {', '.join(m.and_terms)}"
        lines.append(f"  {'[' + m.rule + ']':<{name_width}}  {m.field.value:<9}  {detail}")
    return "\n".join(lines)


# ── Indicator summary ─────────────────────────────────────────────────────────


def format_indicator_summary(frame: pd.DataFrame, title: str = "Health Indicators") -> str:
    """Summarise a joined indicator frame: one line per indicator code.

    Shows row count, year span, how many rows have a numeric value and how
    many country rows could not be named from the reference tables.
    """
    lines: list[str] = []
    lines.append("")
    lines.append(f"=== {title} ===")

    if frame.empty:
        lines.append("  (no observations)")
        return "\n".join(lines)

    header = (
        f"  {'Code':<20}  {'Rows':>6}  {'Years':>11}  {'Numeric':>7}  {'Unnamed':>7}  Name"
    )
    lines.append(header)
    lines.append("  " + "-" * (len(header) - 2))

    for code, group in frame.groupby("indicator_code", sort=False):
        years = group["year"].dropna()
        span = f"{int(years.min())}-{int(years.max())}" if len(years) else "N/A"
        numeric = int(group["value"].notna().sum())
        unnamed = int((group["country_code"].notna() & group["country_name"].isna()).sum())
        name = group["indicator_name"].dropna()
        name_s = _cell(name.iloc[0]) if len(name) else "(unknown)"
        lines.append(
            f"  {code:<20}  {len(group):>6}  {span:>11}  {numeric:>7}  {unnamed:>7}  {name_s}"
        )

    return "\n".join(lines)
