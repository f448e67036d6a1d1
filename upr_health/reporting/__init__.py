"""
upr_health.reporting — Formatting and flat-file export of report output.

This package takes in-memory results (share tables, quality reports,
classifier explanations, joined indicator frames) and either formats them
for CLI display or writes them to data/outputs/.

Modules:
  formatters — ASCII terminal table formatters for Typer CLI commands.
  export     — CSV/JSON/Parquet flat-file export helpers.
"""
