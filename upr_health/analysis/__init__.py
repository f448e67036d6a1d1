"""Analysis package for the UPR Health Monitor.

Modules
-------
classifier     — keyword rules → HealthLabel, plus per-rule explanations
aggregate      — typed record DataFrame + share_table() (n / n_tot / pct)
reports        — REPORT_TABLES catalogue and build_report_tables()
quality        — RecordQualityReport for a loaded record list
review         — manual review sheet with matched rules and terms
indicator_join — GHO observations × reference tables → joined indicator frame
"""
