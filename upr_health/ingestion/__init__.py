"""
Ingestion layer — the two inputs of a report run.

Submodules:
  records_loader — columnar UPR recommendations file → ``Recommendation`` list
  gho_client     — WHO Global Health Observatory OData API (dimensions + indicators)

Neither module caches or retries: a missing file or a failed request aborts
the run.
"""
