"""
Shared pytest fixtures for the UPR Health Monitor test suite.

Provides:
  - ``make_record``: factory for ``Recommendation`` objects with sane defaults.
  - ``labelled_records``: five labelled records with known cross-tab counts.
  - ``records_file``: a small Parquet recommendations file in ``tmp_path``.
  - ``gho_transport``: an ``httpx.MockTransport`` serving canned GHO payloads.
  - ``app_config``: an ``AppConfig`` whose paths all point into ``tmp_path``.
"""

from __future__ import annotations

from pathlib import Path
from typing import Callable, Optional

import httpx
import pyarrow as pa
import pyarrow.parquet as pq
import pytest

from upr_health.config import AppConfig, DataConfig, IndicatorConfig, LoggingConfig
from upr_health.ingestion.gho_client import GhoClient
from upr_health.ingestion.records_loader import derive_sdg_linked
from upr_health.models.recommendation import Recommendation
from upr_health.taxonomy.categories import HealthLabel, UprResponse

NO_LINK = "No SDG link identified"
GHO_BASE = "https://gho.test/api"


# ── Record factories ──────────────────────────────────────────────────────────

@pytest.fixture
def make_record() -> Callable[..., Recommendation]:
    """Return a factory building ``Recommendation`` objects.

    ``sdg_linked`` is derived from ``sdg_goals`` exactly as the loader does.
    """

    def _make(
        text: Optional[str] = "Strengthen the independence of the judiciary",
        sdg_goals: Optional[str] = NO_LINK,
        cycle: Optional[int] = 1,
        state: Optional[str] = "Norway",
        response: Optional[UprResponse] = None,
        health: Optional[HealthLabel] = None,
        document_code: Optional[str] = "A/HRC/40/1",
        paragraph: Optional[str] = "140.1 | Judiciary",
    ) -> Recommendation:
        return Recommendation(
            text=text,
            state_under_review=state,
            cycle=cycle,
            sdg_goals=sdg_goals,
            sdg_linked=derive_sdg_linked(sdg_goals),
            response_upr=response,
            document_code=document_code,
            paragraph=paragraph,
            title=paragraph.split("|")[1].strip() if paragraph and "|" in paragraph else None,
            health_related=health,
        )

    return _make


@pytest.fixture
def labelled_records(make_record) -> list[Recommendation]:
    """Five labelled records.

    cycle 1: Health/Supported/linked (Norway), Not/Noted (Norway), Not/None (Chile)
    cycle 2: Health/Supported-Noted/linked (Chile), Health/Supported (Kenya)
    """
    h, n = HealthLabel.HEALTH_RELATED, HealthLabel.NOT_HEALTH_RELATED
    return [
        make_record(cycle=1, state="Norway", health=h, response=UprResponse.SUPPORTED,
                    sdg_goals="Goal 3 | Good health", paragraph="1 | A"),
        make_record(cycle=1, state="Norway", health=n, response=UprResponse.NOTED,
                    paragraph="2 | B"),
        make_record(cycle=1, state="Chile", health=n, response=None,
                    paragraph="3 | C"),
        make_record(cycle=2, state="Chile", health=h, response=UprResponse.SUPPORTED_NOTED,
                    sdg_goals="Goal 6 | Clean water", paragraph="4 | D"),
        make_record(cycle=2, state="Kenya", health=h, response=UprResponse.SUPPORTED,
                    paragraph="5 | E"),
    ]


# ── Input file ────────────────────────────────────────────────────────────────

RAW_COLUMNS = {
    "Text": [
        "Provide access to clean water and sanitation facilities",
        "Ratify the Optional Protocol to the Convention against Torture",
        "Combat domestic violence",
        "Guarantee freedom of expression and of the press",
        "Abolish the death penalty",
    ],
    "Mechanism": [
        "Universal Periodic Review",
        "Universal Periodic Review",
        "Universal Periodic Review",
        "Treaty Bodies",
        "Universal Periodic Review",
    ],
    "SDG Goals": [
        "Goal 6 | Clean water and sanitation",
        NO_LINK,
        "Goal 5 | Gender equality",
        NO_LINK,
        "Goal 3 | Good health and well-being",
    ],
    "State under Review": ["Norway", "Chile", "Kenya", "Chile", "Norway"],
    "Cycle": ["Cycle 2", "2", "3rd cycle", "3", "3"],
    "Year": [2014, 2014, 2019, 2019, 2019],
    "Response (UPR)": ["Supported", "Noted", "Supported", "", "Not applicable"],
    "Document Code": ["A/HRC/27/15", "A/HRC/27/16", "A/HRC/41/12", "CRC/C/1", "A/HRC/42/5"],
    "Paragraph": ["131.1 | Water", "131.2 | Torture", "140.7 | Violence", "5 | X", "98.3 | Death penalty"],
}


@pytest.fixture
def records_file(tmp_path: Path) -> Path:
    """Parquet file with five source rows (four UPR, one Treaty Bodies)."""
    path = tmp_path / "upr_recommendations.parquet"
    pq.write_table(pa.table(RAW_COLUMNS), path)
    return path


# ── GHO mock service ──────────────────────────────────────────────────────────

DIMENSIONS = {
    "GHO": [
        {"Code": "WHOSIS_000001", "Title": "Life expectancy at birth (years)"},
        {"Code": "MDG_0000000026", "Title": "Maternal mortality ratio"},
    ],
    "COUNTRY": [
        {"Code": "NOR", "Title": "Norway"},
        {"Code": "KEN", "Title": "Kenya"},
    ],
    "REGION": [
        {"Code": "EUR", "Title": "Europe"},
        {"Code": "AFR", "Title": "Africa"},
        {"Code": "GLOBAL", "Title": "World"},
    ],
}

INDICATORS = {
    "WHOSIS_000001": [
        {"IndicatorCode": "WHOSIS_000001", "SpatialDimType": "COUNTRY", "SpatialDim": "NOR",
         "ParentLocationCode": "EUR", "TimeDim": 2019, "NumericValue": 82.6, "Value": "82.6"},
        {"IndicatorCode": "WHOSIS_000001", "SpatialDimType": "COUNTRY", "SpatialDim": "KEN",
         "ParentLocationCode": "AFR", "TimeDim": 2019, "NumericValue": 66.1, "Value": "66.1"},
        {"IndicatorCode": "WHOSIS_000001", "SpatialDimType": "GLOBAL", "SpatialDim": "GLOBAL",
         "TimeDim": 2019, "NumericValue": 73.3, "Value": "73.3"},
    ],
    "MDG_0000000026": [
        {"IndicatorCode": "MDG_0000000026", "SpatialDimType": "REGION", "SpatialDim": "AFR",
         "TimeDim": 2017, "NumericValue": 525.0, "Value": "525 [476-598]"},
        {"IndicatorCode": "MDG_0000000026", "SpatialDimType": "COUNTRY", "SpatialDim": "XYZ",
         "ParentLocationCode": "AFR", "TimeDim": 2017, "NumericValue": None, "Value": "No data"},
    ],
}


def gho_handler(request: httpx.Request) -> httpx.Response:
    """Serve ``DIMENSIONS`` / ``INDICATORS``; anything else is a 404."""
    parts = request.url.path.strip("/").split("/")
    # ["api", "DIMENSION", "<dim>", "DimensionValues"] or ["api", "<code>"]
    if len(parts) == 4 and parts[1] == "DIMENSION" and parts[2] in DIMENSIONS:
        return httpx.Response(200, json={"value": DIMENSIONS[parts[2]]})
    if len(parts) == 2 and parts[1] in INDICATORS:
        return httpx.Response(200, json={"value": INDICATORS[parts[1]]})
    return httpx.Response(404, json={"error": "not found"})


@pytest.fixture
def gho_transport() -> httpx.MockTransport:
    return httpx.MockTransport(gho_handler)


@pytest.fixture
def gho_client(gho_transport: httpx.MockTransport) -> GhoClient:
    """``GhoClient`` wired to the mock service for sync and async calls."""
    return GhoClient(
        base_url=GHO_BASE,
        transport=gho_transport,
        async_transport=gho_transport,
    )


# ── Config ────────────────────────────────────────────────────────────────────

@pytest.fixture
def app_config(tmp_path: Path, records_file: Path) -> AppConfig:
    """``AppConfig`` pointing every path into ``tmp_path``."""
    return AppConfig(
        data=DataConfig(
            records_path=str(records_file),
            output_dir=str(tmp_path / "outputs"),
            run_log_file=str(tmp_path / "logs" / "runs.jsonl"),
        ),
        indicators=IndicatorConfig(
            base_url=GHO_BASE,
            indicator_codes=["WHOSIS_000001"],
            maternal_mortality_code="MDG_0000000026",
        ),
        logging=LoggingConfig(log_file=""),
    )
