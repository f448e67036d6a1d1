"""
Manual review sheet for checking classifier output by hand.

Each row carries the citation, the label, and the rules and terms that fired,
so a reviewer can see at a glance why a paragraph was (or was not) flagged.
Sampling is deterministic for a given ``seed``.
"""

from __future__ import annotations

from typing import Iterable, Optional

import pandas as pd

from upr_health.analysis.classifier import classify, explain
from upr_health.models.recommendation import Recommendation
from upr_health.taxonomy.health_keywords import DEFAULT_RULESET, RuleSet

REVIEW_COLUMNS: tuple[str, ...] = (
    "document_code", "paragraph", "title", "health_related",
    "matched_rules", "matched_terms", "text",
)


def build_review_sheet(
    records: Iterable[Recommendation],
    rules: RuleSet = DEFAULT_RULESET,
    sample_size: Optional[int] = None,
    seed: int = 0,
) -> pd.DataFrame:
    """Build the review sheet for ``records``.

    Records that are not yet labelled are classified with ``rules``; a record
    that already carries a label keeps it.

    Args:
        records:     Records to review.
        rules:       Rule set used for the explanations.
        sample_size: Rows to sample; ``None`` (or a size ≥ row count) keeps all.
        seed:        Random state for the sample.

    Returns:
        DataFrame with ``REVIEW_COLUMNS``. ``matched_rules`` and
        ``matched_terms`` are ``"; "``-joined strings (empty when nothing fired).
    """
    rows = []
    for r in records:
        matches = explain(r.text, r.sdg_goals, rules)
        label = r.health_related or classify(r.text, r.sdg_goals, rules)
        terms: list[str] = []
        for m in matches:
            terms.extend(t for t in m.terms + m.and_terms if t not in terms)
        rows.append({
            "document_code": r.document_code,
            "paragraph": r.paragraph,
            "title": r.title,
            "health_related": str(label),
            "matched_rules": "; ".join(m.rule for m in matches),
            "matched_terms": "; ".join(terms),
            "text": r.text,
        })

    sheet = pd.DataFrame(rows, columns=list(REVIEW_COLUMNS))
    if sample_size is not None and sample_size < len(sheet):
        sheet = sheet.sample(n=sample_size, random_state=seed).reset_index(drop=True)
    return sheet
