"""
Keyword classifier: (text, sdg_goals) → ``HealthLabel``.

``classify()`` is a pure function of its inputs and the rule set passed in.
Both fields are lower-cased and every rule is an unanchored substring test;
a recommendation is health-related when ANY rule fires. ``None`` or empty
inputs never match, so classification cannot fail.

``explain()`` evaluates every rule (no short-circuit) and reports which terms
fired, for the manual review sheet.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from functools import lru_cache
from typing import Iterable, Optional

from upr_health.models.recommendation import Recommendation
from upr_health.taxonomy.categories import HealthLabel
from upr_health.taxonomy.health_keywords import (
    DEFAULT_RULESET,
    KeywordRule,
    RuleField,
    RuleSet,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RuleMatch:
    """One rule that fired, with the terms that matched in each alternation."""

    rule: str
    field: RuleField
    terms: tuple[str, ...]
    and_terms: tuple[str, ...] = ()


@lru_cache(maxsize=None)
def _alternation(terms: tuple[str, ...]) -> re.Pattern[str]:
    """Compile ``terms`` into one literal alternation, longest term first."""
    ordered = sorted(terms, key=len, reverse=True)
    return re.compile("|".join(re.escape(t) for t in ordered))


def _found(terms: tuple[str, ...], haystack: str) -> tuple[str, ...]:
    """Terms of ``terms`` that occur in ``haystack``, in rule order."""
    return tuple(t for t in terms if t in haystack)


def _field_value(rule: KeywordRule, text: str, sdg_goals: str) -> str:
    return text if rule.field is RuleField.TEXT else sdg_goals


def rule_fires(rule: KeywordRule, haystack: str) -> bool:
    """True when ``haystack`` (already lower-cased) satisfies ``rule``."""
    if not haystack or _alternation(rule.terms).search(haystack) is None:
        return False
    if rule.is_conjunction:
        return _alternation(rule.and_terms).search(haystack) is not None
    return True


def classify(
    text: Optional[str],
    sdg_goals: Optional[str],
    rules: RuleSet = DEFAULT_RULESET,
) -> HealthLabel:
    """Label one recommendation.

    Args:
        text:      Recommendation text.
        sdg_goals: Raw SDG linkage string.
        rules:     Keyword rule set to apply.

    Returns:
        ``HealthLabel.HEALTH_RELATED`` if any rule fires, else
        ``HealthLabel.NOT_HEALTH_RELATED``.
    """
    lowered_text = (text or "").lower()
    lowered_goals = (sdg_goals or "").lower()
    for rule in rules.rules:
        if rule_fires(rule, _field_value(rule, lowered_text, lowered_goals)):
            return HealthLabel.HEALTH_RELATED
    return HealthLabel.NOT_HEALTH_RELATED


def explain(
    text: Optional[str],
    sdg_goals: Optional[str],
    rules: RuleSet = DEFAULT_RULESET,
) -> list[RuleMatch]:
    """Return every rule that fires for this input, in rule-set order.

    An empty list means ``classify()`` returns ``NOT_HEALTH_RELATED``.
    """
    lowered_text = (text or "").lower()
    lowered_goals = (sdg_goals or "").lower()
    matches: list[RuleMatch] = []
    for rule in rules.rules:
        haystack = _field_value(rule, lowered_text, lowered_goals)
        if not rule_fires(rule, haystack):
            continue
        matches.append(
            RuleMatch(
                rule=rule.name,
                field=rule.field,
                terms=_found(rule.terms, haystack),
                and_terms=_found(rule.and_terms, haystack) if rule.is_conjunction else (),
            )
        )
    return matches


def classify_records(
    records: Iterable[Recommendation],
    rules: RuleSet = DEFAULT_RULESET,
) -> list[Recommendation]:
    """Return copies of ``records`` with ``health_related`` set.

    The input records are not modified.
    """
    labelled = [
        r.model_copy(update={"health_related": classify(r.text, r.sdg_goals, rules)})
        for r in records
    ]
    n_health = sum(1 for r in labelled if r.health_related is HealthLabel.HEALTH_RELATED)
    logger.info(
        "Classified %d records with rule set %s: %d health-related",
        len(labelled), rules.version, n_health,
    )
    return labelled
