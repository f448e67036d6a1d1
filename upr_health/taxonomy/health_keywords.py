"""
Versioned keyword rule sets for the health-relatedness classifier.

A ``RuleSet`` is an ordered tuple of ``KeywordRule`` objects. Each rule targets
one record field and fires when the lower-cased field contains any of its
``terms`` and, for conjunction rules, also any of its ``and_terms``.

Matching is unanchored substring matching: ``"tb"`` fires inside
``"outbreak"`` and ``"sex"`` inside ``"intersex"``. Terms are fragments chosen
for recall (``"diabet"``, ``"vaccin"``, ``"sterili"``), and the labels they
produce need manual review. Changing a single term changes labels across the
whole corpus, so edits go into a new rule-set version, never into ``v1``.

Rule order does not affect the label (the classifier is a pure OR across
rules); it only decides which rule is reported first by ``explain()``.

This module has NO imports from any other ``upr_health`` package.
"""

from dataclasses import dataclass
from enum import StrEnum


class RuleField(StrEnum):
    """Record field a rule is evaluated against."""

    TEXT = "text"
    SDG_GOALS = "sdg_goals"


@dataclass(frozen=True)
class KeywordRule:
    """One match rule: a single alternation, or a conjunction of two.

    Attributes:
        name:      Stable identifier reported by ``explain()``.
        field:     Which record field the rule reads.
        terms:     First alternation (lower-case fragments).
        and_terms: Second alternation; empty for single-alternation rules.
    """

    name: str
    field: RuleField
    terms: tuple[str, ...]
    and_terms: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        if not self.terms:
            raise ValueError(f"Rule '{self.name}' has no terms.")
        for term in self.terms + self.and_terms:
            if term != term.lower() or not term.strip():
                raise ValueError(
                    f"Rule '{self.name}': term {term!r} must be non-empty lower-case."
                )

    @property
    def is_conjunction(self) -> bool:
        return bool(self.and_terms)


@dataclass(frozen=True)
class RuleSet:
    """Immutable, versioned collection of keyword rules."""

    version: str
    rules: tuple[KeywordRule, ...]

    def __post_init__(self) -> None:
        names = [r.name for r in self.rules]
        if len(names) != len(set(names)):
            raise ValueError(f"RuleSet {self.version} has duplicate rule names.")


# ── v1 term lists ─────────────────────────────────────────────────────────────

HEALTH_TERMS_V1: tuple[str, ...] = (
    # health systems and services
    "health", "medic", "hospital", "clinic", "doctor", "nurse", "midwi",
    "physician", "patient", "pharma", "life expectancy",
    # communicable and non-communicable disease
    "disease", "illness", "epidemic", "pandemic", "covid", "hiv", "aids",
    "tuberculosis", "tb", "malaria", "hepatitis", "cholera", "ebola", "polio",
    "leprosy", "cancer", "diabet", "obesity", "vaccin", "immuniz", "immunis",
    # mental health and substance use
    "mental", "psychiatr", "psychosocial", "suicid", "drug", "alcohol",
    "tobacco", "smoking", "narcotic",
    # maternal, newborn and reproductive health
    "maternal", "mortality", "pregnan", "abortion", "contracept",
    "reproductive", "family planning", "obstetric", "fistula", "infant",
    "newborn", "neonatal", "breastfeed",
    # harmful practices and gender-based violence
    "female genital", "fgm", "mutilation", "gender-based violence",
    "gender based violence", "rape",
    # nutrition, water and sanitation
    "nutrition", "stunting", "hunger", "food", "clean water",
    "drinking water", "sanitation", "hygiene", "toilet", "sewage",
    # disability
    "disab", "handicap", "albinism", "autis", "deaf", "blind", "wheelchair",
    # disasters and environmental hazards
    "disaster", "earthquake", "flood", "cyclone", "hurricane", "drought",
    "pollution", "pesticide", "toxic", "hazardous", "radiation", "asbestos",
    "mercury",
    # safety and well-being
    "injur", "occupational safety", "well-being", "wellbeing",
)

SDG_HEALTH_TERMS_V1: tuple[str, ...] = ("health", "sanitation")

VIOLENCE_GROUP_TERMS_V1: tuple[str, ...] = (
    "child", "girl", "women", "sexual", "domestic", "gender", "marital", "lgbt",
)
VIOLENCE_ACT_TERMS_V1: tuple[str, ...] = (
    "abuse", "maltreatment", "violence", "sexual", "same-sex",
)

FORCED_TERMS_V1: tuple[str, ...] = ("forced",)
MARRIAGE_TERMS_V1: tuple[str, ...] = ("marriage",)

BODILY_IDENTITY_TERMS_V1: tuple[str, ...] = (
    "sex", "gender", "civil identity", "transgender",
)
BODILY_PROCEDURE_TERMS_V1: tuple[str, ...] = ("surgery", "sterili")


RULESET_V1 = RuleSet(
    version="v1",
    rules=(
        KeywordRule("health_terms", RuleField.TEXT, HEALTH_TERMS_V1),
        KeywordRule("sdg_health_goal", RuleField.SDG_GOALS, SDG_HEALTH_TERMS_V1),
        KeywordRule(
            "violence_against_groups",
            RuleField.TEXT,
            VIOLENCE_GROUP_TERMS_V1,
            VIOLENCE_ACT_TERMS_V1,
        ),
        KeywordRule(
            "forced_marriage", RuleField.TEXT, FORCED_TERMS_V1, MARRIAGE_TERMS_V1
        ),
        KeywordRule(
            "bodily_integrity",
            RuleField.TEXT,
            BODILY_IDENTITY_TERMS_V1,
            BODILY_PROCEDURE_TERMS_V1,
        ),
    ),
)

RULESETS: dict[str, RuleSet] = {RULESET_V1.version: RULESET_V1}

DEFAULT_RULESET: RuleSet = RULESET_V1


def get_ruleset(version: str) -> RuleSet:
    """Return the registered rule set for ``version``.

    Raises:
        KeyError: If no rule set with that version is registered.
    """
    try:
        return RULESETS[version]
    except KeyError:
        raise KeyError(
            f"Unknown rule set version '{version}'. Known: {sorted(RULESETS)}."
        ) from None
