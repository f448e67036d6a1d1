"""Tests for the keyword rule sets — structure, validation, registry."""

from __future__ import annotations

import pytest

from upr_health.taxonomy.health_keywords import (
    DEFAULT_RULESET,
    HEALTH_TERMS_V1,
    RULESET_V1,
    KeywordRule,
    RuleField,
    RuleSet,
    get_ruleset,
)

_RULES = {r.name: r for r in RULESET_V1.rules}


class TestRulesetV1:
    def test_default_is_v1(self):
        assert DEFAULT_RULESET is RULESET_V1
        assert RULESET_V1.version == "v1"

    def test_rule_names(self):
        assert [r.name for r in RULESET_V1.rules] == [
            "health_terms",
            "sdg_health_goal",
            "violence_against_groups",
            "forced_marriage",
            "bodily_integrity",
        ]

    def test_only_sdg_rule_reads_sdg_goals(self):
        sdg_rules = [r.name for r in RULESET_V1.rules if r.field is RuleField.SDG_GOALS]
        assert sdg_rules == ["sdg_health_goal"]

    def test_conjunction_rules(self):
        conj = {r.name for r in RULESET_V1.rules if r.is_conjunction}
        assert conj == {"violence_against_groups", "forced_marriage", "bodily_integrity"}

    def test_sdg_terms(self):
        assert _RULES["sdg_health_goal"].terms == ("health", "sanitation")

    def test_all_terms_lowercase(self):
        for rule in RULESET_V1.rules:
            for term in rule.terms + rule.and_terms:
                assert term == term.lower(), f"{rule.name}: {term!r} not lowercase"

    def test_key_health_fragments_present(self):
        for fragment in ("health", "tb", "aids", "disab", "clean water", "sanitation", "rape"):
            assert fragment in HEALTH_TERMS_V1


class TestKeywordRuleValidation:
    def test_rejects_empty_terms(self):
        with pytest.raises(ValueError, match="no terms"):
            KeywordRule("empty", RuleField.TEXT, ())

    def test_rejects_uppercase_term(self):
        with pytest.raises(ValueError, match="lower-case"):
            KeywordRule("bad", RuleField.TEXT, ("Health",))

    def test_rejects_blank_and_term(self):
        with pytest.raises(ValueError):
            KeywordRule("bad", RuleField.TEXT, ("forced",), ("  ",))

    def test_ruleset_rejects_duplicate_names(self):
        rule = KeywordRule("dup", RuleField.TEXT, ("health",))
        with pytest.raises(ValueError, match="duplicate"):
            RuleSet(version="x", rules=(rule, rule))


class TestRegistry:
    def test_get_known_version(self):
        assert get_ruleset("v1") is RULESET_V1

    def test_unknown_version_raises(self):
        with pytest.raises(KeyError, match="Unknown rule set version"):
            get_ruleset("v99")
