# -*- coding: utf-8 -*-
"""
Sanity checks on the reference data and its load-time validation.
"""

import pytest

import config
import scoring


class TestReferenceData:
    def test_option_values(self):
        assert scoring.CHOICES == {
            "entity_size": ("small", "medium", "large"),
            "service_sensitivity": ("low", "medium", "high"),
            "governance_maturity": ("none", "basic", "structured", "iso"),
        }
        assert scoring.FLAG_NAMES == ("cloud", "mfa", "incident_process", "supply_chain")

    def test_every_tier_has_every_field(self):
        for tier in config.TIER_IDS:
            for field in config.TIER_FIELDS:
                assert config.TIERS[tier][field]

    def test_result_sections_cover_bundle_text(self):
        fields = [s["field"] for s in config.RESULT_SECTIONS]
        assert fields == [
            "implications",
            "obligations",
            "timeline",
            "accountability",
            "positioning",
        ]

    def test_choice_steps(self):
        assert sorted(config.STEP_FIELDS) == [1, 2, 4]
        assert set(config.STEP_OPTIONS) == set(config.STEP_FIELDS)


class TestValidation:
    def test_shipped_tables_pass(self):
        scoring._validate_config()

    def test_missing_tier_rejected(self, monkeypatch):
        tiers = {k: v for k, v in config.TIERS.items() if k != "tier-2"}
        monkeypatch.setattr(scoring, "TIERS", tiers)
        with pytest.raises(ValueError, match="exactly"):
            scoring._validate_config()

    def test_missing_field_rejected(self, monkeypatch):
        tiers = dict(config.TIERS)
        tiers["tier-1"] = {k: v for k, v in tiers["tier-1"].items() if k != "timeline"}
        monkeypatch.setattr(scoring, "TIERS", tiers)
        with pytest.raises(ValueError, match="timeline"):
            scoring._validate_config()

    def test_unscored_option_warns(self, monkeypatch, caplog):
        choices = dict(scoring.CHOICES, governance_maturity=("none", "expert"))
        monkeypatch.setattr(scoring, "CHOICES", choices)
        with caplog.at_level("WARNING", logger="scoring"):
            scoring._validate_config()
        assert "expert" in caplog.text
