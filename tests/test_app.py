# -*- coding: utf-8 -*-
"""
Tests for the Dash presentation helpers.

The callbacks delegate to these helpers, so the click-to-state routing
and the result rendering are exercised without a browser.
"""

import pytest
from dash.exceptions import PreventUpdate

import app as wizard_app
from wizard import WizardController


def option(step, value):
    return {"type": "option", "step": step, "value": value}


def back(step):
    return {"type": "back", "step": step}


@pytest.fixture
def fresh():
    return WizardController().to_dict()


def run(data, *triggers, infra=None):
    for trigger in triggers:
        data = wizard_app.apply_action(data, trigger, infra)
    return data


class TestApplyAction:
    """Click routing."""

    def test_option_click_advances(self, fresh):
        data = run(fresh, option(1, "large"))
        assert data["step"] == 2
        assert data["answers"]["entity_size"] == "large"

    def test_full_flow(self, fresh):
        data = run(fresh, option(1, "large"), option(2, "high"))
        data = run(data, "infra-continue", infra=["cloud", "supply_chain"])
        assert data["answers"]["infrastructure"] == {
            "cloud": True,
            "mfa": False,
            "incident_process": False,
            "supply_chain": True,
        }
        data = run(data, option(4, "iso"))
        assert data["step"] == 5
        # 3 + 3 + min(6, 3) - 2
        assert data["result"]["score"] == 7
        assert data["result"]["tier"] == "tier-3"

    def test_back_click(self, fresh):
        data = run(fresh, option(1, "small"), back(2))
        assert data["step"] == 1

    def test_restart(self, fresh):
        data = run(fresh, option(1, "small"), option(2, "low"))
        data = run(data, "infra-continue", infra=["mfa", "incident_process"])
        data = run(data, option(4, "basic"), "restart")
        assert data == WizardController().to_dict()

    def test_stale_option_click_prevented(self, fresh):
        with pytest.raises(PreventUpdate):
            run(fresh, option(2, "high"))

    def test_back_at_step_1_prevented(self, fresh):
        with pytest.raises(PreventUpdate):
            run(fresh, back(1))

    def test_unknown_trigger_prevented(self, fresh):
        with pytest.raises(PreventUpdate):
            run(fresh, "somewhere-else")

    def test_unknown_flag_prevented(self, fresh):
        data = run(fresh, option(1, "small"), option(2, "low"))
        with pytest.raises(PreventUpdate):
            run(data, "infra-continue", infra=["vpn"])

    def test_corrupt_store_restarts(self):
        data = run({"step": "x"}, option(1, "medium"))
        assert data["step"] == 2


class TestViewHelpers:
    """Classes and texts derived from the stored state."""

    def test_step_classes(self):
        ids = [{"type": "step", "step": s} for s in range(1, 6)]
        assert wizard_app.step_classes(ids, 3) == [
            "step",
            "step",
            "step active",
            "step",
            "step",
        ]

    def test_option_classes_mark_selection(self):
        ids = [option(1, "small"), option(1, "large"), option(2, "low")]
        answers = {"entity_size": "large", "service_sensitivity": None}
        assert wizard_app.option_classes(ids, answers) == [
            "option-card",
            "option-card selected",
            "option-card",
        ]

    def test_progress_text(self):
        assert wizard_app.progress_text(2) == "Step 2 of 4 • Service Sensitivity"
        assert wizard_app.progress_text(5) == "Assessment complete"

    def test_load_controller_falls_back(self):
        ctrl = wizard_app.load_controller({"step": 5, "answers": {}})
        assert ctrl.step == 1

    def test_load_controller_rejects_skipped_steps(self):
        ctrl = wizard_app.load_controller({"step": 4, "answers": {}})
        assert ctrl.step == 1
        assert ctrl.answers.entity_size is None


class TestResultRendering:
    @pytest.mark.parametrize("tier,count", [("tier-1", 3), ("tier-2", 4), ("tier-3", 5)])
    def test_sections(self, tier, count):
        sections = wizard_app.render_result(tier)
        assert len(sections) == 5
        headings = [s.children[0].children for s in sections]
        assert headings[0].endswith("Legal Implications")
        assert headings[-1].endswith("Strategic Recommendation")
        obligations = sections[1].children[1]
        assert len(obligations.children) == count

    def test_breakdown_figure(self):
        breakdown = {
            "size": 3,
            "sensitivity": 2,
            "infrastructure": 3,
            "governance": -2,
            "infrastructure_raw": 5,
            "total": 6,
        }
        fig = wizard_app.breakdown_figure(breakdown)
        assert list(fig.data[0].x) == [3, 2, 3, -2]
        assert fig.layout.title.text == "Exposure score: 6"

    def test_empty_breakdown_figure(self):
        fig = wizard_app.breakdown_figure(None, "dark")
        assert len(fig.data) == 0
        assert fig.layout.font.color == "#f6f7fb"


class TestLayout:
    def test_one_panel_per_step(self):
        panels = wizard_app.build_steps()
        assert [p.id["step"] for p in panels] == [1, 2, 3, 4, 5]

    def test_choice_cards(self):
        cards = wizard_app.build_choice_step(4)
        assert [c.id["value"] for c in cards] == ["none", "basic", "structured", "iso"]
