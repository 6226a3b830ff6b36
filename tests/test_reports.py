# -*- coding: utf-8 -*-
"""
Tests for the CSV, PPTX and PDF exports.
"""

import io

import pytest
from pptx import Presentation

from reports import (answer_rows, breakdown_rows, result_frame,
                     write_pdf_bytes, write_ppt_bytes)
from wizard import WizardController


@pytest.fixture
def completed():
    """Store data of a finished assessment scoring exactly 6."""
    wizard = WizardController()
    wizard.set_answer(1, "medium")
    wizard.set_answer(2, "low")
    wizard.set_infrastructure(
        {"cloud": True, "mfa": True, "incident_process": True, "supply_chain": False}
    )
    wizard.set_answer(4, "none")
    return wizard.to_dict()


@pytest.fixture
def meta():
    return {"org": "Acme & Partners", "assessor": "J. Doe"}


class TestRows:
    def test_answer_rows_use_labels(self, completed):
        rows = dict(answer_rows(completed["answers"]))
        assert rows["Entity size"].startswith("Medium")
        assert rows["Service sensitivity"].startswith("Low")
        assert rows["Governance maturity"].startswith("None")
        assert rows["Critical data or services hosted in the cloud"] == "Yes"
        assert rows["Dependence on critical third-party IT suppliers"] == "No"

    def test_breakdown_rows(self, completed):
        rows = dict(breakdown_rows(completed["result"]["breakdown"]))
        assert rows == {
            "Entity size": 2,
            "Service sensitivity": 1,
            "Infrastructure risk (capped)": 1,
            "Governance modifier": 2,
        }


class TestCsv:
    def test_frame_contents(self, completed):
        df = result_frame(completed)
        assert list(df.columns) == ["section", "item", "value"]
        total = df[(df["section"] == "Score") & (df["item"] == "Total")]["value"].iloc[0]
        assert total == 6
        tier = df[df["item"] == "Tier"]["value"].iloc[0]
        assert tier == "Critical Exposure"

    def test_csv_text(self, completed):
        text = result_frame(completed).to_csv(index=False)
        assert text.splitlines()[0] == "section,item,value"
        assert "Critical Exposure" in text


class TestPpt:
    def test_deck(self, completed, meta):
        buf = io.BytesIO()
        write_ppt_bytes(buf, completed, meta)
        buf.seek(0)
        prs = Presentation(buf)
        titles = [s.shapes.title.text for s in prs.slides]
        assert titles == [
            "NIS2 Exposure Protocol",
            "Answers",
            "Critical Exposure",
            "Regulatory Obligations",
            "Timeline & Accountability",
        ]
        obligations = prs.slides[3].placeholders[1].text_frame.paragraphs
        assert len(obligations) == 5

    def test_meta_optional(self, completed):
        buf = io.BytesIO()
        write_ppt_bytes(buf, completed)
        assert buf.getvalue()[:2] == b"PK"


class TestPdf:
    def test_pdf_written(self, completed, meta):
        buf = io.BytesIO()
        write_pdf_bytes(buf, completed, meta)
        data = buf.getvalue()
        assert data.startswith(b"%PDF")
        assert len(data) > 1000
