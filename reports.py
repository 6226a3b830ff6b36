# reports.py

from xml.sax.saxutils import escape

import pandas as pd
from pptx import Presentation
from pptx.util import Inches
from reportlab.lib import colors
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import getSampleStyleSheet
from reportlab.platypus import (ListFlowable, ListItem, Paragraph,
                                SimpleDocTemplate, Spacer, Table, TableStyle)

from config import (APP_TITLE, BREAKDOWN_LABELS, ENTITY_SIZES,
                    GOVERNANCE_LEVELS, INFRASTRUCTURE_FLAGS, RESULT_SECTIONS,
                    SERVICE_SENSITIVITIES)
from scoring import tier_bundle


def _option_label(options, value):
    for o in options:
        if o["value"] == value:
            return o["label"]
    return "" if value is None else str(value)


def answer_rows(answers):
    """
    Flatten stored answers into display rows.

    :param answers: dict in `Answers.to_dict()` shape
    :return: list of (question, answer) tuples
    """
    infra = answers.get("infrastructure", {}) or {}
    rows = [
        ("Entity size", _option_label(ENTITY_SIZES, answers.get("entity_size"))),
        (
            "Service sensitivity",
            _option_label(SERVICE_SENSITIVITIES, answers.get("service_sensitivity")),
        ),
    ]
    for flag in INFRASTRUCTURE_FLAGS:
        rows.append((flag["label"], "Yes" if infra.get(flag["value"]) else "No"))
    rows.append(
        (
            "Governance maturity",
            _option_label(GOVERNANCE_LEVELS, answers.get("governance_maturity")),
        )
    )
    return rows


def breakdown_rows(breakdown):
    return [(BREAKDOWN_LABELS[k], breakdown[k]) for k in BREAKDOWN_LABELS]


def result_frame(data):
    """
    Build a dataframe of the assessment for CSV export.

    Args:
        data (dict): wizard store data at step 5 ("answers" and "result")

    Returns:
        pd.DataFrame: columns "section", "item", "value"
    """
    result = data["result"]
    rows = [
        {"section": "Answers", "item": q, "value": a}
        for q, a in answer_rows(data["answers"])
    ]
    rows += [
        {"section": "Score", "item": label, "value": points}
        for label, points in breakdown_rows(result["breakdown"])
    ]
    rows.append({"section": "Score", "item": "Total", "value": result["score"]})
    rows.append(
        {
            "section": "Result",
            "item": "Tier",
            "value": tier_bundle(result["tier"])["label"],
        }
    )
    return pd.DataFrame(rows, columns=["section", "item", "value"])


def _meta_line(meta):
    return (
        f"Organization: {meta.get('org', '')}\n"
        f"Assessor: {meta.get('assessor', '')}"
    )


def write_ppt_bytes(buf, data, meta=None):
    """
    Write a PowerPoint deck of the assessment result to a bytes buffer.

    1. Title slide with organization and assessor.
    2. Answers table.
    3. Result slide: tier, score, implications.
    4. Regulatory obligations.
    5. Timeline, accountability and positioning.

    Args:
        buf (BytesIO): buffer to write the presentation to.
        data (dict): wizard store data at step 5.
        meta (dict, optional): "org" and "assessor" strings.
    """
    meta = meta or {}
    result = data["result"]
    bundle = tier_bundle(result["tier"])

    prs = Presentation()
    slide = prs.slides.add_slide(prs.slide_layouts[0])
    slide.shapes.title.text = APP_TITLE
    slide.placeholders[1].text = _meta_line(meta)

    slide = prs.slides.add_slide(prs.slide_layouts[5])
    slide.shapes.title.text = "Answers"
    rows = answer_rows(data["answers"])
    table = slide.shapes.add_table(
        len(rows) + 1,
        2,
        Inches(0.5),
        Inches(1.5),
        Inches(9.0),
        Inches(0.6 + 0.35 * len(rows)),
    ).table
    table.cell(0, 0).text, table.cell(0, 1).text = "Question", "Answer"
    for i, (question, answer) in enumerate(rows, start=1):
        table.cell(i, 0).text = question
        table.cell(i, 1).text = answer

    slide = prs.slides.add_slide(prs.slide_layouts[1])
    slide.shapes.title.text = bundle["label"]
    body = slide.placeholders[1].text_frame
    body.clear()
    body.paragraphs[0].text = bundle["title"]
    body.add_paragraph().text = f"Exposure score: {result['score']}"
    body.add_paragraph().text = bundle["implications"]

    slide = prs.slides.add_slide(prs.slide_layouts[1])
    slide.shapes.title.text = "Regulatory Obligations"
    tf = slide.placeholders[1].text_frame
    tf.clear()
    tf.paragraphs[0].text = bundle["obligations"][0]
    for obligation in bundle["obligations"][1:]:
        tf.add_paragraph().text = obligation

    slide = prs.slides.add_slide(prs.slide_layouts[1])
    slide.shapes.title.text = "Timeline & Accountability"
    tf = slide.placeholders[1].text_frame
    tf.clear()
    tf.paragraphs[0].text = f"Enforcement: {bundle['timeline']}"
    tf.add_paragraph().text = f"Board: {bundle['accountability']}"
    tf.add_paragraph().text = f"Recommendation: {bundle['positioning']}"
    prs.save(buf)


_TABLE_STYLE = TableStyle(
    [
        ("BACKGROUND", (0, 0), (-1, 0), colors.HexColor("#e9ebf3")),
        ("TEXTCOLOR", (0, 0), (-1, 0), colors.HexColor("#0b1020")),
        ("GRID", (0, 0), (-1, -1), 0.5, colors.grey),
        ("FONTNAME", (0, 0), (-1, 0), "Helvetica-Bold"),
        ("VALIGN", (0, 0), (-1, -1), "TOP"),
        ("BOTTOMPADDING", (0, 0), (-1, 0), 8),
        ("TOPPADDING", (0, 0), (-1, 0), 6),
    ]
)


def write_pdf_bytes(buf, data, meta=None):
    meta = meta or {}
    result = data["result"]
    bundle = tier_bundle(result["tier"])
    doc = SimpleDocTemplate(
        buf, pagesize=A4, leftMargin=36, rightMargin=36, topMargin=36, bottomMargin=36
    )
    styles = getSampleStyleSheet()
    avail = A4[0] - 72

    story = [
        Paragraph(f"<b>{APP_TITLE}</b>", styles["Title"]),
        Spacer(1, 8),
        Paragraph(
            f"Organization: {escape(meta.get('org', ''))}&nbsp;&nbsp;&nbsp; "
            f"Assessor: {escape(meta.get('assessor', ''))}",
            styles["Normal"],
        ),
        Spacer(1, 10),
        Paragraph(
            f"<b>{bundle['label']}</b> (score {result['score']})", styles["Heading2"]
        ),
        Spacer(1, 8),
    ]

    cell = styles["BodyText"]
    ans_data = [["Question", "Answer"]] + [
        [Paragraph(q, cell), Paragraph(a, cell)] for q, a in answer_rows(data["answers"])
    ]
    ans_tbl = Table(ans_data, colWidths=[avail * 0.55, avail * 0.45], hAlign="LEFT")
    ans_tbl.setStyle(_TABLE_STYLE)
    story += [
        Paragraph("<b>Answers</b>", styles["Heading3"]),
        Spacer(1, 6),
        ans_tbl,
        Spacer(1, 12),
    ]

    score_data = [["Contribution", "Points"]] + [
        [label, str(points)] for label, points in breakdown_rows(result["breakdown"])
    ]
    score_data.append(["Total", str(result["score"])])
    score_tbl = Table(score_data, colWidths=[avail * 0.7, avail * 0.3], hAlign="LEFT")
    score_tbl.setStyle(_TABLE_STYLE)
    story += [
        Paragraph("<b>Score Breakdown</b>", styles["Heading3"]),
        Spacer(1, 6),
        score_tbl,
        Spacer(1, 12),
        Paragraph(f"<b>{bundle['title']}</b>", styles["Heading3"]),
        Spacer(1, 6),
    ]

    # Helvetica has no emoji glyphs, headings only
    for section in RESULT_SECTIONS:
        story += [
            Paragraph(f"<b>{section['heading']}</b>", styles["Heading4"]),
            Spacer(1, 4),
        ]
        value = bundle[section["field"]]
        if isinstance(value, list):
            story.append(
                ListFlowable(
                    [ListItem(Paragraph(v, styles["Normal"])) for v in value],
                    bulletType="bullet",
                )
            )
        else:
            story.append(Paragraph(value, styles["Normal"]))
        story.append(Spacer(1, 10))

    doc.build(story)
