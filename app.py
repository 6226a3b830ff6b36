# app.py

import logging

import dash
import dash_daq as daq
import plotly.graph_objects as go
from dash import ALL, Input, Output, State, ctx, dcc, html

from config import (APP_TITLE, BREAKDOWN_LABELS, DEBUG, FIRST_STEP, HOST,
                    INFRASTRUCTURE_FLAGS, LOG_LEVEL, PORT, QUESTION_STEPS,
                    RESULT_SECTIONS, RESULT_STEP, STEP_FIELDS, STEP_OPTIONS,
                    STEP_PROMPTS, STEP_TITLES)
from reports import result_frame, write_pdf_bytes, write_ppt_bytes
from scoring import InfrastructureFlags, WizardError, tier_bundle
from wizard import WizardController

logging.basicConfig(
    level=LOG_LEVEL,
    format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
logger = logging.getLogger(__name__)

app = dash.Dash(__name__, suppress_callback_exceptions=True)
app.title = APP_TITLE
server = app.server

BREAKDOWN_H = 300


# ----------- Helpers -------------
def load_controller(data):
    """
    Rebuild the session's controller from the store.

    Unreadable store data starts a fresh assessment.
    """
    try:
        return WizardController.from_dict(data)
    except (WizardError, ValueError, TypeError, KeyError) as exc:
        logger.warning("discarding unreadable wizard state: %s", exc)
        return WizardController()


def _log_step_change(event):
    if event.tier:
        logger.debug("showing result %s", event.tier)
    else:
        logger.debug("showing step %s", event.step)


def apply_action(data, trigger, infra_selected=None):
    """
    Apply one user action to the stored wizard state.

    Args:
        data (dict): wizard state from the store
        trigger (str | dict): id of the component that fired
        infra_selected (list, optional): ticked infrastructure flags

    Returns:
        dict: the new wizard state

    Raises:
        dash.exceptions.PreventUpdate: unknown trigger or rejected action
    """
    ctrl = load_controller(data)
    ctrl.subscribe(_log_step_change)
    try:
        if trigger == "restart":
            ctrl.reset()
        elif trigger == "infra-continue":
            ctrl.set_infrastructure(InfrastructureFlags.from_selected(infra_selected))
        elif isinstance(trigger, dict) and trigger.get("type") == "option":
            ctrl.set_answer(int(trigger["step"]), trigger["value"])
        elif isinstance(trigger, dict) and trigger.get("type") == "back":
            if not ctrl.go_back(int(trigger["step"])):
                raise dash.exceptions.PreventUpdate
        else:
            raise dash.exceptions.PreventUpdate
    except WizardError as exc:
        logger.warning("rejected %s: %s", trigger, exc)
        raise dash.exceptions.PreventUpdate
    return ctrl.to_dict()


def step_classes(step_ids, step):
    return ["step active" if i["step"] == step else "step" for i in step_ids]


def option_classes(option_ids, answers):
    """
    CSS classes for the option cards, marking the stored choice as selected.

    :param option_ids: ids of the option buttons, in layout order
    :param answers: stored answers dict
    :return: list of class names
    """
    classes = []
    for oid in option_ids:
        chosen = answers.get(STEP_FIELDS[oid["step"]])
        classes.append(
            "option-card selected" if oid["value"] == chosen else "option-card"
        )
    return classes


def progress_text(step):
    if step >= RESULT_STEP:
        return "Assessment complete"
    return f"Step {step} of {QUESTION_STEPS} • {STEP_TITLES[step]}"


def render_result(tier):
    """
    Build the five result sections for a tier.

    Args:
        tier (str): tier id

    Returns:
        list: html.Div sections in display order
    """
    bundle = tier_bundle(tier)
    sections = []
    for section in RESULT_SECTIONS:
        value = bundle[section["field"]]
        children = [html.H4(f"{section['icon']} {section['heading']}")]
        if section["field"] == "implications":
            children.append(html.P(html.Strong(bundle["title"])))
        if isinstance(value, list):
            children.append(html.Ul([html.Li(v) for v in value]))
        else:
            children.append(html.P(value))
        sections.append(html.Div(children, className="result-section"))
    return sections


def _base_fig_layout(fig, theme="light", height=300):
    """
    Apply a consistent layout to a figure.

    Font and grid colors contrast with the light/dark theme.
    """
    font_color = "#f6f7fb" if theme == "dark" else "#0b1020"
    grid_color = "#334155" if theme == "dark" else "#CBD5E1"
    fig.update_layout(
        autosize=False,
        height=height,
        margin=dict(l=30, r=30, t=40, b=30),
        paper_bgcolor="rgba(0,0,0,0)",
        plot_bgcolor="rgba(0,0,0,0)",
        font=dict(color=font_color),
        xaxis=dict(
            showgrid=True,
            gridcolor=grid_color,
            zeroline=True,
            zerolinecolor=grid_color,
            linecolor=font_color,
            fixedrange=True,
        ),
        yaxis=dict(showgrid=False, linecolor=font_color, fixedrange=True),
        uirevision="keep",
    )
    return fig


def breakdown_figure(breakdown, theme="light"):
    """
    Horizontal bars of each score contribution.

    Args:
        breakdown (dict | None): output of `score_breakdown`, None before step 5
        theme (str, optional): light or dark. Defaults to "light".

    Returns:
        go.Figure: breakdown figure
    """
    fig = go.Figure()
    if breakdown:
        keys = list(BREAKDOWN_LABELS)
        vals = [breakdown[k] for k in keys]
        fig.add_trace(
            go.Bar(
                x=vals,
                y=[BREAKDOWN_LABELS[k] for k in keys],
                orientation="h",
                marker=dict(color=["#ef4444" if v > 0 else "#22c55e" for v in vals]),
                text=[f"{v:+d}" for v in vals],
                textposition="auto",
            )
        )
        fig.update_layout(
            title=dict(text=f"Exposure score: {breakdown['total']}", x=0.5)
        )
        fig.update_xaxes(range=[-3, 4], dtick=1)
    return _base_fig_layout(fig, theme, height=BREAKDOWN_H)


# -------------- Layout --------------------
def build_choice_step(step):
    """Option cards for a single-choice step; clicking one answers and advances."""
    cards = [
        html.Button(
            o["label"],
            id={"type": "option", "step": step, "value": o["value"]},
            n_clicks=0,
            className="option-card",
        )
        for o in STEP_OPTIONS[step]
    ]
    return cards


def build_infrastructure_step():
    return [
        dcc.Checklist(
            id="infra-checklist",
            options=INFRASTRUCTURE_FLAGS,
            value=[],
            className="checklist",
        ),
        html.Button("Continue", id="infra-continue", n_clicks=0, className="primary"),
    ]


def build_steps():
    """
    Build one panel per step. Only the panel of the current step carries
    the `active` class.
    """
    panels = []
    for step in range(FIRST_STEP, RESULT_STEP):
        body = build_infrastructure_step() if step == 3 else build_choice_step(step)
        children = [
            html.H2(STEP_TITLES[step]),
            html.P(STEP_PROMPTS[step], className="prompt"),
            html.Div(body, className="options"),
        ]
        if step > FIRST_STEP:
            children.append(
                html.Button(
                    "Back",
                    id={"type": "back", "step": step},
                    n_clicks=0,
                    className="secondary",
                )
            )
        panels.append(
            html.Div(children, id={"type": "step", "step": step}, className="step")
        )

    panels.append(
        html.Div(
            [
                html.H2(STEP_TITLES[RESULT_STEP]),
                html.Div(id="tier-badge", className="tier-badge"),
                html.Div(id="result-content", className="result-content"),
                dcc.Graph(
                    id="breakdown",
                    style={"height": f"{BREAKDOWN_H}px"},
                    config={
                        "responsive": False,
                        "displaylogo": False,
                        "scrollZoom": False,
                    },
                ),
                html.Div(
                    [
                        html.Button(
                            "Download CSV", id="dl-csv", n_clicks=0, className="secondary"
                        ),
                        dcc.Download(id="dl-csv-out"),
                        html.Button(
                            "Download PPTX", id="dl-ppt", n_clicks=0, className="secondary"
                        ),
                        dcc.Download(id="dl-ppt-out"),
                        html.Button(
                            "Download PDF", id="dl-pdf", n_clicks=0, className="secondary"
                        ),
                        dcc.Download(id="dl-pdf-out"),
                    ],
                    className="export-row",
                ),
                html.Button(
                    "Restart Assessment", id="restart", n_clicks=0, className="primary"
                ),
            ],
            id={"type": "step", "step": RESULT_STEP},
            className="step",
        )
    )
    return panels


app.layout = html.Div(
    id="page-root",
    className="page theme-light",
    children=[
        dcc.Store(id="wizard-store", data=WizardController().to_dict()),
        dcc.Store(id="theme-store", data="light"),
        # Header
        html.Div(
            [
                html.H1(APP_TITLE),
                html.Div(
                    [
                        html.Div(
                            [
                                html.Label("Organization"),
                                dcc.Input(
                                    id="org-name",
                                    placeholder="e.g., Acme Legal SRL",
                                    className="textin",
                                ),
                            ],
                            className="field",
                        ),
                        html.Div(
                            [
                                html.Label("Assessor"),
                                dcc.Input(
                                    id="assessor",
                                    placeholder="Your name",
                                    className="textin",
                                ),
                            ],
                            className="field",
                        ),
                        html.Div(
                            [
                                html.Label("Dark mode"),
                                daq.BooleanSwitch(
                                    id="theme-switch",
                                    on=False,
                                    color="#4f46e5",
                                    className="theme-switch",
                                ),
                            ],
                            className="field",
                        ),
                    ],
                    className="meta",
                ),
            ],
            className="header",
        ),
        html.Div(id="progress", className="progress"),
        html.Div(build_steps(), className="wizard"),
    ],
)


# -------- Callbacks ------------------
@app.callback(
    Output("wizard-store", "data"),
    Input({"type": "option", "step": ALL, "value": ALL}, "n_clicks"),
    Input({"type": "back", "step": ALL}, "n_clicks"),
    Input("infra-continue", "n_clicks"),
    Input("restart", "n_clicks"),
    State("infra-checklist", "value"),
    State("wizard-store", "data"),
    prevent_initial_call=True,
)
def on_action(_options, _backs, _cont, _restart, infra_selected, data):
    """
    Route a click to the wizard controller and store the new state.

    Arguments:
        _options (list): click counts of the option cards.
        _backs (list): click counts of the Back buttons.
        _cont (int): click count of the step 3 Continue button.
        _restart (int): click count of the Restart button.
        infra_selected (list): ticked infrastructure flags.
        data (dict): current wizard state.

    Returns:
        dict: the new wizard state.
    """
    if not ctx.triggered or not ctx.triggered[0].get("value"):
        raise dash.exceptions.PreventUpdate
    return apply_action(data, ctx.triggered_id, infra_selected)


@app.callback(
    Output({"type": "step", "step": ALL}, "className"),
    Output({"type": "option", "step": ALL, "value": ALL}, "className"),
    Output("infra-checklist", "value"),
    Output("progress", "children"),
    Output("tier-badge", "children"),
    Output("tier-badge", "className"),
    Output("result-content", "children"),
    Output("breakdown", "figure"),
    Input("wizard-store", "data"),
    Input("theme-store", "data"),
)
def update_view(data, theme):
    """
    Show the current step and, at step 5, the result.

    Args:
        data (dict): wizard state, as stored in the "wizard-store".
        theme (str): "light" or "dark", as stored in the "theme-store".
    """
    ctrl = load_controller(data)
    step_ids = [o["id"] for o in ctx.outputs_list[0]]
    option_ids = [o["id"] for o in ctx.outputs_list[1]]
    answers = ctrl.answers.to_dict()

    if ctrl.result:
        tier = ctrl.result["tier"]
        badge = tier_bundle(tier)["label"]
        badge_class = f"tier-badge {tier}"
        content = render_result(tier)
        figure = breakdown_figure(ctrl.result["breakdown"], theme)
    else:
        badge, badge_class, content = "", "tier-badge", []
        figure = breakdown_figure(None, theme)

    return (
        step_classes(step_ids, ctrl.step),
        option_classes(option_ids, answers),
        ctrl.answers.infrastructure.selected(),
        progress_text(ctrl.step),
        badge,
        badge_class,
        content,
        figure,
    )


# Exports
def _completed(data):
    ctrl = load_controller(data)
    if not ctrl.result:
        raise dash.exceptions.PreventUpdate
    return ctrl.to_dict()


@app.callback(
    Output("dl-csv-out", "data"),
    Input("dl-csv", "n_clicks"),
    State("wizard-store", "data"),
    prevent_initial_call=True,
)
def download_csv(_, data):
    df = result_frame(_completed(data))
    return dcc.send_data_frame(df.to_csv, "nis2_exposure.csv", index=False)


@app.callback(
    Output("dl-ppt-out", "data"),
    Input("dl-ppt", "n_clicks"),
    State("wizard-store", "data"),
    State("org-name", "value"),
    State("assessor", "value"),
    prevent_initial_call=True,
)
def download_ppt(_, data, org, assessor):
    """
    Download the result as a PPTX file.

    Args:
        _ (int): Click count of the "Download PPTX" button.
        data (dict): wizard state, as stored in the "wizard-store".
        org (str): organization name.
        assessor (str): assessor name.

    Returns:
        dict: dcc.send_bytes payload.
    """
    done = _completed(data)
    meta = {"org": org or "", "assessor": assessor or ""}
    return dcc.send_bytes(
        lambda b: write_ppt_bytes(b, done, meta), "NIS2_Exposure_Assessment.pptx"
    )


@app.callback(
    Output("dl-pdf-out", "data"),
    Input("dl-pdf", "n_clicks"),
    State("wizard-store", "data"),
    State("org-name", "value"),
    State("assessor", "value"),
    prevent_initial_call=True,
)
def download_pdf(_, data, org, assessor):
    done = _completed(data)
    meta = {"org": org or "", "assessor": assessor or ""}
    return dcc.send_bytes(
        lambda b: write_pdf_bytes(b, done, meta), "NIS2_Exposure_Assessment.pdf"
    )


# Theme toggle -> update page class and store
@app.callback(
    Output("page-root", "className"),
    Output("theme-store", "data"),
    Input("theme-switch", "on"),
)
def apply_theme(is_on):
    """
    Toggle the page theme class and store the current theme value.

    Args:
        is_on (bool): The on/off state of the theme switch.

    Returns:
        tuple: A pair of (page class name, theme name).
    """
    theme = "dark" if is_on else "light"
    return f"page theme-{theme}", theme


# ---------- Main -------------------
if __name__ == "__main__":
    logger.info("starting %s on %s:%s", APP_TITLE, HOST, PORT)
    app.run(host=HOST, port=PORT, debug=DEBUG)
