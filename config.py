# --- Configuration --------------------------------------------------------------------------------

import os

APP_TITLE = "NIS2 Exposure Protocol"

# Runtime settings (environment overrides)
HOST = os.environ.get("NIS2_HOST", "127.0.0.1")
PORT = int(os.environ.get("NIS2_PORT", "8050"))
DEBUG = os.environ.get("NIS2_DEBUG", "false").strip().lower() in ("1", "true", "yes", "on")
LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO").upper()

# Steps 1-4 collect answers, step 5 shows the result.
FIRST_STEP = 1
QUESTION_STEPS = 4
RESULT_STEP = 5

STEP_TITLES = {
    1: "Entity Size",
    2: "Service Sensitivity",
    3: "Digital Infrastructure",
    4: "Governance Maturity",
    5: "Exposure Result",
}

STEP_PROMPTS = {
    1: "How large is your organization?",
    2: "How sensitive are the services you provide?",
    3: "Which of the following describe your digital infrastructure?",
    4: "How mature is your cybersecurity governance?",
}

# Answer field filled by each single-choice step.
STEP_FIELDS = {
    1: "entity_size",
    2: "service_sensitivity",
    4: "governance_maturity",
}

ENTITY_SIZES = [
    {"label": "Small • fewer than 50 staff, turnover under €10M", "value": "small"},
    {"label": "Medium • 50 to 249 staff or turnover up to €50M", "value": "medium"},
    {"label": "Large • 250+ staff or turnover above €50M", "value": "large"},
]

SERVICE_SENSITIVITIES = [
    {"label": "Low • general services, no confidential client data", "value": "low"},
    {"label": "Medium • confidential client data, limited dependency", "value": "medium"},
    {"label": "High • Annex III services or critical client operations", "value": "high"},
]

GOVERNANCE_LEVELS = [
    {"label": "None • no formal security governance", "value": "none"},
    {"label": "Basic • written policies, informal follow-up", "value": "basic"},
    {"label": "Structured • ISMS with risk register and owners", "value": "structured"},
    {"label": "ISO 27001 • certified management system", "value": "iso"},
]

# Infrastructure checklist; every flag defaults to False.
INFRASTRUCTURE_FLAGS = [
    {"label": "Critical data or services hosted in the cloud", "value": "cloud"},
    {"label": "Multi-factor authentication enforced for all users", "value": "mfa"},
    {"label": "Documented incident response process", "value": "incident_process"},
    {"label": "Dependence on critical third-party IT suppliers", "value": "supply_chain"},
]

STEP_OPTIONS = {
    1: ENTITY_SIZES,
    2: SERVICE_SENSITIVITIES,
    4: GOVERNANCE_LEVELS,
}

# --- Scoring ---------------------------------------------------------------------------------------

# Unlisted (or unset) size and sensitivity score the default.
SIZE_POINTS = {"large": 3, "medium": 2}
SIZE_DEFAULT = 1

SENSITIVITY_POINTS = {"high": 3, "medium": 2}
SENSITIVITY_DEFAULT = 1

# (flag, flag value that adds risk, points)
INFRASTRUCTURE_RISK = [
    ("cloud", True, 1),
    ("mfa", False, 2),
    ("incident_process", False, 2),
    ("supply_chain", True, 1),
]
INFRASTRUCTURE_RISK_CAP = 3

GOVERNANCE_MODIFIERS = {"none": 2, "basic": 1, "structured": -1, "iso": -2}
GOVERNANCE_DEFAULT = 0

# Checked top-down, first match wins.
TIER_THRESHOLDS = [
    (6, "tier-3"),
    (4, "tier-2"),
]
TIER_FALLBACK = "tier-1"

TIER_IDS = ("tier-1", "tier-2", "tier-3")

TIER_FIELDS = (
    "label",
    "title",
    "implications",
    "obligations",
    "timeline",
    "accountability",
    "positioning",
)

TIERS = {
    "tier-1": {
        "label": "Limited Exposure",
        "title": "Level 1: Limited Regulatory Exposure",
        "implications": "Your organization presents reduced exposure to strict NIS2 Directive obligations. However, supply chain vigilance remains essential.",
        "obligations": [
            "Basic security obligations under Article 21 of the NIS2 Directive",
            "Proportionate risk management measures relative to organizational scale",
            "Regulatory monitoring through Centre for Cybersecurity Belgium (CCB)",
        ],
        "timeline": "Belgian transposition effective since October 2024. No 24-hour reporting obligation applies to your category, absent major incident.",
        "accountability": "Director liability governed by general corporate law. No specific NIS2 administrative sanctions, but duty of care required.",
        "positioning": "Opportunity to progressively structure cybersecurity governance to anticipate regulatory evolution and reassure stakeholders.",
    },
    "tier-2": {
        "label": "Important Exposure",
        "title": "Level 2: Important Entity - Enhanced Obligations",
        "implications": 'Your organization likely falls under the "Important Entity" category per NIS2 Directive Annex III. Specific compliance obligations apply.',
        "obligations": [
            "Mandatory reporting of significant incidents to CCB within 24 hours (Article 23)",
            "Implementation of cyber risk management measures (Article 21)",
            "Supply chain security requirements (Article 21)",
            "Periodic compliance audit and measure documentation",
        ],
        "timeline": "Immediate effect since Belgian transposition October 2024. First regulatory assessment expected within 12 months.",
        "accountability": "Enhanced director liability exposure. Administrative sanctions up to 1.4% of worldwide turnover or €7M under Belgian law.",
        "positioning": "Rapid structuring of your ISMS (Information Security Management System) recommended to demonstrate proactive compliance posture.",
    },
    "tier-3": {
        "label": "Critical Exposure",
        "title": "Level 3: High Exposure - Priority Compliance",
        "implications": "Your organization presents high NIS2 Directive exposure, potentially as Essential or high-risk Important Entity. Immediate board action required.",
        "obligations": [
            "Mandatory 24-hour incident reporting to CCB for all significant incidents",
            "Annual compliance audit by accredited third party",
            "Stringent security measures: access management, encryption, MFA, continuity planning",
            "Due diligence on critical suppliers and supply chain security",
            "Mandatory documentation of risk management measures",
        ],
        "timeline": "Immediate compliance required. Law of 7 April 2024 applicable. CCB supervisory controls being deployed.",
        "accountability": "Personal director liability exposure. Severe criminal and administrative penalties (up to €10M or 2% of worldwide turnover).",
        "positioning": "NIS2 compliance constitutes a strategic board priority. Structured approach, potentially via ISO 27001 certification, strongly recommended to mitigate legal and operational risk.",
    },
}

# Result page sections, in display order.
RESULT_SECTIONS = [
    {"field": "implications", "icon": "📋", "heading": "Legal Implications"},
    {"field": "obligations", "icon": "⚖️", "heading": "Regulatory Obligations"},
    {"field": "timeline", "icon": "📅", "heading": "Enforcement Timeline"},
    {"field": "accountability", "icon": "👔", "heading": "Board Accountability"},
    {"field": "positioning", "icon": "🎯", "heading": "Strategic Recommendation"},
]

BREAKDOWN_LABELS = {
    "size": "Entity size",
    "sensitivity": "Service sensitivity",
    "infrastructure": "Infrastructure risk (capped)",
    "governance": "Governance modifier",
}
