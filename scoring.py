# scoring.py

import logging
from dataclasses import dataclass, field, fields
from typing import Optional

from config import (ENTITY_SIZES, GOVERNANCE_DEFAULT, GOVERNANCE_LEVELS,
                    GOVERNANCE_MODIFIERS, INFRASTRUCTURE_FLAGS,
                    INFRASTRUCTURE_RISK, INFRASTRUCTURE_RISK_CAP,
                    SENSITIVITY_DEFAULT, SENSITIVITY_POINTS,
                    SERVICE_SENSITIVITIES, SIZE_DEFAULT, SIZE_POINTS,
                    TIER_FALLBACK, TIER_FIELDS, TIER_IDS, TIER_THRESHOLDS,
                    TIERS)

logger = logging.getLogger(__name__)

CHOICES = {
    "entity_size": tuple(o["value"] for o in ENTITY_SIZES),
    "service_sensitivity": tuple(o["value"] for o in SERVICE_SENSITIVITIES),
    "governance_maturity": tuple(o["value"] for o in GOVERNANCE_LEVELS),
}
FLAG_NAMES = tuple(f["value"] for f in INFRASTRUCTURE_FLAGS)


def _validate_config() -> None:
    """
    Check the reference data in `config.py`.

    Option values without points only log a warning (they score the
    default). A tier table that does not hold exactly the three tiers,
    each with every text field, raises ValueError.
    """
    unscored = {
        "entity_size": [
            v for v in CHOICES["entity_size"] if v not in SIZE_POINTS and v != "small"
        ],
        "service_sensitivity": [
            v
            for v in CHOICES["service_sensitivity"]
            if v not in SENSITIVITY_POINTS and v != "low"
        ],
        "governance_maturity": [
            v for v in CHOICES["governance_maturity"] if v not in GOVERNANCE_MODIFIERS
        ],
    }
    for name, values in unscored.items():
        if values:
            logger.warning("[config warning] %s options without points: %s", name, values)

    unknown_flags = [f for f, _, _ in INFRASTRUCTURE_RISK if f not in FLAG_NAMES]
    if unknown_flags:
        logger.warning("[config warning] risk rules for unknown flags: %s", unknown_flags)

    if set(TIERS) != set(TIER_IDS):
        raise ValueError(
            f"TIERS must define exactly {list(TIER_IDS)}, got {sorted(TIERS)}"
        )
    for tier_id, bundle in TIERS.items():
        missing = [f for f in TIER_FIELDS if not bundle.get(f)]
        if missing:
            raise ValueError(f"{tier_id} is missing text fields: {missing}")
        if not isinstance(bundle["obligations"], (list, tuple)):
            raise ValueError(f"{tier_id} obligations must be a list")
    thresholds = [t for _, t in TIER_THRESHOLDS] + [TIER_FALLBACK]
    if any(t not in TIER_IDS for t in thresholds):
        raise ValueError(f"TIER_THRESHOLDS reference unknown tiers: {thresholds}")


_validate_config()


# ----------- Errors -------------
class WizardError(Exception):
    """Base class for rejected wizard operations."""


class InvalidAnswer(WizardError, ValueError):
    """An answer value outside its enumeration, or malformed flags."""


class IncompleteAnswers(WizardError):
    """Raised when a tier is requested before steps 1, 2 and 4 are answered."""

    def __init__(self, missing):
        self.missing = list(missing)
        super().__init__(f"Unanswered: {', '.join(self.missing)}")


class StepOrderError(WizardError):
    """An operation issued at a step where it is not allowed."""


# ----------- Answers -------------
@dataclass(frozen=True)
class InfrastructureFlags:
    cloud: bool = False
    mfa: bool = False
    incident_process: bool = False
    supply_chain: bool = False

    @classmethod
    def from_mapping(cls, flags):
        """
        Build flags from a mapping holding exactly the four flag names.

        :param flags: mapping of flag name to bool
        :return: InfrastructureFlags
        :raises InvalidAnswer: on missing or unknown keys, or non-bool values
        """
        if isinstance(flags, cls):
            return flags
        if not hasattr(flags, "keys"):
            raise InvalidAnswer(f"Infrastructure flags must be a mapping, got {flags!r}")
        missing = [f for f in FLAG_NAMES if f not in flags]
        unknown = [k for k in flags if k not in FLAG_NAMES]
        if missing or unknown:
            raise InvalidAnswer(
                f"Infrastructure flags need exactly {list(FLAG_NAMES)} "
                f"(missing={missing}, unknown={unknown})"
            )
        bad = [k for k in FLAG_NAMES if not isinstance(flags[k], bool)]
        if bad:
            raise InvalidAnswer(f"Infrastructure flags must be booleans: {bad}")
        return cls(**{k: flags[k] for k in FLAG_NAMES})

    @classmethod
    def from_selected(cls, selected):
        """Flags from a checklist value: the names that are ticked."""
        selected = list(selected or [])
        unknown = [s for s in selected if s not in FLAG_NAMES]
        if unknown:
            raise InvalidAnswer(f"Unknown infrastructure flags: {unknown}")
        return cls(**{name: name in selected for name in FLAG_NAMES})

    def selected(self):
        return [name for name in FLAG_NAMES if getattr(self, name)]

    def to_dict(self):
        return {f.name: getattr(self, f.name) for f in fields(self)}


@dataclass
class Answers:
    entity_size: Optional[str] = None
    service_sensitivity: Optional[str] = None
    infrastructure: InfrastructureFlags = field(default_factory=InfrastructureFlags)
    governance_maturity: Optional[str] = None

    def missing(self):
        """Names of the single-choice answers still unset, in step order."""
        return [name for name in CHOICES if getattr(self, name) is None]

    @property
    def is_complete(self) -> bool:
        return not self.missing()

    def to_dict(self):
        return {
            "entity_size": self.entity_size,
            "service_sensitivity": self.service_sensitivity,
            "infrastructure": self.infrastructure.to_dict(),
            "governance_maturity": self.governance_maturity,
        }

    @classmethod
    def from_dict(cls, data):
        data = data or {}
        answers = cls(
            infrastructure=InfrastructureFlags.from_mapping(
                data.get("infrastructure") or InfrastructureFlags().to_dict()
            )
        )
        for name in CHOICES:
            value = data.get(name)
            if value is not None:
                setattr(answers, name, validate_choice(name, value))
        return answers


def validate_choice(name, value):
    """
    Return `value` if it belongs to the enumeration of answer `name`.

    Raises InvalidAnswer otherwise.
    """
    if name not in CHOICES:
        raise InvalidAnswer(f"Unknown answer field: {name!r}")
    if value not in CHOICES[name]:
        raise InvalidAnswer(
            f"{value!r} is not a valid {name} (expected one of {list(CHOICES[name])})"
        )
    return value


# ----------- Scoring -------------
def infrastructure_risk(flags, capped=True):
    """
    Sum the risk points of the infrastructure flags.

    Args:
        flags (InfrastructureFlags): the step 3 answers
        capped (bool, optional): clamp to INFRASTRUCTURE_RISK_CAP. Defaults to True.

    Returns:
        int: risk points
    """
    raw = sum(
        points
        for name, adverse, points in INFRASTRUCTURE_RISK
        if bool(getattr(flags, name)) is adverse
    )
    return min(raw, INFRASTRUCTURE_RISK_CAP) if capped else raw


def score_breakdown(answers):
    """
    Return each contribution to the exposure score.

    Unset or unlisted size and sensitivity count their default (1), an
    unset governance answer counts 0.

    Args:
        answers (Answers): collected answers

    Returns:
        dict: keys "size", "sensitivity", "infrastructure", "governance",
            "infrastructure_raw" and "total"
    """
    parts = {
        "size": SIZE_POINTS.get(answers.entity_size, SIZE_DEFAULT),
        "sensitivity": SENSITIVITY_POINTS.get(
            answers.service_sensitivity, SENSITIVITY_DEFAULT
        ),
        "infrastructure": infrastructure_risk(answers.infrastructure),
        "governance": GOVERNANCE_MODIFIERS.get(
            answers.governance_maturity, GOVERNANCE_DEFAULT
        ),
    }
    total = sum(parts.values())
    parts["infrastructure_raw"] = infrastructure_risk(answers.infrastructure, capped=False)
    parts["total"] = total
    return parts


def score(answers) -> int:
    return score_breakdown(answers)["total"]


def score_bounds():
    """Lowest and highest totals reachable with the configured tables."""
    size = list(SIZE_POINTS.values()) + [SIZE_DEFAULT]
    sens = list(SENSITIVITY_POINTS.values()) + [SENSITIVITY_DEFAULT]
    gov = list(GOVERNANCE_MODIFIERS.values())
    infra_max = min(
        sum(p for _, _, p in INFRASTRUCTURE_RISK), INFRASTRUCTURE_RISK_CAP
    )
    return (
        min(size) + min(sens) + 0 + min(gov),
        max(size) + max(sens) + infra_max + max(gov),
    )


def tier_for_score(total):
    for threshold, tier in TIER_THRESHOLDS:
        if total >= threshold:
            return tier
    return TIER_FALLBACK


def calculate_tier(answers):
    """
    Map complete answers to a tier id.

    Raises:
        IncompleteAnswers: when entity size, sensitivity or governance is unset.
    """
    missing = answers.missing()
    if missing:
        raise IncompleteAnswers(missing)
    return tier_for_score(score(answers))


def tier_bundle(tier):
    """
    Look up the static text bundle of a tier.

    The returned dict is a copy; obligations keep their display order.
    """
    if tier not in TIERS:
        raise KeyError(f"Unknown tier: {tier!r}")
    bundle = dict(TIERS[tier])
    bundle["obligations"] = list(bundle["obligations"])
    return bundle
