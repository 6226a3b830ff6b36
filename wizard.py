# wizard.py

import logging
from dataclasses import dataclass
from types import MappingProxyType
from typing import Mapping, Optional

from config import FIRST_STEP, QUESTION_STEPS, RESULT_STEP, STEP_FIELDS
from scoring import (Answers, IncompleteAnswers, InfrastructureFlags,
                     StepOrderError, calculate_tier, score_breakdown,
                     tier_bundle, validate_choice)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StepChange:
    """
    Sent to listeners after every transition. `tier`/`bundle` only at step 5.

    `bundle` is a read-only view with obligations as a tuple.
    """

    step: int
    tier: Optional[str] = None
    bundle: Optional[Mapping] = None


class WizardController:
    """
    Step sequencing for one assessment session.

    Steps 1, 2 and 4 take a single choice, step 3 the infrastructure flags,
    step 5 shows the result. Forward moves go one step at a time, `go_back`
    moves one step back from 2, 3 or 4, and step 5 only leaves through
    `reset`.
    """

    def __init__(self):
        self.step = FIRST_STEP
        self.answers = Answers()
        self.result = None
        self._listeners = []

    # -------- Listeners --------
    def subscribe(self, callback):
        """Register `callback(StepChange)`; returns it so it can be used as a decorator."""
        self._listeners.append(callback)
        return callback

    def unsubscribe(self, callback):
        if callback in self._listeners:
            self._listeners.remove(callback)

    def _notify(self):
        if self.step == RESULT_STEP and self.result:
            bundle = tier_bundle(self.result["tier"])
            bundle["obligations"] = tuple(bundle["obligations"])
            event = StepChange(self.step, self.result["tier"], MappingProxyType(bundle))
        else:
            event = StepChange(self.step)
        for callback in list(self._listeners):
            callback(event)

    def _goto(self, step):
        logger.debug("wizard step %s -> %s", self.step, step)
        self.step = step
        self._notify()

    def _require_step(self, step, operation):
        if self.step != step:
            raise StepOrderError(
                f"{operation} is only allowed at step {step} (current step {self.step})"
            )

    # -------- Transitions --------
    def set_answer(self, step, value):
        """
        Store the choice for step 1, 2 or 4 and move on.

        Step 4 moves on through `submit_final`, which computes the result.

        Args:
            step (int): 1, 2 or 4
            value (str): one of the step's option values

        Raises:
            StepOrderError: if `step` is not a choice step or not the current one
            InvalidAnswer: if `value` is outside the step's options
            IncompleteAnswers: at step 4, if step 1 or 2 is unanswered (nothing is stored)
        """
        if step not in STEP_FIELDS:
            raise StepOrderError(f"Step {step} does not take a single choice")
        self._require_step(step, "set_answer")
        name = STEP_FIELDS[step]
        value = validate_choice(name, value)
        if step == QUESTION_STEPS:
            missing = [m for m in self.answers.missing() if m != name]
            if missing:
                raise IncompleteAnswers(missing)
        setattr(self.answers, name, value)
        if step == QUESTION_STEPS:
            return self.submit_final()
        self._goto(step + 1)

    def set_infrastructure(self, flags):
        """Store all four step 3 flags at once and move to step 4."""
        self._require_step(3, "set_infrastructure")
        self.answers.infrastructure = InfrastructureFlags.from_mapping(flags)
        self._goto(4)

    def go_back(self, step=None):
        """
        Move one step back from 2, 3 or 4.

        Returns False (and changes nothing) at step 1 or 5.
        """
        if step is not None:
            self._require_step(step, "go_back")
        if self.step <= FIRST_STEP or self.step >= RESULT_STEP:
            return False
        self._goto(self.step - 1)
        return True

    def reset(self):
        self.answers = Answers()
        self.result = None
        self._goto(FIRST_STEP)

    def submit_final(self):
        """
        Compute the tier and move to the result step.

        Returns:
            dict: the stored result ("tier", "score", "breakdown")

        Raises:
            IncompleteAnswers: if steps 1, 2 or 4 are unanswered
            StepOrderError: if the wizard is not at step 4
        """
        missing = self.answers.missing()
        if missing:
            raise IncompleteAnswers(missing)
        self._require_step(QUESTION_STEPS, "submit_final")
        self.result = _result_for(self.answers)
        logger.info(
            "assessment complete: score=%s tier=%s",
            self.result["score"],
            self.result["tier"],
        )
        self._goto(RESULT_STEP)
        return self.result

    # -------- Session store --------
    def to_dict(self):
        return {
            "step": self.step,
            "answers": self.answers.to_dict(),
            "result": self.result,
        }

    @classmethod
    def from_dict(cls, data):
        """
        Rebuild a controller from `to_dict()` output.

        The result is recomputed from the answers rather than trusted, and
        every choice step before the stored one must be answered.
        """
        ctrl = cls()
        if not data:
            return ctrl
        step = int(data.get("step", FIRST_STEP))
        if not FIRST_STEP <= step <= RESULT_STEP:
            raise StepOrderError(f"Stored step out of range: {step}")
        ctrl.answers = Answers.from_dict(data.get("answers"))
        unanswered = [
            name
            for s, name in STEP_FIELDS.items()
            if s < step and getattr(ctrl.answers, name) is None
        ]
        if unanswered:
            raise StepOrderError(
                f"Stored step {step} is past unanswered steps: {unanswered}"
            )
        ctrl.step = step
        if step == RESULT_STEP:
            ctrl.result = _result_for(ctrl.answers)
        return ctrl


def _result_for(answers):
    breakdown = score_breakdown(answers)
    return {
        "tier": calculate_tier(answers),
        "score": breakdown["total"],
        "breakdown": breakdown,
    }
