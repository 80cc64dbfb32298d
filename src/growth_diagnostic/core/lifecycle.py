"""Assessment lifecycle state machine.

Statuses form a closed set and every legal move is listed in one transition
table keyed by (status, event). ``next_status`` is the only place that
decides where an assessment goes next; anything absent from the table raises
IllegalTransitionError.

    pending ──response──▶ in_progress ──complete──▶ awaiting_payment ─┐
       │                      │                                       │
       └──────payment─────────┴──payment──▶ paid ──────────────┐      │
                                                               ▼      ▼
                                                analysis_started: analysis
                                                               │
                                    deliverables_completed ◀───┴───▶ pipeline_failed
                                            completed                     failed

``analysis`` is entered only through ANALYSIS_STARTED, which the readiness
gate fires after checking both start conditions. Events that arrive after
the trigger point (duplicate webhooks, re-sent final answers) map onto
self-loops so they are absorbed as no-ops.
"""

from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum
from typing import Any

from growth_diagnostic.errors import IllegalTransitionError


class AssessmentStatus(str, Enum):
    """Closed set of assessment statuses."""

    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    AWAITING_PAYMENT = "awaiting_payment"
    PAID = "paid"
    ANALYSIS = "analysis"
    COMPLETED = "completed"
    FAILED = "failed"


class PaymentState(str, Enum):
    NONE = "none"
    CONFIRMED = "confirmed"
    FAILED = "failed"


class LifecycleEvent(str, Enum):
    RESPONSE_SAVED = "response_saved"
    PAYMENT_CONFIRMED = "payment_confirmed"
    PAYMENT_FAILED = "payment_failed"
    ANALYSIS_STARTED = "analysis_started"
    DELIVERABLES_COMPLETED = "deliverables_completed"
    PIPELINE_FAILED = "pipeline_failed"


# Statuses from which the readiness gate may start the pipeline.
GATE_STATUSES: frozenset[AssessmentStatus] = frozenset(
    {AssessmentStatus.AWAITING_PAYMENT, AssessmentStatus.PAID}
)

# Statuses at or past the pipeline trigger point. The questionnaire is locked here.
STARTED_STATUSES: frozenset[AssessmentStatus] = frozenset(
    {AssessmentStatus.ANALYSIS, AssessmentStatus.COMPLETED, AssessmentStatus.FAILED}
)

TERMINAL_STATUSES: frozenset[AssessmentStatus] = frozenset(
    {AssessmentStatus.COMPLETED, AssessmentStatus.FAILED}
)

# Forward-only ordering. awaiting_payment and paid are parallel waiting states.
_RANK: dict[AssessmentStatus, int] = {
    AssessmentStatus.PENDING: 0,
    AssessmentStatus.IN_PROGRESS: 1,
    AssessmentStatus.AWAITING_PAYMENT: 2,
    AssessmentStatus.PAID: 2,
    AssessmentStatus.ANALYSIS: 3,
    AssessmentStatus.COMPLETED: 4,
    AssessmentStatus.FAILED: 4,
}

STATUS_DESCRIPTIONS: dict[AssessmentStatus, str] = {
    AssessmentStatus.PENDING: "Assessment created. Answer the first question to begin.",
    AssessmentStatus.IN_PROGRESS: "Questionnaire in progress.",
    AssessmentStatus.AWAITING_PAYMENT: "Questionnaire complete. Awaiting payment to start the analysis.",
    AssessmentStatus.PAID: "Payment received. Complete the questionnaire to start the analysis.",
    AssessmentStatus.ANALYSIS: "Our specialists are analysing your responses.",
    AssessmentStatus.COMPLETED: "Your diagnostic report is ready.",
    AssessmentStatus.FAILED: "The analysis could not be completed. Please contact support.",
}


@dataclass(frozen=True)
class LifecycleSnapshot:
    """The persisted facts a transition decision depends on.

    Attributes:
        status: Current persisted status.
        questionnaire_complete: True once progress has reached 100.
        payment_confirmed: True once a payment-succeeded event was recorded.
    """

    status: AssessmentStatus
    questionnaire_complete: bool
    payment_confirmed: bool

    @classmethod
    def of(cls, assessment: Any) -> "LifecycleSnapshot":
        """Build a snapshot from an assessment record."""
        return cls(
            status=AssessmentStatus(assessment.status),
            questionnaire_complete=assessment.progress >= 100,
            payment_confirmed=assessment.payment_state == PaymentState.CONFIRMED.value,
        )


@dataclass(frozen=True)
class Transition:
    source: AssessmentStatus
    target: AssessmentStatus
    event: LifecycleEvent

    @property
    def changed(self) -> bool:
        return self.source != self.target


def is_ready_for_analysis(snapshot: LifecycleSnapshot) -> bool:
    """True when both start conditions hold and the pipeline has not started."""
    return (
        snapshot.status in GATE_STATUSES
        and snapshot.questionnaire_complete
        and snapshot.payment_confirmed
    )


# ---------------------------------------------------------------------------
# Transition rules
# ---------------------------------------------------------------------------


def _waiting_status(snapshot: LifecycleSnapshot) -> AssessmentStatus:
    """Where an open assessment rests given which start conditions hold."""
    if snapshot.payment_confirmed:
        return AssessmentStatus.PAID
    if snapshot.questionnaire_complete:
        return AssessmentStatus.AWAITING_PAYMENT
    return AssessmentStatus.IN_PROGRESS


def _on_payment_confirmed(snapshot: LifecycleSnapshot) -> AssessmentStatus:
    # A complete questionnaire rests at awaiting_payment for the gate to pick up.
    if snapshot.questionnaire_complete:
        return AssessmentStatus.AWAITING_PAYMENT
    return AssessmentStatus.PAID


def _on_analysis_started(snapshot: LifecycleSnapshot) -> AssessmentStatus:
    if not is_ready_for_analysis(snapshot):
        raise IllegalTransitionError(
            f"Analysis cannot start from {snapshot.status.value}: "
            f"questionnaire_complete={snapshot.questionnaire_complete}, "
            f"payment_confirmed={snapshot.payment_confirmed}."
        )
    return AssessmentStatus.ANALYSIS


def _stay(snapshot: LifecycleSnapshot) -> AssessmentStatus:
    return snapshot.status


def _to(status: AssessmentStatus) -> Callable[[LifecycleSnapshot], AssessmentStatus]:
    return lambda snapshot: status


_S = AssessmentStatus
_E = LifecycleEvent

_TRANSITIONS: dict[tuple[AssessmentStatus, LifecycleEvent], Callable[[LifecycleSnapshot], AssessmentStatus]] = {
    # Questionnaire answers
    (_S.PENDING, _E.RESPONSE_SAVED): _waiting_status,
    (_S.IN_PROGRESS, _E.RESPONSE_SAVED): _waiting_status,
    (_S.AWAITING_PAYMENT, _E.RESPONSE_SAVED): _stay,
    (_S.PAID, _E.RESPONSE_SAVED): _stay,
    (_S.ANALYSIS, _E.RESPONSE_SAVED): _stay,
    (_S.COMPLETED, _E.RESPONSE_SAVED): _stay,
    (_S.FAILED, _E.RESPONSE_SAVED): _stay,
    # Payment confirmation
    (_S.PENDING, _E.PAYMENT_CONFIRMED): _on_payment_confirmed,
    (_S.IN_PROGRESS, _E.PAYMENT_CONFIRMED): _on_payment_confirmed,
    (_S.AWAITING_PAYMENT, _E.PAYMENT_CONFIRMED): _stay,
    (_S.PAID, _E.PAYMENT_CONFIRMED): _stay,
    (_S.ANALYSIS, _E.PAYMENT_CONFIRMED): _stay,
    (_S.COMPLETED, _E.PAYMENT_CONFIRMED): _stay,
    (_S.FAILED, _E.PAYMENT_CONFIRMED): _stay,
    # Payment failure never moves status
    **{(status, _E.PAYMENT_FAILED): _stay for status in AssessmentStatus},
    # Pipeline start, gated on both conditions
    (_S.AWAITING_PAYMENT, _E.ANALYSIS_STARTED): _on_analysis_started,
    (_S.PAID, _E.ANALYSIS_STARTED): _on_analysis_started,
    # Pipeline outcome
    (_S.ANALYSIS, _E.DELIVERABLES_COMPLETED): _to(_S.COMPLETED),
    (_S.COMPLETED, _E.DELIVERABLES_COMPLETED): _stay,
    (_S.ANALYSIS, _E.PIPELINE_FAILED): _to(_S.FAILED),
    (_S.FAILED, _E.PIPELINE_FAILED): _stay,
}


def next_status(snapshot: LifecycleSnapshot, event: LifecycleEvent) -> Transition:
    """Decide the transition for an event against the current snapshot.

    Args:
        snapshot: Current persisted facts for the assessment.
        event: The lifecycle event being applied.

    Returns:
        Transition describing source and target (equal for absorbed events).

    Raises:
        IllegalTransitionError: If the (status, event) pair is not allowed or
            the rule would move the assessment backward.
    """
    rule = _TRANSITIONS.get((snapshot.status, event))
    if rule is None:
        raise IllegalTransitionError(
            f"Event {event.value} is not allowed in status {snapshot.status.value}."
        )

    target = rule(snapshot)
    if _RANK[target] < _RANK[snapshot.status]:
        raise IllegalTransitionError(
            f"Event {event.value} would move status backward "
            f"from {snapshot.status.value} to {target.value}."
        )
    return Transition(source=snapshot.status, target=target, event=event)
