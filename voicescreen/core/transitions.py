"""
Session transition rules.

``transition`` is a pure function of (machine state, event) returning
the next machine state and the effects the session must carry out.
It performs no I/O; ``SessionStateMachine`` applies the effects.

    IDLE → AWAITING_RESUME_INFO → READY_TO_START → IN_PROGRESS(1..6) → EVALUATING → COMPLETED
                                        ↓                     ↓
                                      FAILED          COMPLETED (no audio at all)
"""

from pydantic import BaseModel, ConfigDict, Field

from voicescreen.core.errors import StateTransitionError
from voicescreen.models.interview import TOTAL_SLOTS, SessionState


class MachineState(BaseModel):
    """The part of a session the transition rules depend on."""

    model_config = ConfigDict(frozen=True)

    state: SessionState = SessionState.IDLE
    current_index: int = Field(default=0, ge=0, le=TOTAL_SLOTS)
    answers_with_audio: int = Field(default=0, ge=0, le=TOTAL_SLOTS)
    failure_reason: str | None = None


# =============================================================================
# EVENTS
# =============================================================================

class SessionEvent(BaseModel):
    """Base class for session events."""

    model_config = ConfigDict(frozen=True)


class ResumeInfoSubmitted(SessionEvent):
    identity_complete: bool


class QuestionsReady(SessionEvent):
    slot_count: int


class QuestionGenerationFailed(SessionEvent):
    reason: str


class AnswerFinalized(SessionEvent):
    slot_number: int
    has_audio: bool


class EvaluationFinished(SessionEvent):
    pass


class ResetRequested(SessionEvent):
    pass


# =============================================================================
# EFFECTS
# =============================================================================

class Effect(BaseModel):
    """Base class for effects requested by a transition."""

    model_config = ConfigDict(frozen=True)


class BeginSlot(Effect):
    slot_number: int


class RunPipeline(Effect):
    pass


class CompleteWithoutResponses(Effect):
    pass


class TearDown(Effect):
    pass


class Transition(BaseModel):
    """Outcome of applying one event."""

    model_config = ConfigDict(frozen=True)

    state: MachineState
    effects: tuple[Effect, ...] = ()


# Valid state transitions
VALID_TRANSITIONS: dict[SessionState, list[SessionState]] = {
    SessionState.IDLE: [SessionState.AWAITING_RESUME_INFO, SessionState.READY_TO_START, SessionState.IDLE],
    SessionState.AWAITING_RESUME_INFO: [SessionState.AWAITING_RESUME_INFO, SessionState.READY_TO_START, SessionState.IDLE],
    SessionState.READY_TO_START: [SessionState.READY_TO_START, SessionState.IN_PROGRESS, SessionState.FAILED, SessionState.IDLE],
    SessionState.IN_PROGRESS: [SessionState.IN_PROGRESS, SessionState.EVALUATING, SessionState.COMPLETED, SessionState.IDLE],
    SessionState.EVALUATING: [SessionState.COMPLETED],  # No cancellation once evaluating
    SessionState.COMPLETED: [SessionState.IDLE],  # Exited only by reset
    SessionState.FAILED: [SessionState.IDLE],  # Exited only by reset
}


def _reject(current: MachineState, event: SessionEvent) -> StateTransitionError:
    return StateTransitionError(
        f"{type(event).__name__} is not valid in state {current.state.value}"
    )


def _move(current: MachineState, event: SessionEvent, **update) -> MachineState:
    target = update.get("state", current.state)
    if target not in VALID_TRANSITIONS[current.state]:
        raise _reject(current, event)
    return current.model_copy(update=update)


def transition(current: MachineState, event: SessionEvent) -> Transition:
    """
    Apply an event to a machine state.

    Raises:
        StateTransitionError: If the event is not valid in the current state
    """
    if isinstance(event, ResetRequested):
        if current.state == SessionState.EVALUATING:
            raise _reject(current, event)
        return Transition(state=MachineState(), effects=(TearDown(),))

    if isinstance(event, ResumeInfoSubmitted):
        if current.state not in (
            SessionState.IDLE,
            SessionState.AWAITING_RESUME_INFO,
            SessionState.READY_TO_START,
        ):
            raise _reject(current, event)
        target = (
            SessionState.READY_TO_START if event.identity_complete
            else SessionState.AWAITING_RESUME_INFO
        )
        return Transition(state=_move(current, event, state=target))

    if isinstance(event, QuestionsReady):
        if current.state != SessionState.READY_TO_START:
            raise _reject(current, event)
        if event.slot_count != TOTAL_SLOTS:
            reason = f"Expected {TOTAL_SLOTS} questions, got {event.slot_count}"
            return Transition(
                state=_move(current, event, state=SessionState.FAILED, failure_reason=reason)
            )
        return Transition(
            state=_move(
                current, event,
                state=SessionState.IN_PROGRESS,
                current_index=1,
                answers_with_audio=0,
            ),
            effects=(BeginSlot(slot_number=1),),
        )

    if isinstance(event, QuestionGenerationFailed):
        if current.state != SessionState.READY_TO_START:
            raise _reject(current, event)
        return Transition(
            state=_move(current, event, state=SessionState.FAILED, failure_reason=event.reason)
        )

    if isinstance(event, AnswerFinalized):
        if current.state != SessionState.IN_PROGRESS:
            raise _reject(current, event)
        if event.slot_number != current.current_index:
            raise StateTransitionError(
                f"Answer for Q{event.slot_number} arrived while Q{current.current_index} is active"
            )

        with_audio = current.answers_with_audio + (1 if event.has_audio else 0)
        if current.current_index < TOTAL_SLOTS:
            next_index = current.current_index + 1
            return Transition(
                state=_move(
                    current, event,
                    current_index=next_index,
                    answers_with_audio=with_audio,
                ),
                effects=(BeginSlot(slot_number=next_index),),
            )

        if with_audio == 0:
            return Transition(
                state=_move(
                    current, event,
                    state=SessionState.COMPLETED,
                    answers_with_audio=0,
                ),
                effects=(CompleteWithoutResponses(),),
            )

        return Transition(
            state=_move(
                current, event,
                state=SessionState.EVALUATING,
                answers_with_audio=with_audio,
            ),
            effects=(RunPipeline(),),
        )

    if isinstance(event, EvaluationFinished):
        if current.state != SessionState.EVALUATING:
            raise _reject(current, event)
        return Transition(state=_move(current, event, state=SessionState.COMPLETED))

    raise _reject(current, event)
