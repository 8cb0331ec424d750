"""
Session State Machine - drives one interview from resume to result.

This is the central coordinator for a session. Events are queued and
applied one at a time through the pure rules in ``transitions``; the
effects each transition requests (start a question, run the batch
pipeline, tear down) are carried out here.
"""

import asyncio
import logging
from collections import deque
from datetime import datetime
from typing import Any, Awaitable, Callable

from voicescreen.config.settings import Settings
from voicescreen.core.ai_reasoning import AIReasoningLayer
from voicescreen.core.answer_timer import AnswerCaptureTimer, CapturePhase
from voicescreen.core.audio_recorder import AudioRecorder
from voicescreen.core.errors import GenerationFailed, StateTransitionError
from voicescreen.core.evaluation_pipeline import BatchEvaluationPipeline
from voicescreen.core.result_aggregator import ResultAggregator
from voicescreen.core.speech import SpeechSynthesizer
from voicescreen.core.transitions import (
    AnswerFinalized,
    BeginSlot,
    CompleteWithoutResponses,
    Effect,
    EvaluationFinished,
    MachineState,
    QuestionGenerationFailed,
    QuestionsReady,
    ResetRequested,
    ResumeInfoSubmitted,
    RunPipeline,
    SessionEvent,
    TearDown,
    transition,
)
from voicescreen.models.evaluation import AudioArtifact, BatchEvaluation, ScoreResult
from voicescreen.models.interview import (
    TOTAL_SLOTS,
    AnswerRecord,
    CandidateInfo,
    QuestionSlot,
    Session,
    SessionResult,
    SessionState,
)

logger = logging.getLogger(__name__)

Listener = Callable[[dict[str, Any]], Awaitable[None]]


class SessionStateMachine:
    """
    Owns one Session and drives it through its lifecycle.

    States:
        IDLE → AWAITING_RESUME_INFO → READY_TO_START → IN_PROGRESS(1..6) → EVALUATING → COMPLETED
                                            ↓
                                          FAILED

    Host surface: ``submit_resume_info``, ``start_session``, ``advance``,
    ``get_current_question``, ``get_result`` and ``reset``.
    """

    def __init__(
        self,
        reasoning: AIReasoningLayer,
        pipeline: BatchEvaluationPipeline,
        aggregator: ResultAggregator,
        recorder: AudioRecorder,
        speech: SpeechSynthesizer,
        settings: Settings,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self.reasoning = reasoning
        self.pipeline = pipeline
        self.aggregator = aggregator
        self.recorder = recorder
        self.speech = speech
        self.settings = settings
        self._sleep = sleep

        self.session = Session()
        self._machine = MachineState()

        # Event queue
        self._events: deque[tuple[SessionEvent, asyncio.Future]] = deque()
        self._draining = False

        self._timer: AnswerCaptureTimer | None = None
        self._tasks: set[asyncio.Task] = set()
        self._settled = asyncio.Event()
        self._starting = False
        self.settled_at: datetime | None = None
        self._listeners: list[Listener] = []

    # =========================================================================
    # HOST SURFACE
    # =========================================================================

    @property
    def state(self) -> SessionState:
        return self._machine.state

    @property
    def capture_phase(self) -> CapturePhase | None:
        """Phase of the question currently being asked, if any."""
        return self._timer.phase if self._timer else None

    @property
    def time_remaining(self) -> int:
        return self._timer.remaining if self._timer else 0

    async def load_resume(self, resume_text: str) -> CandidateInfo:
        """Extract identity from resume text and submit whatever was found."""
        extracted = await self.reasoning.extract_candidate_info(resume_text)
        await self.submit_resume_info(extracted)
        return self.session.candidate

    async def submit_resume_info(self, fields: CandidateInfo) -> SessionState:
        """
        Merge identity fields into the session.

        Moves to READY_TO_START once name, email and phone are all known.
        """
        candidate = self.session.candidate.merged_with(fields)
        self.session.candidate = candidate
        await self._dispatch(ResumeInfoSubmitted(identity_complete=candidate.is_complete))

        if candidate.missing_fields:
            logger.info(
                f"Session {self.session.session_id}: still missing "
                f"{', '.join(candidate.missing_fields)}"
            )
        return self.state

    async def start_session(self) -> SessionState:
        """
        Probe the microphone, generate the questions and begin slot 1.

        Returns:
            IN_PROGRESS on success, FAILED if question generation failed

        Raises:
            DeviceUnavailable: If the microphone cannot be acquired (state unchanged)
            StateTransitionError: If the session is not READY_TO_START or is already starting
        """
        if self.state != SessionState.READY_TO_START:
            raise StateTransitionError(f"Cannot start a session in state {self.state.value}")
        if self._starting:
            raise StateTransitionError("Session is already starting")

        self._starting = True
        try:
            return await self._start(self.session)
        finally:
            self._starting = False

    async def _start(self, session: Session) -> SessionState:
        await self.recorder.probe()

        try:
            slots = await self.reasoning.generate_questions(session.candidate)
        except GenerationFailed as e:
            if self.session is not session:
                raise StateTransitionError("Session was reset while starting") from e
            logger.error(f"Session {session.session_id}: question generation failed: {e}")
            await self._dispatch(QuestionGenerationFailed(reason=str(e) or "Question generation failed"))
            return self.state

        # A reset during generation replaces the session; never hand it these questions
        if self.session is not session or self.state != SessionState.READY_TO_START:
            raise StateTransitionError("Session was reset while starting")

        if len(slots) == TOTAL_SLOTS:
            session.slots = slots
        session.started_at = datetime.utcnow()
        await self._dispatch(QuestionsReady(slot_count=len(slots)))
        return self.state

    async def advance(self, manual: bool = True) -> bool:
        """
        Finalize the current answer now.

        Accepted only while the current question is in its answering phase.

        Returns:
            True if this call finalized the answer
        """
        if self.state != SessionState.IN_PROGRESS or self._timer is None:
            raise StateTransitionError(f"Cannot advance in state {self.state.value}")
        return await self._timer.submit_now(auto=not manual)

    def get_current_question(self) -> QuestionSlot | None:
        return self.session.get_current_slot()

    def get_result(self) -> SessionResult | None:
        return self.session.result

    async def reset(self) -> None:
        """Discard the session and return to IDLE."""
        await self._dispatch(ResetRequested())

    async def abandon(self) -> None:
        """Stop all activity whatever the state; used when the host discards the session."""
        self._events.clear()
        self._machine = MachineState()
        await self._tear_down()
        self._listeners.clear()

    async def wait_until_settled(self) -> SessionState:
        """Wait until the session reaches COMPLETED or FAILED."""
        await self._settled.wait()
        return self.state

    # =========================================================================
    # EVENT CALLBACKS
    # =========================================================================

    def on_event(self, listener: Listener) -> None:
        """Register a listener for state, tick and audio events."""
        self._listeners.append(listener)

    def remove_listener(self, listener: Listener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    async def emit(self, event: dict[str, Any]) -> None:
        """Send an event to every listener."""
        for listener in list(self._listeners):
            try:
                await listener(event)
            except Exception as e:
                logger.error(f"Session listener error: {e}")

    # =========================================================================
    # STATE MACHINE
    # =========================================================================

    async def _dispatch(self, event: SessionEvent) -> None:
        """Queue an event and wait until it has been applied."""
        done = asyncio.get_running_loop().create_future()
        self._events.append((event, done))

        if not self._draining:
            self._draining = True
            try:
                while self._events:
                    queued, future = self._events.popleft()
                    if future.cancelled():
                        continue
                    try:
                        await self._apply(queued)
                    except Exception as e:
                        if not future.done():
                            future.set_exception(e)
                    else:
                        if not future.done():
                            future.set_result(None)
            finally:
                self._draining = False

        await done

    async def _apply(self, event: SessionEvent) -> None:
        old_state = self.state
        outcome = transition(self._machine, event)

        self._machine = outcome.state
        self.session.state = outcome.state.state
        self.session.current_index = outcome.state.current_index
        self.session.failure_reason = outcome.state.failure_reason

        for effect in outcome.effects:
            await self._perform(effect)

        if self.state.is_terminal and not self._settled.is_set():
            self.settled_at = datetime.utcnow()
            self._settled.set()

        if old_state != self.state:
            logger.info(f"Session {self.session.session_id}: {old_state.value} → {self.state.value}")
        await self.emit({
            "type": "state_change",
            "old_state": old_state.value,
            "new_state": self.state.value,
            "question_number": self.session.current_index,
        })

    async def _perform(self, effect: Effect) -> None:
        if isinstance(effect, BeginSlot):
            self._begin_slot(effect.slot_number)
        elif isinstance(effect, RunPipeline):
            self._spawn(self._evaluate())
        elif isinstance(effect, CompleteWithoutResponses):
            logger.info(f"Session {self.session.session_id}: no audio captured, skipping evaluation")
            self.session.result = self.aggregator.no_responses(
                self.session.slots, self.session.candidate
            )
        elif isinstance(effect, TearDown):
            await self._tear_down()

    # =========================================================================
    # EFFECTS
    # =========================================================================

    def _begin_slot(self, slot_number: int) -> None:
        slot = self.session.slots[slot_number - 1]
        self._timer = AnswerCaptureTimer(
            slot=slot,
            recorder=self.recorder,
            speech=self.speech,
            on_submit=self._on_answer_captured,
            on_tick=self._on_tick,
            announce_seconds=self.settings.announce_seconds,
            pre_response_seconds=self.settings.pre_response_seconds,
            sleep=self._sleep,
        )
        self._spawn(self._timer.run())

    async def _on_answer_captured(self, slot_number: int, blob: bytes | None, auto: bool) -> None:
        slot = self.session.slots[slot_number - 1]
        slot.answer = AnswerRecord(slot_number=slot_number, audio=blob, auto_submitted=auto)
        await self._dispatch(AnswerFinalized(slot_number=slot_number, has_audio=bool(blob)))

    async def _on_tick(self, phase: CapturePhase, remaining: int) -> None:
        await self.emit({
            "type": "tick",
            "question_number": self.session.current_index,
            "phase": phase.value,
            "remaining": remaining,
        })

    async def _evaluate(self) -> None:
        """Run the batch pipeline and aggregation; always ends in COMPLETED."""
        slots = self.session.slots
        artifacts = [
            AudioArtifact(slot_number=answer.slot_number, data=answer.audio or b"")
            for answer in self.session.answers
        ]

        try:
            batch = await self.pipeline.evaluate(slots, artifacts)
            result = await self.aggregator.aggregate(slots, batch, self.session.candidate)
        except Exception as e:
            logger.error(f"Session {self.session.session_id}: evaluation failed unexpectedly: {e}")
            batch = BatchEvaluation.sized(len(slots))
            batch.feedback = [ScoreResult.failed().feedback] * len(slots)
            result = SessionResult(
                questions=[slot.question for slot in slots],
                transcripts=batch.transcripts,
                scores=batch.scores,
                feedback=batch.feedback,
            )

        for index, slot in enumerate(slots):
            if slot.answer is None:
                slot.answer = AnswerRecord(slot_number=slot.slot_number)
            slot.answer.transcript = result.transcripts[index]
            slot.answer.score = result.scores[index]
            slot.answer.feedback = result.feedback[index]

        self.session.result = result
        await self._dispatch(EvaluationFinished())

    async def _tear_down(self) -> None:
        timer, self._timer = self._timer, None
        if timer is not None:
            await timer.abort()
        try:
            await self.recorder.stop()
        except Exception as e:
            logger.error(f"Session {self.session.session_id}: failed to stop recording: {e}")

        current = asyncio.current_task()
        for task in list(self._tasks):
            if task is not current:
                task.cancel()
        self._tasks.clear()

        # Same id so hosts can keep addressing the session after a reset
        self.session = Session(session_id=self.session.session_id)
        self._settled = asyncio.Event()
        self.settled_at = None

    def _spawn(self, coro) -> asyncio.Task:
        task = asyncio.create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._task_done)
        return task

    def _task_done(self, task: asyncio.Task) -> None:
        self._tasks.discard(task)
        if not task.cancelled() and task.exception() is not None:
            logger.error(f"Session {self.session.session_id}: background task failed: {task.exception()}")
