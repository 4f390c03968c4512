"""
Exam attempt state machine.

The machine is a pure reducer: `transition(state, event)` returns the next
state and never mutates the one it was given. Time is not read here; the
caller sends `Tick()` once per second while the attempt is answering.

    idle --Start--> answering --Finish / clock at 0--> reviewing --Submit--> submitting
    submitting --ReportSuccess--> completed <--BackToSummary-- reviewing_results
    submitting --ReportFailure--> answering        completed --ReviewResults--> reviewing_results
    reviewing --Prev--> answering

Events that are not listed for the current phase leave the state as it is.
"""

from dataclasses import dataclass, field, replace
from typing import Any, Callable, Dict, Mapping, Optional, Tuple
import enum

from ..schemas.exam_schema import ExamResult, ScoreDetail


class Phase(str, enum.Enum):
    IDLE = "idle"
    ANSWERING = "answering"
    REVIEWING = "reviewing"
    SUBMITTING = "submitting"
    COMPLETED = "completed"
    REVIEWING_RESULTS = "reviewing_results"


# ---- events ----

@dataclass(frozen=True)
class Start:
    questions: Tuple[Any, ...]
    time_limit_minutes: int


@dataclass(frozen=True)
class Tick:
    pass


@dataclass(frozen=True)
class SubmitAnswer:
    question_id: int
    value: Any


@dataclass(frozen=True)
class Next:
    pass


@dataclass(frozen=True)
class Prev:
    pass


@dataclass(frozen=True)
class Finish:
    pass


@dataclass(frozen=True)
class Submit:
    pass


@dataclass(frozen=True)
class ReportSuccess:
    result: ExamResult
    details: Tuple[ScoreDetail, ...] = ()


@dataclass(frozen=True)
class ReportFailure:
    error: Any = None


@dataclass(frozen=True)
class ReviewResults:
    pass


@dataclass(frozen=True)
class BackToSummary:
    pass


# ---- state ----

@dataclass(frozen=True)
class ExamState:
    """
    One attempt.

    Attributes:
        phase:      where the attempt is in its lifecycle.
        questions:  fixed at Start, order is the exam order.
        position:   index of the shown question, 0 <= position < len(questions).
        answers:    question id -> submitted value. Only ids of `questions`.
        time_left:  whole seconds, never negative.
        time_limit: seconds granted at Start.
        result:     set once scoring succeeded, None before.
        details:    per-question feedback returned with the result.
    """
    phase: Phase = Phase.IDLE
    questions: Tuple[Any, ...] = ()
    position: int = 0
    answers: Mapping[int, Any] = field(default_factory=dict)
    time_left: int = 0
    time_limit: int = 0
    result: Optional[ExamResult] = None
    details: Tuple[ScoreDetail, ...] = ()

    @property
    def current_question(self):
        return self.questions[self.position] if self.questions else None

    @property
    def answered_count(self) -> int:
        return sum(1 for q in self.questions if self.answers.get(q.id) is not None)

    @property
    def unanswered_count(self) -> int:
        return len(self.questions) - self.answered_count

    @property
    def time_taken(self) -> int:
        return self.time_limit - self.time_left

    @property
    def current_detail(self) -> Optional[ScoreDetail]:
        q = self.current_question
        if q is None:
            return None
        return next((d for d in self.details if d.question_id == q.id), None)


# ---- transitions ----

def _start(state: ExamState, event: Start) -> ExamState:
    if not event.questions:
        raise ValueError("an exam needs at least one question")
    if event.time_limit_minutes < 0:
        raise ValueError("time_limit_minutes cannot be negative")
    seconds = event.time_limit_minutes * 60
    return ExamState(
        phase=Phase.ANSWERING,
        questions=tuple(event.questions),
        position=0,
        answers={},
        time_left=seconds,
        time_limit=seconds,
        result=None,
    )


def _tick(state: ExamState, event: Tick) -> ExamState:
    time_left = max(0, state.time_left - 1)
    if time_left == 0:
        # out of time: forced to the review, not an error
        return replace(state, time_left=0, phase=Phase.REVIEWING)
    return replace(state, time_left=time_left)


def _submit_answer(state: ExamState, event: SubmitAnswer) -> ExamState:
    if all(q.id != event.question_id for q in state.questions):
        return state
    answers = dict(state.answers)
    answers[event.question_id] = event.value
    return replace(state, answers=answers)


def _next(state: ExamState, event: Next) -> ExamState:
    return replace(state, position=min(state.position + 1, len(state.questions) - 1))


def _prev(state: ExamState, event: Prev) -> ExamState:
    return replace(state, position=max(state.position - 1, 0))


def _complete(state: ExamState, event: ReportSuccess) -> ExamState:
    return replace(state, phase=Phase.COMPLETED, result=event.result, details=tuple(event.details))


def _review_results(state: ExamState, event: ReviewResults) -> ExamState:
    return replace(state, phase=Phase.REVIEWING_RESULTS, position=0)


def _to(phase: Phase) -> Callable[[ExamState, Any], ExamState]:
    def go(state: ExamState, event: Any) -> ExamState:
        return replace(state, phase=phase)
    return go


TRANSITIONS: Dict[Tuple[Phase, type], Callable[[ExamState, Any], ExamState]] = {
    (Phase.IDLE, Start): _start,
    (Phase.ANSWERING, Tick): _tick,
    (Phase.ANSWERING, SubmitAnswer): _submit_answer,
    (Phase.ANSWERING, Next): _next,
    (Phase.ANSWERING, Prev): _prev,
    (Phase.ANSWERING, Finish): _to(Phase.REVIEWING),
    (Phase.REVIEWING, Submit): _to(Phase.SUBMITTING),
    (Phase.REVIEWING, Prev): _to(Phase.ANSWERING),
    (Phase.SUBMITTING, ReportSuccess): _complete,
    (Phase.SUBMITTING, ReportFailure): _to(Phase.ANSWERING),
    (Phase.COMPLETED, ReviewResults): _review_results,
    (Phase.REVIEWING_RESULTS, Next): _next,
    (Phase.REVIEWING_RESULTS, Prev): _prev,
    (Phase.REVIEWING_RESULTS, BackToSummary): _to(Phase.COMPLETED),
}


def accepts(state: ExamState, event: Any) -> bool:
    return (state.phase, type(event)) in TRANSITIONS


def transition(state: ExamState, event: Any) -> ExamState:
    handler = TRANSITIONS.get((state.phase, type(event)))
    if handler is None:
        return state
    return handler(state, event)
