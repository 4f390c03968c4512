import asyncio
import logging
from datetime import datetime, timezone
from typing import Any, Awaitable, Callable, Optional

from ..config import DEFAULT_LOCALE
from ..schemas.exam_schema import AnswerSubmission, ExamConfig, ScoreExamRequest
from .machine import (
    BackToSummary,
    ExamState,
    Finish,
    Next,
    Phase,
    Prev,
    ReportFailure,
    ReportSuccess,
    ReviewResults,
    Start,
    Submit,
    SubmitAnswer,
    Tick,
    transition,
)

logger = logging.getLogger(__name__)

Sleep = Callable[[float], Awaitable[Any]]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ExamOrchestrator:
    """
    Runs one exam attempt: fetches the questions, feeds the machine and
    hands the answers to the scoring endpoint.

    `api` needs two coroutines, `generate_exam(locale)` and
    `score_exam(ScoreExamRequest)`; ExamApiClient is the HTTP one.

    Every time the attempt enters answering inside a running event loop, a
    clock task is started that ticks once per `tick_interval` until the
    attempt leaves answering. Without a running loop the caller calls
    `tick()` itself. `close()` stops the clock.
    """

    def __init__(
        self,
        api,
        locale: str = DEFAULT_LOCALE,
        now: Callable[[], datetime] = _utcnow,
        sleep: Sleep = asyncio.sleep,
        tick_interval: float = 1.0,
    ):
        self.api = api
        self.locale = locale
        self._now = now
        self._sleep = sleep
        self.tick_interval = tick_interval
        self._clock: Optional[asyncio.Task] = None
        self.state = ExamState()
        self.config: Optional[ExamConfig] = None
        self.started_at: Optional[datetime] = None
        self.session_id: Optional[int] = None
        self.last_error: Optional[Exception] = None

    @property
    def phase(self) -> Phase:
        return self.state.phase

    @property
    def clock_running(self) -> bool:
        return self._clock is not None and not self._clock.done()

    def dispatch(self, event: Any) -> ExamState:
        before = self.phase
        self.state = transition(self.state, event)
        if self.phase == Phase.ANSWERING and before != Phase.ANSWERING:
            self._start_clock()
        return self.state

    def _start_clock(self) -> None:
        # a clock still sleeping from before a quick finish -> prev keeps going
        if self.clock_running:
            return
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            return
        self._clock = loop.create_task(run_clock(self, self._sleep, self.tick_interval))

    def close(self) -> None:
        if self._clock is not None:
            self._clock.cancel()
            self._clock = None

    async def start(self) -> ExamState:
        if self.phase != Phase.IDLE:
            logger.debug("Attempt already started, ignoring start")
            return self.state
        exam = await self.api.generate_exam(self.locale)
        self.config = exam.config
        self.started_at = self._now()
        return self.dispatch(Start(tuple(exam.questions), exam.config.time_limit_minutes))

    def tick(self) -> ExamState:
        # a tick that arrives after leaving answering is dropped
        if self.phase != Phase.ANSWERING:
            return self.state
        return self.dispatch(Tick())

    def _locked(self) -> bool:
        # one scoring request in flight, nothing may change the answers meanwhile
        if self.phase == Phase.SUBMITTING:
            logger.debug("Ignoring input while the exam is being scored")
            return True
        return False

    def answer(self, question_id: int, value: Any) -> ExamState:
        if self._locked():
            return self.state
        return self.dispatch(SubmitAnswer(question_id, value))

    def next(self) -> ExamState:
        if self._locked():
            return self.state
        return self.dispatch(Next())

    def prev(self) -> ExamState:
        if self._locked():
            return self.state
        return self.dispatch(Prev())

    def finish(self) -> ExamState:
        return self.dispatch(Finish())

    def review_results(self) -> ExamState:
        return self.dispatch(ReviewResults())

    def back_to_summary(self) -> ExamState:
        return self.dispatch(BackToSummary())

    def build_score_request(self) -> ScoreExamRequest:
        """Every question of the attempt in exam order; unanswered ones carry None."""
        return ScoreExamRequest(
            answers=[
                AnswerSubmission(question_id=q.id, answer=self.state.answers.get(q.id))
                for q in self.state.questions
            ],
            session_type="exam",
            started_at=self.started_at,
            time_taken_seconds=self.state.time_taken,
            locale=self.locale,
        )

    async def submit(self) -> ExamState:
        if self.phase != Phase.REVIEWING:
            return self.state

        request = self.build_score_request()
        self.dispatch(Submit())
        try:
            response = await self.api.score_exam(request)
            state = self.dispatch(ReportSuccess(response.result, tuple(response.details)))
        except Exception as e:
            # answers stay in memory, the candidate can submit again
            logger.exception("Scoring failed, back to answering")
            self.last_error = e
            return self.dispatch(ReportFailure(e))
        finally:
            if self.phase == Phase.SUBMITTING:
                # cancelled while the request was in flight
                self.dispatch(ReportFailure())

        self.last_error = None
        self.session_id = response.session_id
        logger.info(
            "Exam scored: %s/%s passed=%s",
            response.result.score, response.result.max_score, response.result.passed,
        )
        return state


async def run_clock(
    orchestrator: ExamOrchestrator,
    sleep: Sleep = asyncio.sleep,
    interval: float = 1.0,
) -> None:
    """Tick once per interval while the attempt is answering. Returns as soon as it is not."""
    while orchestrator.phase == Phase.ANSWERING:
        await sleep(interval)
        orchestrator.tick()
