import pytest

from drivewise.exam_session.machine import (
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
    accepts,
    transition,
)
from drivewise.schemas.exam_schema import ExamResult, ScoreDetail
from drivewise.schemas.question_schema import AnswerType, QuestionRead


def make_questions(n=3):
    return tuple(QuestionRead(id=i + 1, answer_type=AnswerType.SINGLE_CHOICE) for i in range(n))


def run(state, *events):
    for e in events:
        state = transition(state, e)
    return state


def started(n=3, minutes=90):
    return transition(ExamState(), Start(make_questions(n), minutes))


RESULT = ExamResult(
    total_questions=3, correct=3, incorrect=0, major_faults=0, minor_faults=0,
    score=50, max_score=50, passed=True, pass_threshold=41, percentage=100,
)


def test_start_lands_in_answering():
    state = started(n=50, minutes=90)
    assert state.phase == Phase.ANSWERING
    assert state.position == 0
    assert state.time_left == 90 * 60
    assert state.answers == {}
    assert state.result is None
    assert len(state.questions) == 50


def test_start_with_no_questions_is_rejected():
    with pytest.raises(ValueError):
        transition(ExamState(), Start((), 90))


def test_transition_does_not_mutate_input():
    state = started()
    after = transition(state, SubmitAnswer(1, 2))
    assert state.answers == {}
    assert after.answers == {1: 2}


def test_tick_counts_down():
    state = run(started(minutes=1), Tick(), Tick())
    assert state.time_left == 58
    assert state.phase == Phase.ANSWERING


def test_last_tick_forces_review():
    state = started(minutes=1)
    state = run(state, *[Tick()] * 59)
    assert state.time_left == 1
    state = transition(state, Tick())
    assert state.time_left == 0
    assert state.phase == Phase.REVIEWING


def test_ticks_outside_answering_change_nothing():
    state = run(started(), Finish())
    assert transition(state, Tick()) == state


def test_answers_are_upserted():
    state = run(started(), SubmitAnswer(1, 0), SubmitAnswer(2, [1, 0]), SubmitAnswer(1, 3))
    assert state.answers == {1: 3, 2: [1, 0]}
    assert state.answered_count == 2
    assert state.unanswered_count == 1


def test_answer_for_foreign_question_is_ignored():
    state = run(started(), SubmitAnswer(42, 1))
    assert state.answers == {}


def test_navigation_clamps_at_both_ends():
    state = started(n=3)
    assert transition(state, Prev()).position == 0
    state = run(state, Next(), Next())
    assert state.position == 2
    assert transition(state, Next()).position == 2
    assert run(state, Prev()).position == 1


def test_finish_then_prev_resumes_where_left():
    state = run(started(), Next(), Finish())
    assert state.phase == Phase.REVIEWING
    state = transition(state, Prev())
    assert state.phase == Phase.ANSWERING
    assert state.position == 1


def test_reviewing_ignores_answers():
    state = run(started(), Finish(), SubmitAnswer(1, 0))
    assert state.answers == {}
    assert not accepts(state, SubmitAnswer(1, 0))


def test_failure_returns_to_answering_with_answers_intact():
    state = run(started(), SubmitAnswer(1, 0), SubmitAnswer(3, 2), Finish(), Submit())
    assert state.phase == Phase.SUBMITTING
    before = dict(state.answers)
    state = transition(state, ReportFailure(RuntimeError("offline")))
    assert state.phase == Phase.ANSWERING
    assert state.answers == before
    assert state.result is None


def test_success_stores_result():
    detail = ScoreDetail(question_id=1, submitted=0, correct=0, is_correct=True, is_major_fault=False)
    state = run(started(), Finish(), Submit(), ReportSuccess(RESULT, (detail,)))
    assert state.phase == Phase.COMPLETED
    assert state.result == RESULT
    assert state.details == (detail,)


def test_result_review_walkthrough():
    detail = ScoreDetail(question_id=1, submitted=0, correct=0, is_correct=True, is_major_fault=False)
    state = run(started(), Next(), Next(), Finish(), Submit(), ReportSuccess(RESULT, (detail,)))
    assert state.position == 2

    state = transition(state, ReviewResults())
    assert state.phase == Phase.REVIEWING_RESULTS
    assert state.position == 0
    assert state.current_detail == detail

    state = run(state, Next(), Next(), Next())
    assert state.position == 2
    assert state.current_detail is None

    state = transition(state, BackToSummary())
    assert state.phase == Phase.COMPLETED


def test_completed_attempt_is_read_only():
    state = run(started(), Finish(), Submit(), ReportSuccess(RESULT))
    assert run(state, SubmitAnswer(1, 0), Tick(), Start(make_questions(), 1)) == state


def test_time_taken():
    state = run(started(minutes=2), Tick(), Tick(), Tick())
    assert state.time_taken == 3
