import logging
import math
from decimal import Decimal
from typing import Any, Iterable, List, Tuple

from ..schemas.exam_schema import AnswerSubmission, ExamConfig, ExamResult, ScoreDetail
from ..schemas.question_schema import AnswerType

logger = logging.getLogger(__name__)


def _float_text(value: float) -> str:
    """
    Shortest decimal text of a float, in the browser's number format:
    150.0 -> "150", 1e-07 -> "1e-7", 0.00001 -> "0.00001", 1e21 -> "1e+21".
    """
    if value == 0:
        return "0"
    sign = "-" if value < 0 else ""
    # repr is the shortest round-trip form, Decimal splits it into digits and exponent
    _, digits, exponent = Decimal(repr(abs(value))).normalize().as_tuple()
    digits = "".join(str(d) for d in digits)
    k = len(digits)
    n = exponent + k  # position of the decimal point

    if k <= n <= 21:
        return sign + digits + "0" * (n - k)
    if 0 < n <= 21:
        return sign + digits[:n] + "." + digits[n:]
    if -6 < n <= 0:
        return sign + "0." + "0" * -n + digits
    e = n - 1
    mantissa = digits if k == 1 else digits[0] + "." + digits[1:]
    return f"{sign}{mantissa}e{'+' if e >= 0 else '-'}{abs(e)}"


def _normalize_input(value: Any) -> str:
    """Typed answer -> comparable string. Anything that is not text or a number becomes ""."""
    if isinstance(value, bool):
        return ""
    if isinstance(value, str):
        return value.strip()
    if isinstance(value, int):
        return str(value)
    if isinstance(value, float):
        if not math.isfinite(value):
            return ""
        return _float_text(value)
    return ""


def _input_equal(submitted: Any, correct: Any) -> bool:
    return _normalize_input(submitted) == _normalize_input(correct)


def _same_structure(a: Any, b: Any) -> bool:
    # bool is an int subclass in python, keep it apart from positions
    if isinstance(a, bool) or isinstance(b, bool):
        return isinstance(a, bool) and isinstance(b, bool) and a == b
    if isinstance(a, (int, float)) and isinstance(b, (int, float)):
        return a == b
    if isinstance(a, str) and isinstance(b, str):
        return a == b
    if isinstance(a, (list, tuple)) and isinstance(b, (list, tuple)):
        return len(a) == len(b) and all(_same_structure(x, y) for x, y in zip(a, b))
    if isinstance(a, dict) and isinstance(b, dict):
        return a.keys() == b.keys() and all(_same_structure(a[k], b[k]) for k in a)
    return a is None and b is None


_COMPARATORS = {
    AnswerType.SINGLE_CHOICE: _same_structure,
    AnswerType.YES_NO: _same_structure,
    AnswerType.ORDER: _same_structure,
    AnswerType.INPUT: _input_equal,
}


def is_correct(answer_type: AnswerType | str, submitted: Any, correct: Any) -> bool:
    """
    Decide whether a submitted answer equals the canonical one.

    - unanswered (None) is never correct, whatever the canonical value is
    - INPUT compares trimmed strings, numbers rendered in decimal ("150" == 150)
    - SINGLE_CHOICE / YES_NO / ORDER compare structurally; ORDER is sequence sensitive
    A value of the wrong shape is just incorrect, this never raises.
    """
    if submitted is None or correct is None:
        return False
    try:
        answer_type = AnswerType(answer_type)
    except ValueError:
        logger.warning("Unknown answer type %r, answer counted as incorrect", answer_type)
        return False
    return _COMPARATORS[answer_type](submitted, correct)


def _round_half_up(numerator: int, denominator: int) -> int:
    return (2 * numerator + denominator) // (2 * denominator)


def calculate_score(details: Iterable[Any], config: ExamConfig) -> ExamResult:
    """
    Turn graded answers into a verdict.

    Each detail needs `is_correct` and `is_major_fault`; the fault flag only
    counts when the answer is wrong. Every rule value comes from `config`.
    """
    correct = incorrect = major_faults = minor_faults = 0
    for d in details:
        if d.is_correct:
            correct += 1
            continue
        incorrect += 1
        if d.is_major_fault:
            major_faults += 1
        else:
            minor_faults += 1

    penalty = major_faults * config.major_fault_penalty + minor_faults * config.minor_fault_penalty
    score = max(0, config.max_score - penalty)

    return ExamResult(
        total_questions=correct + incorrect,
        correct=correct,
        incorrect=incorrect,
        major_faults=major_faults,
        minor_faults=minor_faults,
        score=score,
        max_score=config.max_score,
        passed=score >= config.pass_threshold,
        pass_threshold=config.pass_threshold,
        percentage=_round_half_up(score * 100, config.max_score),
    )


def grade_submission(
    answers: List[AnswerSubmission], questions: List[Any], config: ExamConfig
) -> Tuple[ExamResult, List[ScoreDetail]]:
    """
    Grade the submitted answers against the provided questions.
    - answers: submissions in the order the client sent them
    - questions: objects with id, answer_type, answer, is_major_fault,
      question_text and explanation (ORM rows or QuestionDetail)

    Returns (result, details); details follow the order of `answers`.
    Raises KeyError when an answer targets a question that was not provided.
    """
    qmap = {q.id: q for q in questions}
    missing = [a.question_id for a in answers if a.question_id not in qmap]
    if missing:
        raise KeyError(missing[0])

    details: List[ScoreDetail] = []
    for a in answers:
        q = qmap[a.question_id]
        details.append(ScoreDetail(
            question_id=q.id,
            submitted=a.answer,
            correct=q.answer,
            is_correct=is_correct(q.answer_type, a.answer, q.answer),
            is_major_fault=bool(q.is_major_fault),
            question_text=getattr(q, "question_text", None),
            explanation=getattr(q, "explanation", None),
        ))

    return calculate_score(details, config), details
