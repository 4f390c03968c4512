from .config import get_exam_config
from .schemas.exam_schema import ExamConfig


def active_exam_config() -> ExamConfig:
    # resolved per request so EXAM_RULESET can be changed without a restart
    return get_exam_config()
