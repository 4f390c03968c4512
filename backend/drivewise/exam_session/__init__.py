from .machine import ExamState, Phase, transition
from .orchestrator import ExamOrchestrator, run_clock
from .api_client import ExamApiClient

__all__ = ["ExamState", "Phase", "transition", "ExamOrchestrator", "run_clock", "ExamApiClient"]
