import logging

import httpx

from ..schemas.exam_schema import GenerateExamResponse, ScoreExamRequest, ScoreExamResponse

logger = logging.getLogger(__name__)


class ExamApiClient:
    """Talks to the /api/exam endpoints. Transport and status errors surface as httpx.HTTPError."""

    TIMEOUT = 15.0

    def __init__(self, base_url: str = "", client: httpx.AsyncClient | None = None):
        self._client = client or httpx.AsyncClient(base_url=base_url, timeout=self.TIMEOUT)

    async def generate_exam(self, locale: str) -> GenerateExamResponse:
        response = await self._client.post("/api/exam/generate", json={"locale": locale})
        response.raise_for_status()
        return GenerateExamResponse.model_validate(response.json())

    async def score_exam(self, request: ScoreExamRequest) -> ScoreExamResponse:
        # unanswered questions must stay in the payload as null, so no exclude_none
        body = request.model_dump(mode="json", by_alias=True)
        response = await self._client.post("/api/exam/score", json=body)
        response.raise_for_status()
        logger.debug("Scored %d answers", len(request.answers))
        return ScoreExamResponse.model_validate(response.json())

    async def aclose(self) -> None:
        await self._client.aclose()
