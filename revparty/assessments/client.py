# revparty/assessments/client.py

from typing import Any, Dict, List, Mapping, Optional

import httpx
from pydantic import TypeAdapter, ValidationError

from ..utils.schemas import AssessmentAnswer, AssessmentConfig, AssessmentQuestion


class ConfigNotFoundError(RuntimeError):
    """Assessment config is missing or has no questions."""


class SubmissionError(RuntimeError):
    def __init__(self, message: str, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class AssessmentApiClient:
    def __init__(
        self,
        base_url: str,
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self._timeout = timeout
        self._transport = transport

    @classmethod
    def from_config(cls, assessments_cfg: Dict[str, Any], **kwargs) -> "AssessmentApiClient":
        return cls(
            base_url=assessments_cfg.get("base_url", ""),
            timeout=assessments_cfg.get("timeout_seconds", 10.0),
            **kwargs,
        )

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(base_url=self.base_url, timeout=self._timeout, transport=self._transport)

    async def _get_json(self, path: str) -> Any:
        async with self._client() as client:
            response = await client.get(path)
        if response.status_code == 404:
            raise ConfigNotFoundError(f"Not found: {path}")
        response.raise_for_status()
        return response.json()

    async def get_config_by_slug(self, slug: str) -> AssessmentConfig:
        payload = await self._get_json(f"/api/assessment-configs/slug/{slug}")
        if not payload:
            raise ConfigNotFoundError(f"Assessment config {slug!r} not found")
        try:
            return AssessmentConfig.model_validate(payload)
        except ValidationError as exc:
            raise ConfigNotFoundError(f"Assessment config {slug!r} is invalid: {exc}") from exc

    async def get_questions(self, config_id: str) -> List[AssessmentQuestion]:
        payload = await self._get_json(f"/api/assessment-configs/{config_id}/questions")
        return TypeAdapter(List[AssessmentQuestion]).validate_python(payload or [])

    async def get_answers(self, config_id: str) -> List[AssessmentAnswer]:
        payload = await self._get_json(f"/api/assessment-configs/{config_id}/answers")
        return TypeAdapter(List[AssessmentAnswer]).validate_python(payload or [])

    async def submit(self, session_id: str, answers: Mapping[str, str]) -> str:
        """Posts the full answer map; returns the scored bucket key."""
        try:
            async with self._client() as client:
                response = await client.post(
                    f"/api/assessments/{session_id}/submit",
                    json={"answers": dict(answers)},
                )
        except httpx.HTTPError as exc:
            raise SubmissionError(f"Failed to submit assessment: {exc}") from exc

        if response.status_code < 200 or response.status_code >= 300:
            raise SubmissionError(
                f"Failed to submit assessment (HTTP {response.status_code})",
                status_code=response.status_code,
            )

        try:
            bucket = response.json().get("bucket")
        except (ValueError, AttributeError) as exc:
            raise SubmissionError("Submission response is not a JSON object") from exc

        if not isinstance(bucket, str) or not bucket:
            raise SubmissionError("Submission response is missing bucket")
        return bucket
