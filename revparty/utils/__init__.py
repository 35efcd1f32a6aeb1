"""
Utils package for shared utilities like the LLM client, config, parsing helpers and Pydantic schemas.
"""

from .llm import LLMClient
from .schemas import (
    Campaign,
    AssessmentConfig,
    AssessmentQuestion,
    AssessmentAnswer,
    AssessmentResultBucket,
    AuditIssue,
    Improvement,
    ConfidenceFactor,
    RefinementResult,
)

__all__ = [
    "LLMClient",
    "Campaign",
    "AssessmentConfig",
    "AssessmentQuestion",
    "AssessmentAnswer",
    "AssessmentResultBucket",
    "AuditIssue",
    "Improvement",
    "ConfidenceFactor",
    "RefinementResult",
]
