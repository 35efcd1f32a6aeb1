# revparty/utils/schemas.py
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel
from typing import List, Dict, Any, Literal, Optional
from datetime import datetime


class ApiModel(BaseModel):
    """camelCase on the wire, snake_case in Python."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore",
                              coerce_numbers_to_str=True)


# -----------------------------------------------------------
# Campaigns
# -----------------------------------------------------------

class Campaign(ApiModel):
    id: str
    tenant_id: str
    campaign_name: Optional[str] = None
    display_as: Literal["inline", "popup"] = "inline"
    target_zone: Optional[str] = None
    target_pages: Optional[List[str]] = None
    is_active: bool = True
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    priority: int = 0
    content_type: Optional[str] = None
    content_payload: Optional[Any] = None


# -----------------------------------------------------------
# Assessments
# -----------------------------------------------------------

POINTS_SCORING = ("points", "points-based")


class AssessmentConfig(ApiModel):
    id: str
    slug: str
    title: Optional[str] = None
    description: Optional[str] = None
    entry_question_id: Optional[str] = None
    scoring_method: str = "decision-tree"

    @property
    def uses_points(self) -> bool:
        return self.scoring_method in POINTS_SCORING


class AssessmentQuestion(ApiModel):
    id: str
    order: int = 0
    question_text: str = ""
    description: Optional[str] = None
    conditional_logic: Optional[str] = None


class AssessmentAnswer(ApiModel):
    id: str
    question_id: str
    order: int = 0
    answer_text: str = ""
    answer_value: str = ""
    points: Optional[int] = None


class AssessmentResultBucket(ApiModel):
    id: str
    bucket_key: str
    order: int = 0
    title: Optional[str] = None
    min_score: Optional[int] = None
    max_score: Optional[int] = None


class ConditionalLogic(ApiModel):
    question_id: str = Field(min_length=1)
    answer_id: str = Field(min_length=1)


class AnswerRouting(ApiModel):
    next_question_id: Optional[str] = None
    result_bucket_key: Optional[str] = None
    text: Optional[str] = None
    description: Optional[str] = None


# -----------------------------------------------------------
# Refinement pipeline
# -----------------------------------------------------------

Severity = Literal["CRITICAL", "WARNING", "INFO"]


class AuditIssue(ApiModel):
    scene_index: int
    issue: str
    severity: Severity = "INFO"
    suggestion: str = ""


class Improvement(ApiModel):
    scene_index: int
    field: str
    current_value: Any = None
    new_value: Any = None
    reason: str = ""
    auto_applyable: bool = False


class ConfidenceFactor(ApiModel):
    category: str
    score: int
    severity: Severity
    issues: List[str] = []


class RefinementResult(ApiModel):
    scenes: List[Dict[str, Any]]
    confidence_score: int = Field(ge=0, le=100)
    confidence_factors: List[ConfidenceFactor] = []
    stage_timings: Dict[str, float] = {}
    total_time: float = 0.0
