# revparty/assessments/visibility.py

from typing import Mapping, Optional, Sequence

from ..utils.parse_utils import ParseError, parse_json_as
from ..utils.schemas import AnswerRouting, AssessmentQuestion, ConditionalLogic


def parse_condition(question: AssessmentQuestion) -> Optional[ConditionalLogic]:
    """The question's display condition, or None when absent or malformed."""
    if not question.conditional_logic:
        return None
    result = parse_json_as(question.conditional_logic, ConditionalLogic)
    if isinstance(result, ParseError):
        return None
    return result.value


def parse_routing(answer_value: Optional[str]) -> AnswerRouting:
    """Routing metadata from an answer value; plain-text values carry none."""
    result = parse_json_as(answer_value, AnswerRouting)
    if isinstance(result, ParseError):
        return AnswerRouting()
    return result.value


def is_question_visible(
    question: AssessmentQuestion,
    answers: Mapping[str, str],
    all_questions: Sequence[AssessmentQuestion],
) -> bool:
    """
    Visible when it has no usable condition, or when the referenced question
    was answered with the referenced answer. A condition pointing at a
    question that does not exist hides the question.
    """
    condition = parse_condition(question)
    if condition is None:
        return True

    if not any(q.id == condition.question_id for q in all_questions):
        return False

    return answers.get(condition.question_id) == condition.answer_id
