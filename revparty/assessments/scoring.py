# revparty/assessments/scoring.py

"""
Server-side bucket assignment for submitted assessments.

points:        sum answer points, match the first bucket (by order) whose
               score range contains the total.
decision-tree: replay the answer routing from the entry question until an
               answer names a result bucket.
"""

import logging
from typing import Dict, Mapping, Optional, Sequence

from ..utils.parse_utils import ParseError, parse_json_as
from ..utils.schemas import (
    AnswerRouting,
    AssessmentAnswer,
    AssessmentConfig,
    AssessmentQuestion,
    AssessmentResultBucket,
)

MAX_TREE_ITERATIONS = 100

logger = logging.getLogger(__name__)


def _in_range(total: int, bucket: AssessmentResultBucket) -> bool:
    lo, hi = bucket.min_score, bucket.max_score
    if lo is not None and hi is not None:
        return lo <= total <= hi
    if lo is not None:
        return total >= lo
    if hi is not None:
        return total <= hi
    return False


def calculate_points_based_bucket(
    answers: Mapping[str, str],
    all_answers: Sequence[AssessmentAnswer],
    buckets: Sequence[AssessmentResultBucket],
) -> Optional[str]:
    by_id: Dict[str, AssessmentAnswer] = {a.id: a for a in all_answers}

    total = 0
    for answer_id in answers.values():
        answer = by_id.get(answer_id)
        if answer is not None and answer.points is not None:
            total += answer.points

    logger.info(f"[Points scoring] Total points: {total}")

    for bucket in sorted(buckets, key=lambda b: b.order):
        if _in_range(total, bucket):
            logger.info(f"[Points scoring] Matched bucket: {bucket.bucket_key}")
            return bucket.bucket_key

    logger.warning(f"[Points scoring] No bucket matched for score {total}")
    return None


def calculate_decision_tree_bucket(
    answers: Mapping[str, str],
    questions: Sequence[AssessmentQuestion],
    all_answers: Sequence[AssessmentAnswer],
    entry_question_id: str,
) -> Optional[str]:
    by_id: Dict[str, AssessmentAnswer] = {a.id: a for a in all_answers}
    current = entry_question_id

    for _ in range(MAX_TREE_ITERATIONS):
        answer_id = answers.get(current)
        if not answer_id:
            logger.warning(f"[Decision-tree scoring] No answer for question {current}")
            return None

        answer = by_id.get(answer_id)
        if answer is None:
            logger.warning(f"[Decision-tree scoring] Answer {answer_id} not found")
            return None

        routing = parse_json_as(answer.answer_value, AnswerRouting)
        if isinstance(routing, ParseError):
            logger.error(f"[Decision-tree scoring] Bad answerValue for {answer_id}: {routing.reason}")
            return None

        if routing.value.result_bucket_key:
            return routing.value.result_bucket_key

        if routing.value.next_question_id:
            current = routing.value.next_question_id
            continue

        logger.warning(f"[Decision-tree scoring] Answer {answer_id} has no routing")
        return None

    logger.error(f"[Decision-tree scoring] Max iterations ({MAX_TREE_ITERATIONS}) reached")
    return None


def score_submission(
    config: AssessmentConfig,
    questions: Sequence[AssessmentQuestion],
    all_answers: Sequence[AssessmentAnswer],
    buckets: Sequence[AssessmentResultBucket],
    answers: Mapping[str, str],
) -> Optional[str]:
    if config.uses_points:
        return calculate_points_based_bucket(answers, all_answers, buckets)

    entry_id = config.entry_question_id
    if not entry_id:
        ordered = sorted(questions, key=lambda q: q.order)
        if not ordered:
            return None
        entry_id = ordered[0].id
    return calculate_decision_tree_bucket(answers, questions, all_answers, entry_id)
