"""
Assessment runtime: conditional visibility, branching navigation, scoring and
decision-tree analysis.
"""

from .visibility import is_question_visible, parse_condition, parse_routing
from .session import clear_session_id, get_or_create_session_id, session_key
from .client import AssessmentApiClient, ConfigNotFoundError, SubmissionError
from .navigator import (
    AssessmentNavigator,
    BrokenReferenceError,
    NavigationDeadEndError,
    NavigatorState,
    bounded_scan,
    build_result_url,
    find_next_visible,
    resolve_entry_index,
    resolve_next_index,
)
from .scoring import calculate_decision_tree_bucket, calculate_points_based_bucket, score_submission
from .tree import DecisionTree, compute_decision_tree

__all__ = [
    "is_question_visible",
    "parse_condition",
    "parse_routing",
    "clear_session_id",
    "get_or_create_session_id",
    "session_key",
    "AssessmentApiClient",
    "ConfigNotFoundError",
    "SubmissionError",
    "AssessmentNavigator",
    "BrokenReferenceError",
    "NavigationDeadEndError",
    "NavigatorState",
    "bounded_scan",
    "build_result_url",
    "find_next_visible",
    "resolve_entry_index",
    "resolve_next_index",
    "calculate_decision_tree_bucket",
    "calculate_points_based_bucket",
    "score_submission",
    "DecisionTree",
    "compute_decision_tree",
]
