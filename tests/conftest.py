import json
from typing import Callable, List, Optional, Union

import pytest

from revparty.utils.schemas import AssessmentAnswer, AssessmentConfig, AssessmentQuestion


class FakeLLM:
    """Scripted stand-in for LLMClient: returns queued texts and records prompts."""

    def __init__(self, responses: Optional[List[Union[str, Exception, Callable[[str], str]]]] = None):
        self.responses = list(responses or [])
        self.prompts: List[str] = []
        self.kwargs: List[dict] = []
        self.logger = None

    def safe_generate(self, prompt: str, retries: int = 2, **kwargs):
        self.prompts.append(prompt)
        self.kwargs.append(kwargs)
        if not self.responses:
            return {"text": "[]", "raw": None, "usage": {}}
        item = self.responses.pop(0)
        if isinstance(item, Exception):
            raise item
        text = item(prompt) if callable(item) else item
        return {"text": text, "raw": None, "usage": {}}


@pytest.fixture
def fake_llm_factory():
    return FakeLLM


def make_question(qid: str, order: int, condition: Optional[dict] = None, raw_condition: Optional[str] = None):
    logic = raw_condition if raw_condition is not None else (json.dumps(condition) if condition else None)
    return AssessmentQuestion(id=qid, order=order, question_text=f"Question {qid}", conditional_logic=logic)


def make_answer(aid: str, qid: str, value: Union[dict, str] = "", order: int = 0,
                text: Optional[str] = None, points: Optional[int] = None):
    answer_value = json.dumps(value) if isinstance(value, dict) else value
    return AssessmentAnswer(id=aid, question_id=qid, order=order, answer_text=text or f"Answer {aid}",
                            answer_value=answer_value, points=points)


@pytest.fixture
def tree_config():
    return AssessmentConfig(id="cfg1", slug="gtm-fit", entry_question_id="q1", scoring_method="decision-tree")


@pytest.fixture
def points_config():
    return AssessmentConfig(id="cfg2", slug="pipeline-score", entry_question_id=None, scoring_method="points")


@pytest.fixture
def branching_questions():
    # q3 only shows after a1 on q1
    return [
        make_question("q1", 0),
        make_question("q2", 1),
        make_question("q3", 2, condition={"questionId": "q1", "answerId": "a1"}),
        make_question("q4", 3),
    ]


@pytest.fixture
def branching_answers():
    return [
        make_answer("a1", "q1", {"nextQuestionId": "q3"}, order=0, text="Yes"),
        make_answer("a2", "q1", "plain text", order=1, text="No"),
        make_answer("a3", "q2", {"resultBucketKey": "cold-lead"}, text="Later"),
        make_answer("a4", "q2", "", order=1, text="Continue"),
        make_answer("a5", "q3", {"resultBucketKey": "hot-lead"}, text="Now"),
        make_answer("a6", "q4", {"nextQuestionId": "q1"}, text="Loop"),
        make_answer("a7", "q4", {"resultBucketKey": "warm-lead"}, order=1, text="Done"),
    ]


@pytest.fixture
def complete_director():
    director = {f"field{i}": i for i in range(35)}
    director.update({"entryDuration": 2.8, "parallaxIntensity": 0, "scaleOnScroll": False})
    return director
