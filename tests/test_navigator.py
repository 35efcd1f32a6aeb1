import asyncio
import json

import httpx
import pytest

from revparty.assessments.client import AssessmentApiClient, SubmissionError
from revparty.assessments.navigator import (
    AssessmentNavigator,
    NavigatorState,
    bounded_scan,
    build_result_url,
    resolve_entry_index,
)
from revparty.assessments.session import session_key
from revparty.utils.browser import MemoryStore, RecordingLocation

from conftest import make_answer, make_question


def make_navigator(slug="gtm-fit", api=None):
    announced, notified = [], []
    nav = AssessmentNavigator(
        slug,
        api=api,
        store=MemoryStore(),
        location=RecordingLocation(),
        announce=announced.append,
        notify=lambda title, message: notified.append(title),
    )
    return nav, announced, notified


def click(nav, question_id, answer_id):
    return asyncio.run(nav.handle_answer_click(question_id, answer_id))


# -------------------------------------------------------------------------
# Pure helpers
# -------------------------------------------------------------------------

def test_bounded_scan_yields_each_index_once():
    assert list(bounded_scan(0, 3)) == [0, 1, 2]
    assert list(bounded_scan(2, 3)) == [2]
    assert list(bounded_scan(5, 3)) == []


def test_build_result_url():
    assert build_result_url("/resources", "gtm-fit", "hot") == "/resources/gtm-fit/hot"
    assert build_result_url("/resources/", "gtm-fit", "hot", {"1": "a"}) == "/resources/gtm-fit/hot?q1=a"


def test_entry_falls_through_to_first_visible(tree_config, branching_questions):
    config = tree_config.model_copy(update={"entry_question_id": "q3"})
    assert resolve_entry_index(config, branching_questions, {}) == 0
    assert resolve_entry_index(config, branching_questions, {"q1": "a1"}) == 2


# -------------------------------------------------------------------------
# Decision-tree flows
# -------------------------------------------------------------------------

def test_decision_tree_redirects_without_network(tree_config, branching_questions, branching_answers):
    nav, announced, _ = make_navigator()
    nav.start(tree_config, branching_questions, branching_answers)
    assert nav.current_question_id == "q1"
    assert nav.session_id == nav.store.get(session_key("gtm-fit"))

    click(nav, "q1", "a1")
    assert nav.current_question_id == "q3"

    state = click(nav, "q3", "a5")
    assert state == NavigatorState.TERMINATED
    assert nav.bucket == "hot-lead"
    assert nav.location.history == ["/resources/gtm-fit/hot-lead?qq1=a1&qq3=a5"]
    assert "Selected answer: Now." in announced
    assert "Navigating to question: Question q3" in announced


def test_plain_answer_moves_to_next_visible(tree_config, branching_questions, branching_answers):
    nav, _, _ = make_navigator()
    nav.start(tree_config, branching_questions, branching_answers)

    click(nav, "q1", "a2")
    assert nav.current_question_id == "q2"
    click(nav, "q2", "a4")
    # q3 stays hidden because q1 was not answered with a1
    assert nav.current_question_id == "q4"


def test_broken_next_question_continues_in_order(tree_config, branching_questions, branching_answers):
    answers = branching_answers + [make_answer("ghost", "q1", {"nextQuestionId": "missing"})]
    nav, _, _ = make_navigator()
    nav.start(tree_config, branching_questions, answers)

    click(nav, "q1", "ghost")
    assert nav.current_question_id == "q2"
    assert nav.state == NavigatorState.AWAITING_ANSWER


def test_dead_end_resets_to_entry(tree_config, branching_questions, branching_answers):
    answers = branching_answers + [make_answer("a8", "q4", "", order=2)]
    nav, _, notified = make_navigator()
    nav.start(tree_config, branching_questions, answers)

    click(nav, "q1", "a2")
    click(nav, "q2", "a4")
    click(nav, "q4", "a8")

    assert NavigatorState.RESET in nav.transitions
    assert nav.state == NavigatorState.AWAITING_ANSWER
    assert nav.current_question_id == "q1"
    assert nav.answers == {}
    assert notified == ["Assessment path incomplete"]
    assert nav.location.history == []


def test_unknown_answer_is_ignored(tree_config, branching_questions, branching_answers):
    nav, _, _ = make_navigator()
    nav.start(tree_config, branching_questions, branching_answers)
    click(nav, "q1", "nope")
    assert nav.current_question_id == "q1"
    assert nav.answers == {}


def test_unknown_answer_leaves_answers_untouched(tree_config, branching_questions, branching_answers):
    nav, _, _ = make_navigator()
    nav.start(tree_config, branching_questions, branching_answers)
    click(nav, "q1", "a1")
    assert nav.current_question_id == "q3"

    click(nav, "q1", "nope")

    assert nav.answers == {"q1": "a1"}
    assert nav.current_question_id == "q3"
    assert nav.state == NavigatorState.AWAITING_ANSWER


def test_cyclic_routing_always_lands_on_a_question(tree_config, branching_questions, branching_answers):
    nav, _, _ = make_navigator()
    nav.start(tree_config, branching_questions, branching_answers)

    for _ in range(5):
        click(nav, "q1", "a2")
        assert nav.current_question_id == "q2"
        click(nav, "q2", "a4")
        assert nav.current_question_id == "q4"
        # a6 routes q4 back to q1
        click(nav, "q4", "a6")
        assert nav.current_question_id == "q1"
        assert nav.state == NavigatorState.AWAITING_ANSWER

    click(nav, "q1", "a1")
    click(nav, "q3", "a5")
    assert nav.state == NavigatorState.TERMINATED
    assert nav.bucket == "hot-lead"


def test_revalidation_dead_end_resets(tree_config):
    questions = [
        make_question("q1", 0),
        make_question("q2", 1, condition={"questionId": "q1", "answerId": "yes"}),
    ]
    answers = [
        make_answer("yes", "q1", "", order=0),
        make_answer("no", "q1", "", order=1),
        make_answer("done", "q2", {"resultBucketKey": "fit"}),
    ]
    nav, _, notified = make_navigator()
    nav.start(tree_config, questions, answers)
    click(nav, "q1", "yes")
    assert nav.current_question_id == "q2"

    asyncio.run(nav.update_answers({"q1": "no"}))

    assert NavigatorState.RESET in nav.transitions
    assert nav.state == NavigatorState.AWAITING_ANSWER
    assert nav.current_question_id == "q1"
    assert nav.answers == {}
    assert notified == ["Assessment path incomplete"]
    assert nav.location.history == []


def test_revalidation_skips_hidden_question(tree_config, branching_questions, branching_answers):
    nav, _, _ = make_navigator()
    nav.start(tree_config, branching_questions, branching_answers)
    click(nav, "q1", "a1")
    assert nav.current_question_id == "q3"

    asyncio.run(nav.update_answers({"q1": "a2"}))
    assert nav.current_question_id == "q4"


def test_progress_and_go_back(tree_config, branching_questions, branching_answers):
    nav, _, _ = make_navigator()
    nav.start(tree_config, branching_questions, branching_answers)
    assert nav.progress() == (1, 4)

    click(nav, "q1", "a1")
    assert nav.progress() == (3, 4)

    assert nav.go_back() == "q1"
    assert nav.current_question_id == "q1"
    assert nav.go_back() is None


def test_answer_options_prefer_routing_text(tree_config):
    questions = [make_question("q1", 0)]
    answers = [
        make_answer("b", "q1", {"nextQuestionId": "q1", "text": "Custom", "description": "Why"}, order=1),
        make_answer("a", "q1", "", order=0, text="Plain"),
    ]
    nav, _, _ = make_navigator()
    nav.start(tree_config, questions, answers)

    options = nav.answer_options()
    assert [(text, desc) for _, text, desc in options] == [("Plain", None), ("Custom", "Why")]


def test_no_visible_questions_is_not_found(tree_config):
    nav, _, _ = make_navigator()
    assert nav.start(tree_config, [], []) == NavigatorState.NOT_FOUND

    hidden = [make_question("q1", 0, condition={"questionId": "gone", "answerId": "x"})]
    nav, _, _ = make_navigator()
    assert nav.start(tree_config, hidden, []) == NavigatorState.NOT_FOUND


# -------------------------------------------------------------------------
# Points flows
# -------------------------------------------------------------------------

POINT_QUESTIONS = [make_question("q1", 0), make_question("q2", 1)]
POINT_ANSWERS = [make_answer("p1", "q1", points=3), make_answer("p2", "q2", points=7)]


class SubmitHandler:
    def __init__(self, statuses):
        self.statuses = list(statuses)
        self.requests = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        status = self.statuses.pop(0) if self.statuses else 200
        if status != 200:
            return httpx.Response(status, json={"error": "boom"})
        return httpx.Response(200, json={"bucket": "qualified"})


def points_navigator(statuses=()):
    handler = SubmitHandler(statuses)
    api = AssessmentApiClient("https://api.example", transport=httpx.MockTransport(handler))
    nav, announced, notified = make_navigator("pipeline-score", api=api)
    return nav, handler, notified


def test_points_assessment_submits_on_last_question(points_config):
    nav, handler, _ = points_navigator()
    nav.start(points_config, POINT_QUESTIONS, POINT_ANSWERS)
    session_id = nav.session_id

    click(nav, "q1", "p1")
    state = click(nav, "q2", "p2")

    assert state == NavigatorState.TERMINATED
    assert nav.transitions[-2:] == [NavigatorState.SUBMITTING, NavigatorState.TERMINATED]
    assert nav.location.history == ["/resources/pipeline-score/qualified"]
    assert nav.store.get(session_key("pipeline-score")) is None

    request = handler.requests[0]
    assert request.url.path == f"/api/assessments/{session_id}/submit"
    assert json.loads(request.content) == {"answers": {"q1": "p1", "q2": "p2"}}


def test_points_submission_failure_then_retry(points_config):
    nav, handler, notified = points_navigator(statuses=[500])
    nav.start(points_config, POINT_QUESTIONS, POINT_ANSWERS)
    click(nav, "q1", "p1")

    with pytest.raises(SubmissionError) as excinfo:
        click(nav, "q2", "p2")
    assert excinfo.value.status_code == 500
    assert nav.state == NavigatorState.SUBMISSION_FAILED
    assert notified == ["Submission Error"]
    assert nav.answers == {"q1": "p1", "q2": "p2"}

    assert asyncio.run(nav.retry_submission()) == NavigatorState.TERMINATED
    assert len(handler.requests) == 2


def test_clicks_are_ignored_once_terminated(points_config):
    nav, handler, _ = points_navigator()
    nav.start(points_config, POINT_QUESTIONS, POINT_ANSWERS)
    click(nav, "q1", "p1")
    click(nav, "q2", "p2")

    assert nav.is_busy
    click(nav, "q2", "p2")
    assert len(handler.requests) == 1
    assert len(nav.location.history) == 1
