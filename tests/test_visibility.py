from revparty.assessments.visibility import is_question_visible, parse_condition, parse_routing

from conftest import make_question


def test_unconditional_question_is_visible(branching_questions):
    assert is_question_visible(branching_questions[0], {}, branching_questions)


def test_condition_matches_referenced_answer(branching_questions):
    q3 = branching_questions[2]
    assert not is_question_visible(q3, {}, branching_questions)
    assert not is_question_visible(q3, {"q1": "a2"}, branching_questions)
    assert is_question_visible(q3, {"q1": "a1"}, branching_questions)


def test_malformed_condition_fails_open(branching_questions):
    for raw in ("{not json", '{"questionId": "q1"}', '{"questionId": "", "answerId": "a1"}', "[]"):
        question = make_question("qx", 9, raw_condition=raw)
        assert parse_condition(question) is None
        assert is_question_visible(question, {}, branching_questions)


def test_condition_on_missing_question_hides(branching_questions):
    question = make_question("qx", 9, condition={"questionId": "deleted", "answerId": "a1"})
    assert not is_question_visible(question, {"deleted": "a1"}, branching_questions)


def test_parse_routing_variants():
    assert parse_routing('{"nextQuestionId": "q2"}').next_question_id == "q2"
    assert parse_routing('{"resultBucketKey": "hot"}').result_bucket_key == "hot"

    for value in ("", "plain text", None, "[1, 2]"):
        routing = parse_routing(value)
        assert routing.next_question_id is None
        assert routing.result_bucket_key is None


def test_parse_routing_accepts_numeric_ids():
    routing = parse_routing('{"nextQuestionId": 5, "resultBucketKey": "hot"}')
    assert routing.next_question_id == "5"
    assert routing.result_bucket_key == "hot"
