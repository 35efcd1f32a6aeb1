from typing import List

from revparty.utils.parse_utils import ParseError, ParseOk, extract_json_from_text, parse_json_as
from revparty.utils.schema_validator import validate_llm_array
from revparty.utils.schemas import AnswerRouting, AuditIssue


def test_extract_json_from_prose():
    parsed, err = extract_json_from_text('Sure!\n```json\n[{"a": 1}]\n```')
    assert err is None
    assert parsed == [{"a": 1}]

    parsed, err = extract_json_from_text("nothing here")
    assert parsed is None
    assert err == "no JSON found"


def test_parse_json_as_strict_and_lenient():
    ok = parse_json_as('{"nextQuestionId": "q2"}', AnswerRouting)
    assert isinstance(ok, ParseOk)
    assert ok.value.next_question_id == "q2"

    assert isinstance(parse_json_as('prefix {"a": 1}', dict), ParseError)
    assert parse_json_as('prefix {"a": 1}', dict, lenient=True) == ParseOk({"a": 1})


def test_parse_json_as_never_raises():
    for text in (None, "", "   ", "{", "42"):
        assert isinstance(parse_json_as(text, List[int]), ParseError)


def test_validate_llm_array_drops_invalid_items():
    text = '[{"sceneIndex": 0, "issue": "ok", "severity": "WARNING"}, {"issue": "no index"}, ' \
           '{"sceneIndex": 1, "issue": "bad", "severity": "FATAL"}]'
    issues = validate_llm_array(text, AuditIssue)
    assert [(i.scene_index, i.severity) for i in issues] == [(0, "WARNING")]


def test_validate_llm_array_non_array_is_empty():
    assert validate_llm_array('{"sceneIndex": 0}', AuditIssue) == []
    assert validate_llm_array("not json", AuditIssue) == []
