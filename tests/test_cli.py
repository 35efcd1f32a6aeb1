import json
import sys

import pytest

import run


def test_tree_command_reports_cycles_and_orphans(tmp_path, monkeypatch, capsys):
    assessment = {
        "config": {"id": "cfg1", "slug": "gtm-fit", "entryQuestionId": "q1"},
        "questions": [
            {"id": "q1", "order": 0, "questionText": "Start"},
            {"id": "q2", "order": 1, "questionText": "Middle"},
            {"id": "q3", "order": 2, "questionText": "Forgotten"},
        ],
        "answers": [
            {"id": "a1", "questionId": "q1", "answerText": "Go", "answerValue": '{"nextQuestionId": "q2"}'},
            {"id": "a2", "questionId": "q2", "answerText": "Back", "answerValue": '{"nextQuestionId": "q1"}'},
        ],
    }
    path = tmp_path / "assessment.json"
    path.write_text(json.dumps(assessment))
    monkeypatch.setattr(sys, "argv", ["run.py", "--config", str(tmp_path / "none.yaml"), "tree", str(path)])

    run.main()

    out = capsys.readouterr().out
    assert "Questions: 3  Edges: 2  Reachable: 2" in out
    assert "cycle: q2 -> q1 (Back)" in out
    assert "orphaned: q3 Forgotten" in out


def test_unknown_command_exits(monkeypatch):
    monkeypatch.setattr(sys, "argv", ["run.py", "publish"])
    with pytest.raises(SystemExit):
        run.main()
