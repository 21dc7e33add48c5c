"""Tests for pulling JSON out of model replies."""

import pytest

from lessonlab.errors import ContentParseError
from lessonlab.schemas.lessons import LessonContent, VerificationVerdict
from lessonlab.services.json_extract import extract_json_object, parse_model

from tests.fakes import lesson_json


def test_plain_object():
    assert extract_json_object('{"status": "PASS"}') == {"status": "PASS"}


def test_code_fence_and_prose():
    text = 'Here is the lesson:\n```json\n{"a": 1, "b": {"c": 2}}\n```\nHope this helps!'
    assert extract_json_object(text) == {"a": 1, "b": {"c": 2}}


def test_braces_inside_strings():
    text = 'Result: {"question": "What is {x} in \\"{y}\\"?", "n": 1} done'
    assert extract_json_object(text) == {"question": 'What is {x} in "{y}"?', "n": 1}


def test_skips_candidates_that_do_not_decode():
    text = "Use {placeholders} like this. {\"ok\": true}"
    assert extract_json_object(text) == {"ok": True}


def test_skips_unclosed_brace_before_payload():
    text = 'I used the { symbol in my notes. {"status": "PASS", "issues": []}'
    assert extract_json_object(text) == {"status": "PASS", "issues": []}


def test_unclosed_brace_in_stage_reply_still_parses():
    verdict = parse_model('Careful: the { key opens a set.\n{"status": "FAIL", "issues": ["Q2"]}', VerificationVerdict)
    assert verdict.status == "FAIL"
    assert verdict.issues == ["Q2"]


@pytest.mark.parametrize("text", [None, "", "no json here", "{unclosed", "[1, 2, 3]"])
def test_no_object_raises(text):
    with pytest.raises(ContentParseError):
        extract_json_object(text)


def test_parse_model_validates_lesson():
    lesson = parse_model(f"Sure!\n{lesson_json('Plants')}", LessonContent)
    assert lesson.topic == "Plants"
    assert len(lesson.practice) == 5
    assert len(lesson.test) == 10


def test_parse_model_reports_problems():
    with pytest.raises(ContentParseError) as exc_info:
        parse_model('{"topic": "Plants", "practice": []}', LessonContent)
    assert any(problem.startswith("explanation") for problem in exc_info.value.problems)


def test_verdict_normalization():
    verdict = parse_model('{"status": "fail", "issues": ["Q1 is ambiguous", 3]}', VerificationVerdict)
    assert verdict.status == "FAIL"
    assert verdict.issues == ["Q1 is ambiguous", "3"]
    assert not verdict.passed
