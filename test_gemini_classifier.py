"""Tests for Gemini prompt building and response validation (no network)."""
from datetime import date

import pytest

from gemini_classifier import GeminiClassifier, build_classification_prompt, parse_corrections
from models import SyllabusEvent


def test_prompt_lists_events_and_context():
    events = [
        SyllabusEvent(title="Homework 1 due", date=date(2024, 9, 20), original_text="Homework 1 due Sept 20"),
        SyllabusEvent(title="Midterm", date=date(2024, 10, 15)),
    ]

    prompt = build_classification_prompt(events, "PSYC 101 syllabus")

    assert "2024-09-20: Homework 1 due Sept 20" in prompt
    assert "2024-10-15: Midterm" in prompt
    assert "PSYC 101 syllabus" in prompt


def test_parse_corrections_accepts_fenced_json():
    raw = """```json
[{"date": "2024-10-15", "type": "exam", "title": "Midterm Exam", "description": "Covers units 1-3"}]
```"""

    corrections = parse_corrections(raw)

    assert len(corrections) == 1
    assert corrections[0].date == date(2024, 10, 15)
    assert corrections[0].type == "exam"
    assert corrections[0].title == "Midterm Exam"


def test_parse_corrections_drops_invalid_records():
    raw = """[
        {"date": "2024-10-15", "type": "lecture", "title": "Lecture 5"},
        {"date": "not a date", "type": "exam"},
        {"date": "2024-10-20", "type": "Reading"},
        "garbage"
    ]"""

    corrections = parse_corrections(raw)

    assert [(c.date, c.type, c.title) for c in corrections] == [(date(2024, 10, 20), "reading", None)]


@pytest.mark.parametrize("raw", ["", "   ", '{"date": "2024-10-15"}'])
def test_parse_corrections_rejects_non_list(raw):
    with pytest.raises(ValueError):
        parse_corrections(raw)


def test_parse_corrections_rejects_malformed_json():
    with pytest.raises(ValueError):
        parse_corrections("Sure! Here are your events: [")


def test_classifier_requires_key():
    with pytest.raises(ValueError):
        GeminiClassifier("")


def test_classify_parses_generated_text(monkeypatch):
    classifier = GeminiClassifier("test-key", fallback_models=["gemini-2.0-flash"])
    prompts = []

    def fake_generate(prompt):
        prompts.append(prompt)
        return '[{"date": "2024-09-20", "type": "assignment", "title": "Problem Set 1"}]'

    monkeypatch.setattr(classifier, "_generate", fake_generate)
    events = [SyllabusEvent(title="PS1", date=date(2024, 9, 20), original_text="PS1 Sept 20")]

    corrections = classifier.classify(events, "context")

    assert classifier.model_names == ["gemini-2.5-flash", "gemini-2.0-flash"]
    assert corrections[0].title == "Problem Set 1"
    assert "2024-09-20: PS1 Sept 20" in prompts[0]
