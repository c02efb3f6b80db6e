"""Re-classify extracted syllabus events with Google Gemini.

The classifier only proposes corrections (type, title, description keyed by
date); merging them into the event list is the parser's job. Any failure here
is raised to the caller, which decides to carry on without the corrections.

Requires a Gemini API key (see ``ParserConfig.gemini_api_key``).
"""
import json
import logging
from datetime import date
from typing import Iterable, List, Optional, Sequence

from models import EVENT_TYPES, EventCorrection, SyllabusEvent

logger = logging.getLogger(__name__)


def build_classification_prompt(events: Sequence[SyllabusEvent], context: str) -> str:
    events_text = "\n".join(
        f"{event.date.isoformat()}: {event.original_text or event.title}" for event in events
    )
    return f"""Analyze this syllabus content and classify each event. Return a JSON array with objects containing:
- date (YYYY-MM-DD format)
- type (assignment|exam|reading|other)
- title (clear, concise title, do not include the date)
- description (brief description)

Events to classify:
{events_text}

Full syllabus context:
{context}

Return only valid JSON array, no other text."""


def _strip_code_fences(text: str) -> str:
    # Models like to wrap JSON in markdown even when told not to
    if "```json" in text:
        return text.split("```json")[1].split("```")[0]
    if "```" in text:
        return text.split("```")[1].split("```")[0]
    return text


def _parse_record(record) -> Optional[EventCorrection]:
    if not isinstance(record, dict):
        return None
    event_type = record.get("type")
    if not isinstance(event_type, str) or event_type.strip().lower() not in EVENT_TYPES:
        return None
    try:
        corrected_date = date.fromisoformat(str(record.get("date", "")).strip()[:10])
    except ValueError:
        return None

    title = record.get("title")
    description = record.get("description")
    return EventCorrection(
        date=corrected_date,
        type=event_type.strip().lower(),
        title=title.strip() if isinstance(title, str) else None,
        description=description.strip() if isinstance(description, str) else None,
    )


def parse_corrections(raw: str) -> List[EventCorrection]:
    """Parse the model output into validated corrections.

    Raises ValueError when the response is empty or not a JSON array. Records
    with an unknown type or an unreadable date are dropped.
    """
    if not raw or not raw.strip():
        raise ValueError("Empty classification response")

    data = json.loads(_strip_code_fences(raw).strip())
    if not isinstance(data, list):
        raise ValueError("Classification response is not a JSON array")

    corrections = []
    for record in data:
        correction = _parse_record(record)
        if correction is None:
            logger.debug("Ignoring invalid classification record: %r", record)
            continue
        corrections.append(correction)
    return corrections


class GeminiClassifier:
    """Classification service backed by ``google.generativeai``."""

    def __init__(
        self,
        api_key: str,
        model_name: str = "gemini-2.5-flash",
        fallback_models: Iterable[str] = (),
        timeout: float = 10.0,
    ):
        if not api_key:
            raise ValueError("A Gemini API key is required")
        self.api_key = api_key
        self.model_names = [model_name] + [m for m in fallback_models if m != model_name]
        self.timeout = timeout

    def _generate(self, prompt: str) -> str:
        import google.generativeai as genai

        genai.configure(api_key=self.api_key)

        last_error = None
        for model_name in self.model_names:
            try:
                model = genai.GenerativeModel(model_name)
                response = model.generate_content(
                    prompt,
                    generation_config={"temperature": 0.1, "max_output_tokens": 1500},
                    request_options={"timeout": self.timeout},
                )
                logger.debug("Classification served by %s", model_name)
                return response.text
            except Exception as exc:
                logger.info("Model %s failed: %s", model_name, exc)
                last_error = exc
        raise RuntimeError(f"All Gemini models failed: {last_error}")

    def classify(self, events: Sequence[SyllabusEvent], context: str) -> List[EventCorrection]:
        prompt = build_classification_prompt(events, context)
        return parse_corrections(self._generate(prompt))
