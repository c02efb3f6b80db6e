"""Turn raw syllabus text into a sorted, de-duplicated list of calendar events.

Each line is scanned for date phrases with ``dateparser``; every date mention
that falls inside the academic window becomes an event whose type comes from
keyword heuristics and whose title is the line with the date stripped out.
When a classifier is configured (Gemini, see ``gemini_classifier``) its
corrections are merged in before duplicates are dropped.
"""
import logging
import re
from dataclasses import replace
from datetime import date, datetime, timedelta
from typing import List, Optional, Sequence, Tuple

import dateparser
import dateparser.search
from dateutil.relativedelta import relativedelta

from config import ParserConfig
from gemini_classifier import GeminiClassifier
from models import EVENT_TYPES, TYPE_FALLBACK_TITLES, EventCorrection, ParseResult, SyllabusEvent

logger = logging.getLogger(__name__)

PAST_WINDOW = relativedelta(months=6)
FUTURE_WINDOW = relativedelta(months=12)
MAX_DESCRIPTION_LENGTH = 100
MIN_TITLE_LENGTH = 5

# Checked in this order, first match wins
TYPE_PATTERNS = (
    ("assignment", re.compile(r"\b(assignment|homework|hw|project|paper|essay|report|submit|due)\b", re.I)),
    ("exam", re.compile(r"\b(exam|test|quiz|midterm|final|assessment)\b", re.I)),
    ("reading", re.compile(r"\b(reading|read|chapter|pages?|textbook|article|book)\b", re.I)),
)

_MONTHS = (
    r"(?:january|february|march|april|may|june|july|august|september|october|november|december"
    r"|jan|feb|mar|apr|jun|jul|aug|sept|sep|oct|nov|dec)"
)
DATE_PHRASE_PATTERNS = (
    re.compile(rf"\b{_MONTHS}\.?\s+\d{{1,2}}(?:st|nd|rd|th)?(?:,?\s+\d{{4}})?\b", re.I),
    re.compile(r"\b\d{1,2}/\d{1,2}(?:/\d{2,4})?\b"),
    re.compile(r"\b\d{1,2}-\d{1,2}-\d{2,4}\b"),
)
SEPARATORS = re.compile(r"[-–—:]+")
EMPTY_BRACKETS = re.compile(r"\(\s*\)|\[\s*\]")
ORDINAL_SUFFIX = re.compile(r"(\d)(?:st|nd|rd|th)\b", re.I)


def normalize_text(text: str) -> List[str]:
    """Collapse whitespace inside each line and drop the empty lines.

    Line breaks are kept: collapsing them too would leave a single line for
    the whole document.
    """
    lines = []
    for raw_line in text.splitlines():
        line = re.sub(r"\s+", " ", raw_line).strip()
        if line:
            lines.append(line)
    return lines


def _date_settings(now: datetime) -> dict:
    return {
        "RELATIVE_BASE": now,
        "PREFER_DATES_FROM": "current_period",
        "DATE_ORDER": "MDY",
        # Bare numbers like "Homework 3" are not dates
        "REQUIRE_PARTS": ["day", "month"],
    }


def _date_spans(line: str) -> List[str]:
    """Explicit date phrases in reading order, overlapping matches dropped."""
    spans = []
    for pattern in DATE_PHRASE_PATTERNS:
        for match in pattern.finditer(line):
            if not any(match.start() < end and start < match.end() for start, end, _ in spans):
                spans.append((match.start(), match.end(), match.group(0)))
    return [text for _, _, text in sorted(spans)]


def _clean_span(span: str) -> str:
    span = ORDINAL_SUFFIX.sub(r"\1", span).replace(".", " ")
    return re.sub(r"\bsept\b", "sep", span, flags=re.I)


def find_dates(line: str, now: datetime) -> List[Tuple[str, datetime]]:
    """Return (matched_text, datetime) pairs for the date mentions in a line.

    Explicit phrases ("Oct 7", "10/03/2024", "Nov. 3rd") are parsed one by one
    so a number in front of them ("Quiz 2") cannot leak into the date. Lines
    without any such phrase go through ``search_dates``.
    """
    settings = _date_settings(now)
    spans = _date_spans(line)
    if not spans:
        found = dateparser.search.search_dates(line, languages=["en"], settings=settings)
        return found or []

    found = []
    for span in spans:
        parsed = dateparser.parse(_clean_span(span), languages=["en"], settings=settings)
        if parsed is None:
            logger.debug("Could not parse date phrase %r", span)
            continue
        found.append((span, parsed))
    return found


def is_valid_academic_date(value: date, now: datetime) -> bool:
    today = now.date() if isinstance(now, datetime) else now
    return today - PAST_WINDOW <= value <= today + FUTURE_WINDOW


def classify_event_type(text: str) -> str:
    for event_type, pattern in TYPE_PATTERNS:
        if pattern.search(text):
            return event_type
    return "other"


def extract_event_title(line: str, event_type: str) -> str:
    title = line
    for pattern in DATE_PHRASE_PATTERNS:
        title = pattern.sub(" ", title)
    title = SEPARATORS.sub(" ", title)
    title = EMPTY_BRACKETS.sub(" ", title)
    title = re.sub(r"\s+", " ", title)
    title = re.sub(r"\s+([,;.])", r"\1", title).strip(" ,;")

    if len(title) < MIN_TITLE_LENGTH:
        return TYPE_FALLBACK_TITLES.get(event_type, "Event")
    return title[0].upper() + title[1:]


def truncate_description(line: str) -> str:
    if len(line) > MAX_DESCRIPTION_LENGTH:
        return line[:MAX_DESCRIPTION_LENGTH] + "..."
    return line


def extract_events_from_line(line: str, now: datetime) -> List[SyllabusEvent]:
    events = []
    for match_text, found_dt in find_dates(line, now):
        event_date = found_dt.date()
        if not is_valid_academic_date(event_date, now):
            logger.debug("Skipping %r (%s): outside academic window", match_text, event_date)
            continue

        event_type = classify_event_type(line)
        events.append(
            SyllabusEvent(
                title=extract_event_title(line, event_type),
                date=event_date,
                type=event_type,
                description=truncate_description(line),
                original_text=line,
            )
        )
    return events


def apply_corrections(events: List[SyllabusEvent], corrections: Sequence[EventCorrection]) -> int:
    """Merge classifier corrections into ``events`` in place, matching by day.

    Only type, title and description change; ids and dates never do.
    Returns the number of events updated.
    """
    updated = 0
    for correction in corrections:
        if not isinstance(correction, EventCorrection) or correction.type not in EVENT_TYPES:
            continue
        index = next((i for i, event in enumerate(events) if event.date == correction.date), None)
        if index is None:
            continue

        changes = {"type": correction.type}
        if correction.title and len(correction.title) > 3:
            changes["title"] = correction.title
        if correction.description and len(correction.description) > 5:
            changes["description"] = correction.description
        events[index] = replace(events[index], **changes)
        updated += 1
    return updated


def is_duplicate(a: SyllabusEvent, b: SyllabusEvent) -> bool:
    if abs(a.date - b.date) >= timedelta(days=1):
        return False
    title_a, title_b = a.title.lower(), b.title.lower()
    return title_a in title_b or title_b in title_a


def remove_duplicates(events: Sequence[SyllabusEvent]) -> List[SyllabusEvent]:
    """Keep the first of each group of same-day events with overlapping titles."""
    unique: List[SyllabusEvent] = []
    for event in events:
        if not any(is_duplicate(existing, event) for existing in unique):
            unique.append(event)
    return unique


def sort_events(events: Sequence[SyllabusEvent]) -> List[SyllabusEvent]:
    # sorted() is stable, same-day events keep extraction order
    return sorted(events, key=lambda event: event.date)


class SyllabusParser:
    """Runs the whole pipeline for one document at a time.

    A classifier is created from ``config`` when it carries a Gemini key; pass
    ``classifier`` explicitly to use another implementation (anything with a
    ``classify(events, context)`` method).
    """

    def __init__(self, config: Optional[ParserConfig] = None, classifier=None):
        self.config = config or ParserConfig()
        if classifier is None and self.config.enhancement_enabled:
            classifier = GeminiClassifier(
                self.config.gemini_api_key,
                model_name=self.config.gemini_model,
                fallback_models=self.config.gemini_fallback_models,
                timeout=self.config.enhancement_timeout,
            )
        self.classifier = classifier

    def enhance(self, events: List[SyllabusEvent], full_text: str) -> None:
        if self.classifier is None or not events:
            return
        context = full_text[: self.config.context_chars]
        try:
            corrections = self.classifier.classify(events, context)
            updated = apply_corrections(events, corrections)
        except Exception as exc:
            logger.warning("Event classification failed, using keyword classification: %s", exc)
            return
        logger.info("Classifier updated %d of %d events", updated, len(events))

    def parse(self, text: str, now: Optional[datetime] = None) -> ParseResult:
        try:
            now = now or datetime.now()
            lines = normalize_text(text)

            events: List[SyllabusEvent] = []
            for line in lines:
                events.extend(extract_events_from_line(line, now))

            self.enhance(events, "\n".join(lines))

            unique_events = sort_events(remove_duplicates(events))
            logger.info("Extracted %d events (%d before de-duplication)", len(unique_events), len(events))
            return ParseResult(events=unique_events, success=True)
        except Exception as exc:
            logger.exception("Parsing error")
            return ParseResult(events=[], success=False, error=str(exc) or type(exc).__name__)


def parse_syllabus_text(text: str, config: Optional[ParserConfig] = None) -> ParseResult:
    return SyllabusParser(config).parse(text)
