"""Calendar helpers: Google Calendar push and .ics export.

Google Calendar calls are made with an OAuth access token obtained by the
browser; this module never runs the OAuth flow itself.

ICS export uses the `icalendar` package. Every event is placed at a fixed
time of day with a fixed duration, since syllabi rarely say when something is
due within the day.
"""
import logging
from datetime import date, datetime, time, timedelta, timezone as dt_timezone
from typing import Dict, Iterable, List

from google.oauth2.credentials import Credentials
from googleapiclient.discovery import build
from icalendar import Calendar, Event

from models import SyllabusEvent

logger = logging.getLogger(__name__)

DEFAULT_TIMEZONE = "America/New_York"
DEFAULT_START_HOUR = 9
DEFAULT_DURATION_MINUTES = 60
ICS_UID_SUFFIX = "@syllabuscalendar.com"
ICS_FILENAME = "syllabus-calendar.ics"

# Google Calendar event color ids
TYPE_COLOR_IDS = {
    "assignment": "9",  # blue
    "exam": "11",  # red
    "reading": "10",  # green
    "other": "8",  # gray
}


def get_color_id(event_type: str) -> str:
    return TYPE_COLOR_IDS.get(event_type, TYPE_COLOR_IDS["other"])


def event_time_range(
    event_date: date,
    start_hour: int = DEFAULT_START_HOUR,
    duration_minutes: int = DEFAULT_DURATION_MINUTES,
):
    start = datetime.combine(event_date, time(hour=start_hour))
    return start, start + timedelta(minutes=duration_minutes)


def create_google_service_from_token(access_token: str):
    """Create a Google Calendar API service for a browser-supplied access token."""
    if not access_token:
        raise ValueError("Not authenticated. Please sign in with Google first.")
    credentials = Credentials(token=access_token)
    return build("calendar", "v3", credentials=credentials, cache_discovery=False)


def build_google_event_body(
    event: SyllabusEvent,
    timezone: str = DEFAULT_TIMEZONE,
    start_hour: int = DEFAULT_START_HOUR,
    duration_minutes: int = DEFAULT_DURATION_MINUTES,
) -> Dict:
    start_dt, end_dt = event_time_range(event.date, start_hour, duration_minutes)
    return {
        "summary": event.title,
        "description": event.description or event.original_text or "",
        "start": {
            "dateTime": start_dt.strftime("%Y-%m-%dT%H:%M:%S"),
            "timeZone": timezone,
        },
        "end": {
            "dateTime": end_dt.strftime("%Y-%m-%dT%H:%M:%S"),
            "timeZone": timezone,
        },
        "colorId": get_color_id(event.type),
    }


def create_google_event(service, event: SyllabusEvent, calendar_id: str = "primary", **body_options) -> Dict:
    """Insert one event into Google Calendar and return the created resource."""
    if not event.title:
        raise ValueError("Event title is required")
    body = build_google_event_body(event, **body_options)
    return service.events().insert(calendarId=calendar_id, body=body).execute()


def sync_events_to_google(
    service,
    events: Iterable[SyllabusEvent],
    calendar_id: str = "primary",
    **body_options,
) -> List[Dict]:
    """Push every event, collecting a per-event result instead of stopping at the first failure."""
    results = []
    for event in events:
        try:
            created = create_google_event(service, event, calendar_id=calendar_id, **body_options)
            results.append({"eventId": event.id, "googleEventId": created.get("id"), "success": True})
        except Exception as e:
            logger.error("Failed to create event %s: %s", event.id, e)
            results.append({"eventId": event.id, "success": False, "error": str(e)})
    return results


def build_ics_calendar(
    events: Iterable[SyllabusEvent],
    start_hour: int = DEFAULT_START_HOUR,
    duration_minutes: int = DEFAULT_DURATION_MINUTES,
) -> Calendar:
    cal = Calendar()
    cal.add("prodid", "-//Syllabus Calendar//EN")
    cal.add("version", "2.0")
    cal.add("calscale", "GREGORIAN")

    stamp = datetime.now(dt_timezone.utc).replace(microsecond=0)
    for ev in events:
        start_dt, end_dt = event_time_range(ev.date, start_hour, duration_minutes)
        ical_ev = Event()
        ical_ev.add("uid", f"{ev.id}{ICS_UID_SUFFIX}")
        ical_ev.add("dtstamp", stamp)
        ical_ev.add("dtstart", start_dt)
        ical_ev.add("dtend", end_dt)
        ical_ev.add("summary", ev.title)
        ical_ev.add("description", ev.description or "")
        ical_ev.add("categories", [ev.type.upper()])
        cal.add_component(ical_ev)
    return cal


def events_to_ics(events: Iterable[SyllabusEvent], **options) -> bytes:
    return build_ics_calendar(events, **options).to_ical()


def export_events_to_ics(events: Iterable[SyllabusEvent], path: str = ICS_FILENAME, **options) -> str:
    """Write events to an .ics file. Returns the path written."""
    with open(path, "wb") as f:
        f.write(events_to_ics(events, **options))
    return path
