"""Flask web application: parse an uploaded syllabus, export the events to .ics or Google Calendar."""
import logging

from dotenv import load_dotenv
from flask import Flask, Response, jsonify, request
from werkzeug.utils import secure_filename

from calendar_utils import (
    ICS_FILENAME,
    create_google_service_from_token,
    events_to_ics,
    sync_events_to_google,
)
from config import ParserConfig, configure_logging
from documents import UnsupportedDocumentError, extract_text_from_bytes, is_supported
from models import SyllabusEvent
from parsers import SyllabusParser

# Load environment variables from .env file
load_dotenv()
configure_logging()

logger = logging.getLogger(__name__)

app = Flask(__name__)
app.config["MAX_CONTENT_LENGTH"] = 16 * 1024 * 1024  # 16MB max file size
app.config["PARSER_CONFIG"] = ParserConfig.from_env()
app.config["SYLLABUS_PARSER"] = SyllabusParser(app.config["PARSER_CONFIG"])


def events_from_request(payload):
    """Rebuild (possibly user-edited) events sent back by the browser."""
    return [SyllabusEvent.from_dict(item) for item in payload.get("events") or []]


@app.route("/api/parse", methods=["POST"])
def parse_upload():
    """Handle file upload and return the extracted events."""
    if "file" not in request.files:
        return jsonify({"error": "No file provided"}), 400

    file = request.files["file"]
    if file.filename == "":
        return jsonify({"error": "No file selected"}), 400

    filename = secure_filename(file.filename)
    if not is_supported(filename, file.mimetype):
        return jsonify({"error": "Unsupported file type. Please upload a .txt or .pdf file."}), 400

    try:
        text = extract_text_from_bytes(file.read(), filename, file.mimetype)
    except UnsupportedDocumentError as e:
        return jsonify({"error": str(e)}), 400
    except Exception:
        logger.exception("Error reading %s", filename)
        return jsonify({"error": "Failed to parse syllabus"}), 500

    if not text.strip():
        return jsonify({"error": "No text found in file"}), 400

    result = app.config["SYLLABUS_PARSER"].parse(text)
    logger.info("Parsed %s: %d events, success=%s", filename, len(result.events), result.success)
    return jsonify(result.to_dict())


@app.route("/api/export/ics", methods=["POST"])
def export_ics():
    """Return the posted events as a downloadable .ics file."""
    payload = request.get_json(silent=True) or {}
    try:
        events = events_from_request(payload)
    except (TypeError, ValueError) as e:
        return jsonify({"error": f"Invalid event data: {e}"}), 400
    if not events:
        return jsonify({"error": "No events provided"}), 400

    parser_config = app.config["PARSER_CONFIG"]
    body = events_to_ics(
        events,
        start_hour=parser_config.default_start_hour,
        duration_minutes=parser_config.event_duration_minutes,
    )
    return Response(
        body,
        mimetype="text/calendar",
        headers={"Content-Disposition": f"attachment; filename={ICS_FILENAME}"},
    )


@app.route("/api/google-calendar", methods=["POST"])
def google_calendar_sync():
    """Create the posted events in the user's Google Calendar."""
    payload = request.get_json(silent=True) or {}
    access_token = payload.get("accessToken")
    if not access_token or not payload.get("events"):
        return jsonify({"error": "Missing required data"}), 400

    try:
        events = events_from_request(payload)
    except (TypeError, ValueError) as e:
        return jsonify({"error": f"Invalid event data: {e}"}), 400

    parser_config = app.config["PARSER_CONFIG"]
    try:
        service = create_google_service_from_token(access_token)
        results = sync_events_to_google(
            service,
            events,
            calendar_id=payload.get("calendarId", "primary"),
            timezone=payload.get("timezone") or parser_config.timezone,
            start_hour=parser_config.default_start_hour,
            duration_minutes=parser_config.event_duration_minutes,
        )
    except Exception:
        logger.exception("Google Calendar sync error")
        return jsonify({"error": "Failed to sync with Google Calendar"}), 500

    return jsonify({"results": results})


if __name__ == "__main__":
    app.run(debug=True, host="0.0.0.0", port=5000)
