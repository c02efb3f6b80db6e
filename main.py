"""CLI entrypoint for the syllabus parser and calendar exporter.

Usage examples:
  python main.py --input syllabus.pdf --ics out.ics
  python main.py --input syllabus.txt --google --access-token "$TOKEN"
  python main.py --input - --json < syllabus.txt

Set GEMINI_API_KEY (or put it in .env) to let Gemini re-classify the events.
"""
import argparse
import json
import os
import sys

from dotenv import load_dotenv

from calendar_utils import create_google_service_from_token, export_events_to_ics, sync_events_to_google
from config import ParserConfig, configure_logging
from documents import read_document_text
from parsers import SyllabusParser


def read_input_text(path: str) -> str:
	if path == "-":
		return sys.stdin.read()
	return read_document_text(path)


def build_arg_parser() -> argparse.ArgumentParser:
	parser = argparse.ArgumentParser(description="Extract assignments, exams and readings from a syllabus and export them")
	parser.add_argument("--input", "-i", required=True, help="Syllabus file (.txt or .pdf) or '-' to read stdin")
	parser.add_argument("--ics", help="Write extracted events to an .ics file")
	parser.add_argument("--json", action="store_true", help="Print the parse result as JSON")
	parser.add_argument("--google", action="store_true", help="Push extracted events to Google Calendar")
	parser.add_argument("--access-token", default=os.environ.get("GOOGLE_ACCESS_TOKEN"), help="OAuth access token for Google Calendar")
	parser.add_argument("--calendar-id", default="primary", help="Google Calendar ID, default 'primary'")
	parser.add_argument("--no-ai", action="store_true", help="Skip Gemini re-classification even if GEMINI_API_KEY is set")
	parser.add_argument("--dry-run", action="store_true", help="Don't create events; just show parsed results")
	return parser


def main(argv=None) -> int:
	load_dotenv()
	args = build_arg_parser().parse_args(argv)
	# Keep stdout clean for the JSON document
	status_out = sys.stderr if args.json else sys.stdout
	configure_logging(os.environ.get("LOG_LEVEL", "WARNING"), stream=status_out)

	config = ParserConfig.from_env()
	if args.no_ai:
		config.gemini_api_key = None

	try:
		text = read_input_text(args.input)
	except (OSError, ValueError) as e:
		print(f"Error reading input: {e}", file=sys.stderr)
		return 1

	if not text.strip():
		print("No text found in input.", file=sys.stderr)
		return 1

	result = SyllabusParser(config).parse(text)
	if args.json:
		print(json.dumps(result.to_dict(), indent=2))
	if not result.success:
		print(f"Parsing failed: {result.error}", file=sys.stderr)
		return 1

	events = result.events
	if not events:
		if not args.json:
			print("No event-like dates found in input.")
		return 0

	if not args.json:
		print(f"Found {len(events)} events:")
		for i, e in enumerate(events, 1):
			print(f"[{i}] {e.date.isoformat()}  {e.type:<10}  {e.title}")

	if args.ics:
		out = export_events_to_ics(
			events,
			args.ics,
			start_hour=config.default_start_hour,
			duration_minutes=config.event_duration_minutes,
		)
		print(f"Wrote ICS to: {out}", file=status_out)

	if args.google:
		if args.dry_run:
			print("Dry run: skipping Google Calendar push", file=status_out)
			return 0
		if not args.access_token:
			print("Google Calendar push needs --access-token or GOOGLE_ACCESS_TOKEN", file=sys.stderr)
			return 1
		service = create_google_service_from_token(args.access_token)
		results = sync_events_to_google(service, events, calendar_id=args.calendar_id, timezone=config.timezone)
		created = sum(1 for r in results if r["success"])
		print(f"Created {created} of {len(results)} events in Google Calendar", file=status_out)
		if created < len(results):
			return 1

	return 0


if __name__ == "__main__":
	sys.exit(main())
