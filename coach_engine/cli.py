# FILE: coach_engine/cli.py
"""
gz-coach command line.

    gz-coach replay transcript.json --module gz-intake
    gz-coach validate record.json --module gz-intake

replay feeds a transcript turn by turn through a fresh session and prints
one JSON turn report per line. A transcript is either a list of messages
or an object with a "messages" list (and optional "module_id"). A message
may carry an "extracted" object that is merged on its turn.

validate prints the module completion for an extracted module record.
"""
from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Tuple

from dotenv import load_dotenv

from coach_engine.config import load_config_from_env
from coach_engine.engine.turn import CoachingSession
from coach_engine.state.persistence import JsonFileSnapshotSink
from coach_engine.validation.completion import validate_module

logger = logging.getLogger("coach_engine.cli")


def _load_json(path: Path) -> Any:
    with open(path, "r", encoding="utf-8") as f:
        return json.load(f)


def _read_transcript(data: Any) -> Tuple[Optional[str], List[Dict[str, Any]]]:
    if isinstance(data, dict):
        messages = data.get("messages") or []
        return data.get("module_id"), [m for m in messages if isinstance(m, dict)]
    if isinstance(data, list):
        return None, [m for m in data if isinstance(m, dict)]
    return None, []


def replay(
    transcript: Any,
    module_id: Optional[str] = None,
    snapshot_dir: Optional[str] = None,
    session_id: str = "replay",
) -> List[Dict[str, Any]]:
    """Run every prefix of the transcript through one session; one report per message."""
    transcript_module, messages = _read_transcript(transcript)
    sink = JsonFileSnapshotSink(snapshot_dir) if snapshot_dir else None
    session = CoachingSession(
        session_id,
        module_id=module_id or transcript_module,
        config=load_config_from_env(),
        sink=sink,
    )

    reports = []
    for index in range(1, len(messages) + 1):
        extracted = messages[index - 1].get("extracted")
        result = session.process_turn(messages[:index], extracted=extracted)
        report = result.model_dump(mode="json")
        report["turn"] = index
        reports.append(report)
    logger.info(f"[cli] Replayed {len(messages)} messages in {session.module_id}")
    return reports


def _cmd_replay(args: argparse.Namespace) -> int:
    path = Path(args.transcript)
    if not path.exists():
        print(f"Transcript not found: {path}", file=sys.stderr)
        return 2
    try:
        transcript = _load_json(path)
    except ValueError as e:
        print(f"Invalid transcript JSON: {e}", file=sys.stderr)
        return 2

    for report in replay(transcript, module_id=args.module, snapshot_dir=args.snapshot_dir):
        print(json.dumps(report, ensure_ascii=False, indent=args.indent))
    return 0


def _cmd_validate(args: argparse.Namespace) -> int:
    path = Path(args.record)
    if not path.exists():
        print(f"Record not found: {path}", file=sys.stderr)
        return 2
    try:
        record = _load_json(path)
    except ValueError as e:
        print(f"Invalid record JSON: {e}", file=sys.stderr)
        return 2

    completion = validate_module(args.module, record)
    print(completion.model_dump_json(indent=2))
    return 0 if completion.is_complete else 1


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="gz-coach", description="GZ coaching engine tools")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    sub = parser.add_subparsers(dest="command", required=True)

    p_replay = sub.add_parser("replay", help="Replay a transcript turn by turn")
    p_replay.add_argument("transcript", help="Transcript JSON file")
    p_replay.add_argument("--module", default=None, help="Workshop module id (default: gz-intake)")
    p_replay.add_argument("--snapshot-dir", default=None, help="Write state snapshots below this directory")
    p_replay.add_argument("--indent", type=int, default=None, help="Pretty-print reports")
    p_replay.set_defaults(func=_cmd_replay)

    p_validate = sub.add_parser("validate", help="Check module completion for an extracted record")
    p_validate.add_argument("record", help="Module record JSON file")
    p_validate.add_argument("--module", required=True, help="Workshop module id")
    p_validate.set_defaults(func=_cmd_validate)

    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    load_dotenv()
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s [%(name)s] %(levelname)s: %(message)s",
    )
    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
