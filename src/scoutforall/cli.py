from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path

from scoutforall.core import EngineIntegrityError, configure_logging
from scoutforall.devtools import TableCoverageAuditor
from scoutforall.session import ReplayHarness


def _run_audit() -> int:
    auditor = TableCoverageAuditor()
    report = auditor.run()
    print(json.dumps(auditor.to_dict(report), indent=2, default=str))
    return 0 if report.passed else 1


def _run_replay(path: Path) -> int:
    try:
        snapshot = ReplayHarness.load(path).rebuild()
    except EngineIntegrityError as exc:
        print(json.dumps({"error_code": exc.error_code, "message": str(exc), "context": exc.artifact.context}, indent=2, default=str))
        return 2
    print(json.dumps(snapshot.summary(), indent=2))
    return 0


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(prog="scoutforall", description="Volleyball set scouting engine")
    parser.add_argument("--log-level", default="warning", help="structlog level for engine events")
    parser.add_argument("--json-logs", action="store_true", help="render log lines as JSON")
    commands = parser.add_subparsers(dest="command", required=True)
    commands.add_parser("audit", help="cross-check the scoring lookup tables")
    replay = commands.add_parser("replay", help="rebuild a set from a stored event log")
    replay.add_argument("path", type=Path, help="JSON file holding the set descriptor and its events")
    args = parser.parse_args(argv)

    configure_logging(args.log_level, json=args.json_logs)

    if args.command == "audit":
        return _run_audit()
    return _run_replay(args.path)


if __name__ == "__main__":
    sys.exit(main())
