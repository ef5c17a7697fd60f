"""brief-builder CLI entry point.

Each invocation rehydrates the stored brief, applies one command, and saves.
"""
from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import List, Optional

from brief_engine.config import load_config
from brief_engine.exceptions import BriefError, FieldValidationError
from brief_engine.exports import EXPORTERS, export_document
from brief_engine.models import ShotAngle, ShotType
from brief_engine.roles import ROLES, is_step_optional
from brief_engine.session import BriefSession
from brief_engine.steps import StepKind

_LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

SHOT_TYPES = list(ShotType.__args__)
SHOT_ANGLES = list(ShotAngle.__args__)


def _parse_value(raw: str):
    """JSON-decode *raw* when it is valid JSON, otherwise keep the string."""
    try:
        return json.loads(raw)
    except json.JSONDecodeError:
        return raw


def _set_field(session: BriefSession, field: str, raw: str) -> None:
    """Write *raw* to *field*, decoded as JSON first and as the literal string if
    the decoded value does not fit the field (e.g. `set budget 5000`)."""
    value = _parse_value(raw)
    try:
        session.update_field(field, value)
    except FieldValidationError:
        if isinstance(value, str):
            raise
        session.update_field(field, raw)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="brief-builder",
        description="Brief Builder — guided creative-production briefs",
    )
    parser.add_argument("--config", metavar="config.yaml", help="Path to a YAML config file")
    parser.add_argument("--store-dir", metavar="DIR", help="Directory holding the stored brief")
    parser.add_argument("--verbose", action="store_true", help="Log at DEBUG level")
    sub = parser.add_subparsers(dest="command", metavar="COMMAND")

    sub.add_parser("status", help="Show role, current step, completion and missing fields")
    role_parser = sub.add_parser("set-role", help="Choose or switch the role")
    role_parser.add_argument("role", choices=ROLES)
    set_parser = sub.add_parser("set", help="Set one document field")
    set_parser.add_argument("field")
    set_parser.add_argument("value", help="JSON value, or a plain string")
    sub.add_parser("next", help="Advance to the next step (gated)")
    sub.add_parser("prev", help="Go back one step")
    goto_parser = sub.add_parser("goto", help="Jump to a step by index")
    goto_parser.add_argument("index", type=int)

    add_parser = sub.add_parser("add-shot", help="Append a shot to the shot list")
    add_parser.add_argument("description")
    add_parser.add_argument("--type", dest="shot_type", choices=SHOT_TYPES, default="Medium")
    add_parser.add_argument("--angle", choices=SHOT_ANGLES, default="Eye-level")
    add_parser.add_argument("--category")
    add_parser.add_argument("--priority", action="store_true")
    move_parser = sub.add_parser("move-shot", help="Move a shot to another shot's position")
    move_parser.add_argument("from_id", type=int)
    move_parser.add_argument("to_id", type=int)
    dup_parser = sub.add_parser("duplicate-shot", help="Copy a shot to the end of the list")
    dup_parser.add_argument("id", type=int)
    remove_parser = sub.add_parser("remove-shot", help="Delete a shot")
    remove_parser.add_argument("id", type=int)
    sub.add_parser("shots", help="List shots grouped by category")

    export_parser = sub.add_parser("export", help="Export the brief")
    export_parser.add_argument(
        "--format", dest="fmt", choices=list(EXPORTERS), default=None,
        help="Export format (default: the role's preferred format)",
    )
    export_parser.add_argument("--output", required=True, metavar="PATH")
    sub.add_parser("reset", help="Discard the brief and clear the stored copy")
    return parser


def main(argv: Optional[List[str]] = None) -> None:
    parser = build_parser()
    args = parser.parse_args(argv)

    config = load_config(args.config)
    if args.store_dir:
        config = config.model_copy(update={"storage_dir": args.store_dir})
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else getattr(logging, config.log_level.upper(), logging.WARNING),
        format=_LOG_FORMAT,
    )

    if args.command is None:
        parser.print_help()
        sys.exit(1)

    session = BriefSession.from_config(config)
    if session.role is None and args.command != "reset":
        session.select_role(config.default_role)

    try:
        code = _dispatch(session, args)
    except (BriefError, OSError) as exc:
        print(f"ERROR: {exc}")
        sys.exit(1)
    if args.command != "reset":
        session.save()
    sys.exit(code)


def _dispatch(session: BriefSession, args: argparse.Namespace) -> int:
    command = args.command
    if command == "status":
        _print_status(session)
        return 0
    if command == "set-role":
        session.select_role(args.role)
        print(f"OK: role is {session.role}")
        return 0
    if command == "set":
        _set_field(session, args.field, args.value)
        print(f"OK: {args.field} updated")
        return 0
    if command == "next":
        if session.next():
            print(f"OK: step {session.current_step_index} ({session.wizard.current_step.step_id})")
            return 0
        for message in session.wizard.visible_errors().values():
            print(f"ERROR: {message}")
        return 1
    if command == "prev":
        session.prev()
        print(f"OK: step {session.current_step_index} ({session.wizard.current_step.step_id})")
        return 0
    if command == "goto":
        if not session.go_to(args.index):
            print(f"ERROR: no step at index {args.index}")
            return 1
        print(f"OK: step {session.current_step_index} ({session.wizard.current_step.step_id})")
        return 0
    if command == "add-shot":
        shot = session.add_shot(
            description=args.description,
            shot_type=args.shot_type,
            angle=args.angle,
            category=args.category,
            priority=args.priority,
        )
        print(f"OK: added shot {shot.id}")
        return 0
    if command == "move-shot":
        return _report(session.reorder_shots(args.from_id, args.to_id), "moved", args.from_id)
    if command == "duplicate-shot":
        copy = session.duplicate_shot(args.id)
        if copy is None:
            print(f"ERROR: no shot with id {args.id}")
            return 1
        print(f"OK: duplicated shot {args.id} as {copy.id}")
        return 0
    if command == "remove-shot":
        return _report(session.remove_shot(args.id), "removed", args.id)
    if command == "shots":
        for category, shots in session.grouped_shots().items():
            print(f"{category}:")
            for shot in shots:
                flag = " *" if shot.priority else ""
                print(f"  [{shot.id}] {shot.order}. {shot.description} ({shot.shot_type}, {shot.angle}){flag}")
        return 0
    if command == "export":
        fmt = args.fmt or session.role_config.default_export_format
        payload = export_document(session, EXPORTERS[fmt])
        output = Path(args.output)
        output.parent.mkdir(parents=True, exist_ok=True)
        output.write_bytes(payload)
        print(f"OK: exported {fmt} to {output}")
        return 0
    if command == "reset":
        session.reset()
        print("OK: brief reset")
        return 0
    return 1


def _report(changed: bool, verb: str, shot_id: int) -> int:
    if changed:
        print(f"OK: {verb} shot {shot_id}")
        return 0
    print(f"ERROR: no change for shot {shot_id}")
    return 1


def _step_detail(session: BriefSession) -> str:
    """One-line summary of the current step's own content, by step kind."""
    document = session.document
    kind = session.wizard.current_step.kind
    if kind is StepKind.SHOTLIST:
        return f"{len(document.shot_list)} shots"
    if kind is StepKind.BUDGET:
        total = sum(item.total for item in document.budget_line_items)
        return f"{len(document.budget_line_items)} lines, total {total:.2f} {document.currency or ''}".rstrip()
    if kind is StepKind.CREW:
        return f"{len(document.crew)} crew"
    if kind is StepKind.EQUIPMENT:
        checked = sum(1 for item in document.equipment if item.checked)
        return f"{checked}/{len(document.equipment)} items checked"
    if kind is StepKind.REVIEW:
        return "ready" if not session.missing_required_fields() else "incomplete"
    missing = session.wizard.missing_for_current_step()
    return f"missing {', '.join(missing)}" if missing else "complete"


def _print_status(session: BriefSession) -> None:
    steps = session.wizard.steps
    print(f"role: {session.role}")
    print(f"welcome: {session.role_config.welcome_message}")
    step = session.wizard.current_step
    optional = " (optional)" if is_step_optional(step, session.role) else ""
    print(f"step: {session.current_step_index + 1}/{len(steps)} {step.title}{optional}")
    print(f"step detail: {_step_detail(session)}")
    print(f"completion: {session.completion()}%")
    missing = session.missing_required_fields()
    print(f"missing: {', '.join(missing) if missing else 'none'}")
    print(f"shots: {len(session.document.shot_list)}")
    print(f"exports: {', '.join(session.role_config.available_export_formats)}")


if __name__ == "__main__":
    main()
