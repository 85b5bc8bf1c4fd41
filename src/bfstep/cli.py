"""
Command line host for the stepping interpreter.

Usage:
    bfstep run program.bf [--input TEXT] [--capacity N] [--overflow wrap|clamp] [--check] [--trace]
    bfstep run -e "+++."
    bfstep debug program.bf [--input TEXT]     # commands on stdin: s n r b c reset q
    bfstep config [--save]
"""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional

from pydantic import ValidationError

from .config import ConfigError, resolve_config, save_context
from .kernel.engine import StepperEngine
from .kernel.errors import StepError
from .kernel.runner import execute_file, run_program

DEBUG_HELP = """Commands:
  s, step        execute one instruction
  n, line        run to the end of the current line
  r, repeat      run through the current block of identical instructions
  b, breakpoint  run to the next breakpoint marker
  c, run         run to the end of the program
  reset          start over
  ?, help        show this help
  q, quit        end the session"""


# =============================================================================
# Helpers
# =============================================================================

def read_program(args: argparse.Namespace) -> Optional[str]:
    """Resolve program text from -e or a file argument."""
    if args.expr is not None:
        return args.expr
    if args.file is None:
        print("✗ No program given (pass a file or -e CODE)", file=sys.stderr)
        return None
    path = Path(args.file)
    if not path.exists():
        print(f"✗ Program not found: {args.file}", file=sys.stderr)
        return None
    return path.read_text(encoding="utf-8")


def config_from_args(args: argparse.Namespace):
    return resolve_config(
        capacity=getattr(args, "capacity", None),
        overflow=getattr(args, "overflow", None),
        breakpoint=getattr(args, "breakpoint", None),
        step_limit=getattr(args, "step_limit", None),
    )


def format_state(state: Dict[str, Any]) -> str:
    """One compact line per field, enough to follow along in a terminal."""
    program = state["program"]
    cursor = state["cursor"]
    if state["instruction"] is None:
        where = "end of program"
    else:
        line_start = program.rfind("\n", 0, cursor) + 1
        line_stop = program.find("\n", cursor)
        if line_stop == -1:
            line_stop = len(program)
        text = program[line_start:line_stop]
        column = state["column"]
        where = f"{text[:column]}[{text[column]}]{text[column + 1:]}"

    cells = []
    for index, value in enumerate(state["tape"], start=state["tape_start"]):
        cells.append(f"({value})" if index == state["pointer"] else str(value))

    lines = [
        f"  {state['line']}:{state['column']}  {where}",
        f"  tape @{state['tape_start']}: {' '.join(cells)}   ptr={state['pointer']}",
        f"  input: {state['input_remaining']}   output: {state['output_text']!r}",
        f"  status: {state['status']}   steps: {state['steps']}",
    ]
    return "\n".join(lines)


# =============================================================================
# Commands
# =============================================================================

def cmd_run(args: argparse.Namespace) -> int:
    """Run a program to completion and print its output."""
    if args.expr is None and args.file is None:
        print("✗ No program given (pass a file or -e CODE)", file=sys.stderr)
        return 1

    try:
        config = config_from_args(args)
    except (ValidationError, ConfigError) as e:
        print(f"✗ Invalid configuration: {e}", file=sys.stderr)
        return 1

    options = dict(
        config=config,
        output_sink=lambda line: print(line, file=sys.stderr),
        trace=args.trace,
        validate=args.check,
    )
    if args.expr is not None:
        result = run_program(args.expr, args.input, **options)
    else:
        result = execute_file(args.file, args.input, **options)

    if result.get("status") == "error":
        if "output" in result.get("state", {}):
            sys.stdout.write(result["state"]["output_text"])
            sys.stdout.flush()
        print(f"✗ {result['error_kind']}: {result['error_message']}", file=sys.stderr)
        return 1

    sys.stdout.write(result["output_text"])
    sys.stdout.flush()
    return 0


def cmd_debug(args: argparse.Namespace) -> int:
    """Line-oriented stepping session reading commands from stdin."""
    program = read_program(args)
    if program is None:
        return 1

    try:
        config = config_from_args(args)
    except (ValidationError, ConfigError) as e:
        print(f"✗ Invalid configuration: {e}", file=sys.stderr)
        return 1

    engine = StepperEngine(config=config, window=args.window)
    try:
        session_id = engine.start_session(
            program,
            args.input,
            entry_context={"source": args.file or "<expr>"},
            output_sink=print,
            trace=args.trace,
            validate=args.check,
        )
    except StepError as e:
        print(f"✗ {e.kind}: {e.message}", file=sys.stderr)
        return 1
    except ValueError as e:
        print(f"✗ invalid_input: {e}", file=sys.stderr)
        return 1

    interactive = sys.stdin.isatty()
    print(format_state(engine.snapshot(session_id)))
    exit_code = 0

    try:
        while True:
            if interactive:
                print("(bfstep) ", end="", flush=True)
            line = sys.stdin.readline()
            if not line:
                break
            command = line.strip()
            if not command:
                continue
            if command in ("q", "quit"):
                break
            if command in ("?", "help"):
                print(DEBUG_HELP)
                continue

            result = engine.dispatch(session_id, command)
            if not result.ok:
                print(f"✗ {result.error_kind}: {result.error_message}", file=sys.stderr)
                if result.error_kind == "command_not_found":
                    continue
                exit_code = 1
            if "state" in result.data:
                print(format_state(result.data["state"]))
    finally:
        ended = engine.terminate(session_id)
        engine.close()

    print(f"Session ended ({ended.data['entry_context']['source']})")
    return exit_code


def cmd_config(args: argparse.Namespace) -> int:
    """Show, and optionally save, the resolved configuration."""
    try:
        config = config_from_args(args)
    except (ValidationError, ConfigError) as e:
        print(f"✗ Invalid configuration: {e}", file=sys.stderr)
        return 1

    settings = config.model_dump(mode="json")
    if args.save:
        path = save_context(settings)
        print(f"✓ Saved to {path}")
    print(json.dumps(settings, indent=2))
    return 0


# =============================================================================
# Entry point
# =============================================================================

def add_config_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--capacity", type=int, help="Tape capacity in cells")
    parser.add_argument("--overflow", choices=["wrap", "clamp"], help="Cell overflow policy")
    parser.add_argument("--breakpoint", help="Breakpoint marker string")
    parser.add_argument("--step-limit", type=int, help="Step budget for compound commands")


def add_program_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("file", nargs="?", help="Program file")
    parser.add_argument("-e", "--expr", help="Program text given inline")
    parser.add_argument("--input", "-i", default="", help="Input text fed to ','")
    parser.add_argument("--check", action="store_true", help="Reject unbalanced brackets before running")
    parser.add_argument("--trace", action="store_true", help="Trace every executed instruction")
    add_config_arguments(parser)


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(
        prog="bfstep",
        description="Stepping interpreter for the 8-symbol byte-tape language",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    run_parser = subparsers.add_parser("run", help="Run a program to completion")
    add_program_arguments(run_parser)

    debug_parser = subparsers.add_parser("debug", help="Step through a program interactively")
    add_program_arguments(debug_parser)
    debug_parser.add_argument("--window", type=int, default=16, help="Tape cells shown around the pointer")

    config_parser = subparsers.add_parser("config", help="Show the resolved configuration")
    add_config_arguments(config_parser)
    config_parser.add_argument("--save", action="store_true", help="Write it to .bfstep/config.json")

    args = parser.parse_args(argv)

    if args.command == "run":
        return cmd_run(args)
    elif args.command == "debug":
        return cmd_debug(args)
    elif args.command == "config":
        return cmd_config(args)

    return 1


if __name__ == "__main__":
    sys.exit(main())
