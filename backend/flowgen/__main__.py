"""
Command-line interface.

    flowgen compile workflow.json [-o out.py]
    flowgen compile --template counter-loop
    flowgen inspect workflow.json
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from logging import getLogger
from pathlib import Path
from typing import List, Optional

from flowgen import __version__
from flowgen.config import CompilerConfig
from flowgen.workflow.compiler import compile_workflow
from flowgen.workflow.templates import TEMPLATES, get_template
from flowgen.workflow.workflow_inspector import inspect_workflow

logger = getLogger(__name__)


def _load_source(args: argparse.Namespace):
    if getattr(args, "template", None):
        return get_template(args.template)
    return Path(args.file).read_text(encoding="utf-8")


def cmd_compile(args: argparse.Namespace, config: CompilerConfig) -> int:
    """Compile a workflow file (or a template) to Python."""
    if not args.file and not args.template:
        print("Error: give a workflow file or --template", file=sys.stderr)
        return 1
    try:
        source = _load_source(args)
    except OSError as e:
        print(f"Error: cannot read {args.file}: {e}", file=sys.stderr)
        return 1

    result = compile_workflow(source, config)
    if not result.ok:
        print(f"Error: {result.error}", file=sys.stderr)
        return 1

    if args.output:
        Path(args.output).write_text(result.code, encoding="utf-8")
        logger.info(f"Wrote {len(result.code)} chars to {args.output}")
    else:
        sys.stdout.write(result.code)
    return 0


def cmd_inspect(args: argparse.Namespace, config: CompilerConfig) -> int:
    """Print the compile report as JSON."""
    if not args.file and not args.template:
        print("Error: give a workflow file or --template", file=sys.stderr)
        return 1
    try:
        source = _load_source(args)
    except OSError as e:
        print(f"Error: cannot read {args.file}: {e}", file=sys.stderr)
        return 1

    report = inspect_workflow(source, config)
    print(json.dumps(report, indent=2, ensure_ascii=False, default=str))
    if report["error"]:
        print(f"Error: {report['error']}", file=sys.stderr)
        return 1
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="flowgen",
        description="Compile visual agent workflows into OpenAI Agents SDK code",
    )
    parser.add_argument("--version", action="version", version=f"flowgen {__version__}")
    parser.add_argument("--log-level", help="Override FLOWGEN_LOG_LEVEL")

    subparsers = parser.add_subparsers(dest="command", help="Command to execute")

    compile_parser = subparsers.add_parser("compile", help="Compile a workflow to Python")
    compile_parser.add_argument("file", nargs="?", help="Exported workflow JSON")
    compile_parser.add_argument("--template", choices=sorted(TEMPLATES), help="Compile a built-in template")
    compile_parser.add_argument("-o", "--output", help="Write the module here instead of stdout")
    compile_parser.add_argument("--model", help="Default model for agents without one")

    inspect_parser = subparsers.add_parser("inspect", help="Print a JSON compile report")
    inspect_parser.add_argument("file", nargs="?", help="Exported workflow JSON")
    inspect_parser.add_argument("--template", choices=sorted(TEMPLATES), help="Inspect a built-in template")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Main CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    config = CompilerConfig.get_default_instance()
    if getattr(args, "model", None):
        config = config.with_overrides(default_model=args.model)

    logging.basicConfig(
        level=(args.log_level or config.log_level).upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )

    if not args.command:
        parser.print_help()
        return 1

    if args.command == "compile":
        return cmd_compile(args, config)
    elif args.command == "inspect":
        return cmd_inspect(args, config)
    else:
        print(f"Unknown command: {args.command}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
