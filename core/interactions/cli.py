"""
Command-line interface for RC-Interactions.

Usage:
    interactions validate exports/bank_robbery.json
    interactions traverse exports/bank_robbery.json start --memory '{"level": "15"}'
    interactions simulate exports/bank_robbery.json --choices 1,2,1
    interactions export exports/bank_robbery.json > bank_robbery.export.json
"""

import argparse
import json
import sys
from collections.abc import Callable
from pathlib import Path

from interactions.config import InteractionsConfig
from interactions.graph.executor import run_traversal
from interactions.observability import configure_logging
from interactions.runtime.simulator import GameSimulator, SimulationError
from interactions.schemas.project import Project, ProjectImportError, export_project, load_export


def _load(path: str) -> Project:
    return load_export(Path(path).read_text(encoding="utf-8-sig"))


def cmd_validate(args: argparse.Namespace) -> int:
    project = _load(args.file)
    errors = project.data.validate()
    if not errors:
        print(f"✓ {project.name}: {len(project.data.nodes)} nodes, no problems found")
        return 0

    print(f"✗ {project.name}: {len(errors)} problem(s)")
    for error in errors:
        print(f"  - {error}")
    return 1


def cmd_traverse(args: argparse.Namespace) -> int:
    project = _load(args.file)
    memory = json.loads(args.memory) if args.memory else {}
    if not isinstance(memory, dict):
        print("--memory must be a JSON object", file=sys.stderr)
        return 2

    result = run_traversal(project.data, args.node_id, memory, args.max_iterations)
    print(result.node_id if result.success else "no path")
    print(json.dumps(memory, indent=2))
    return 0 if result.success else 1


def _prompt_choice(count: int) -> int | None:
    while True:
        raw = input(f"Choice [1-{count}, q to leave]: ").strip().lower()
        if raw == "q":
            return None
        if raw.isdigit() and 1 <= int(raw) <= count:
            return int(raw) - 1


def _choice_list(value: str) -> list[int]:
    """Parse "1,2,1" into 0-based choice indexes."""
    indexes = []
    for part in value.split(","):
        part = part.strip()
        if not part:
            continue
        if not (part.isascii() and part.isdigit()) or int(part) < 1:
            raise argparse.ArgumentTypeError(f"invalid choice {part!r}, expected a number from 1")
        indexes.append(int(part) - 1)
    return indexes


def cmd_simulate(args: argparse.Namespace) -> int:
    project = _load(args.file)
    sim = GameSimulator(
        project.data,
        initial_memory=args.config.initial_memory,
        max_iterations=args.max_iterations,
        project_id=project.id,
    )

    scripted = list(args.choices) if args.choices is not None else None

    try:
        sim.start()
    except SimulationError as e:
        print(f"Cannot simulate: {e}", file=sys.stderr)
        return 1

    while sim.is_active:
        entry = sim.transcript[-1]
        print(f"\n{entry.speaker.upper()}: {entry.text}")
        choices = sim.choices
        for i, choice in enumerate(choices, start=1):
            print(f"  {i:02d}  {choice.text}")
        if not choices:
            break

        if scripted is not None:
            if not scripted:
                break
            index: int | None = scripted.pop(0)
        else:
            index = _prompt_choice(len(choices))
        if index is None:
            sim.cancel()
            break
        sim.choose(index)

    print("\n-- end of interaction --")
    print(json.dumps(sim.memory, indent=2))
    return 0


def cmd_export(args: argparse.Namespace) -> int:
    print(export_project(_load(args.file)))
    return 0


def _add_file_command(
    subparsers: argparse._SubParsersAction,
    name: str,
    help_text: str,
    func: Callable[[argparse.Namespace], int],
) -> argparse.ArgumentParser:
    parser = subparsers.add_parser(name, help=help_text)
    parser.add_argument("file", help="Project or export JSON file")
    parser.set_defaults(func=func)
    return parser


def build_parser(config: InteractionsConfig) -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="interactions",
        description="RC-Interactions - Validate, traverse and play dialogue flows",
    )
    parser.add_argument("--log-level", default=config.log_level, help="Logging level")
    parser.add_argument(
        "--log-format",
        default="auto",
        choices=["auto", "human", "json"],
        help="Log output format",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    _add_file_command(subparsers, "validate", "Check a flow for structural problems", cmd_validate)

    traverse = _add_file_command(
        subparsers, "traverse", "Run logic nodes from a node and print where it stops", cmd_traverse
    )
    traverse.add_argument("node_id", help="Node to start from")
    traverse.add_argument("--memory", help="Initial memory as a JSON object")
    traverse.add_argument("--max-iterations", type=int, default=config.max_iterations)

    simulate = _add_file_command(subparsers, "simulate", "Play a flow in the terminal", cmd_simulate)
    simulate.add_argument(
        "--choices", type=_choice_list, help="Comma-separated 1-based choices to play"
    )
    simulate.add_argument("--max-iterations", type=int, default=config.max_iterations)

    _add_file_command(subparsers, "export", "Print the project as an export document", cmd_export)

    return parser


def main(argv: list[str] | None = None) -> int:
    config = InteractionsConfig()
    parser = build_parser(config)
    args = parser.parse_args(argv)
    args.config = config

    configure_logging(level=args.log_level, format=args.log_format)

    try:
        return args.func(args)
    except ProjectImportError as e:
        print(f"Invalid project file: {e}", file=sys.stderr)
        return 2
    except (OSError, json.JSONDecodeError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 2


if __name__ == "__main__":
    sys.exit(main())
