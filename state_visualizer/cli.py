from __future__ import annotations

import argparse
import logging
import random
import sys
from pathlib import Path
from typing import List, Sequence

from .analysis import BatchResult, parse_batch_input, summarize_results
from .automata import AUTOMATON_TYPES, suggest_type
from .codec import EXPORT_STYLE, STRUCTURE_STYLE, dumps
from .errors import StateVisualizerError
from .templates import template_names
from .workspace import Workspace

logger = logging.getLogger(__name__)

EMPTY_INPUT_LABEL = "(empty string)"
LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR")


def _parse_args(argv: Sequence[str] | None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Load a state diagram and test strings against it."
    )
    source = parser.add_mutually_exclusive_group()
    source.add_argument("--structure", help="Path to a JSON structure or exported diagram.")
    source.add_argument("--template", help="Name of a built-in template (see --list-templates).")
    source.add_argument("--example", choices=AUTOMATON_TYPES, help="Load the example DFA or NFA.")
    source.add_argument(
        "--random",
        type=int,
        metavar="SEED",
        help="Generate a random complete DFA from the given seed.",
    )
    parser.add_argument(
        "strings",
        nargs="*",
        help="Input strings to test (use '' for the empty string).",
    )
    parser.add_argument("--strings-file", help="File with one test string per line.")
    parser.add_argument(
        "--type",
        default="auto",
        choices=AUTOMATON_TYPES + ("auto",),
        help="Simulation semantics; 'auto' picks NFA when the diagram needs it.",
    )
    parser.add_argument("--export", help="Write the loaded diagram as JSON to this path.")
    parser.add_argument(
        "--export-style",
        default=EXPORT_STYLE,
        choices=(EXPORT_STYLE, STRUCTURE_STYLE),
        help="Use fromId/toId (export) or from/to (structure) transition keys.",
    )
    parser.add_argument("--list-templates", action="store_true", help="List template names and exit.")
    parser.add_argument("--log-level", default="WARNING", choices=LOG_LEVELS)
    return parser.parse_args(argv)


def run(argv: Sequence[str] | None = None) -> int:
    args = _parse_args(argv)
    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(levelname)s %(name)s: %(message)s",
    )

    if args.list_templates:
        for name in template_names():
            print(name)
        return 0

    workspace = Workspace()
    try:
        _load_source(workspace, args)
        strings = list(args.strings)
        if args.strings_file:
            strings.extend(_load_strings(Path(args.strings_file)))
        automaton_type = suggest_type(workspace.diagram) if args.type == "auto" else args.type

        _display_summary(workspace, automaton_type)
        if strings:
            _run_strings(workspace, strings, automaton_type)
        else:
            print("\nNo strings were provided.")
        if args.export:
            path = _export(workspace, Path(args.export), args.export_style)
            print(f"\nDiagram written to {path}")
    except KeyboardInterrupt:
        print("\nAborted by user.", file=sys.stderr)
        return 130
    except (StateVisualizerError, ValueError, OSError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1
    return 0


def _load_source(workspace: Workspace, args: argparse.Namespace) -> None:
    if args.structure:
        text = Path(args.structure).read_text(encoding="utf-8")
        workspace.import_json(text)
    elif args.template:
        workspace.load_template(args.template)
    elif args.example:
        workspace.load_example(args.example)
    elif args.random is not None:
        workspace.load_random_dfa(random.Random(args.random))
    else:
        raise ValueError("Provide one of --structure, --template, --example or --random.")


def _load_strings(path: Path) -> List[str]:
    return parse_batch_input(path.read_text(encoding="utf-8"))


def _display_summary(workspace: Workspace, automaton_type: str) -> None:
    diagram = workspace.diagram
    report = workspace.describe()
    print("Diagram Summary")
    print(f"  Type: {automaton_type.upper()}")
    print(f"  States: {', '.join(state.label for state in diagram.states)}")
    alphabet = report["alphabet"]
    alphabet_text = ", ".join(alphabet) if alphabet else "<empty>"  # type: ignore[arg-type]
    print(f"  Alphabet: {alphabet_text}")
    start = diagram.start_state
    print(f"  Start state: {start.label if start else '<none>'}")
    accept_text = ", ".join(state.label for state in diagram.accept_states) or "<none>"
    print(f"  Accept states: {accept_text}")
    print("  Transitions:")
    if not diagram.transitions:
        print("    <none>")
    for transition in diagram.transitions:
        source = diagram.get_state(transition.from_id).label
        target = diagram.get_state(transition.to_id).label
        symbols = ", ".join(symbol or "ε" for symbol in transition.symbols)
        print(f"    {source} --{symbols}--> {target}")
    if report["unreachable"]:
        labels = [diagram.get_state(state_id).label for state_id in report["unreachable"]]  # type: ignore[union-attr]
        print(f"  Unreachable: {', '.join(labels)}")


def _run_strings(workspace: Workspace, strings: Sequence[str], automaton_type: str) -> List[BatchResult]:
    print("\nTesting strings...")

    def progress(index: int, total: int, string: str) -> None:
        logger.debug("Testing %d/%d: %r", index, total, string)

    results = workspace.run_batch(strings, automaton_type, progress)
    summary = summarize_results(results)
    print(f"  {summary['passed']} accepted, {summary['failed']} not accepted of {summary['total']}.")
    for result in results:
        shown = f'"{result.string}"' if result.string else EMPTY_INPUT_LABEL
        line = f"    [{result.verdict}] {shown}"
        if result.error:
            line += f" ({result.error})"
        print(line)
    return results


def _export(workspace: Workspace, path: Path, style: str) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(dumps(workspace.export_structure(style=style)) + "\n", encoding="utf-8")
    return path.resolve()
