"""SAM CLI - lay out relationship graphs from the command line.

Usage:
    sam layout people.json                       Print the laid-out graph as JSON
    sam layout people.json -o graph.graphml -f graphml
    sam layout people.json --detect-communities  Cluster by detected communities
    sam -v layout people.json                    With debug logging
"""

from __future__ import annotations

import argparse
import logging
import sys
from collections import Counter
from pathlib import Path
from typing import Any, NoReturn

import pydantic
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from sam import __version__
from sam.config import LayoutConfig, load_config
from sam.errors import ConfigurationError, ExportError, SamError, ValidationError
from sam.graph.export import EXPORTERS, export_graph
from sam.graph.filters import GraphFilter, filter_graph
from sam.graph.payload import load_payload
from sam.graph.pipeline import GraphData, build_and_layout

# Summary goes to stderr so stdout carries only the exported graph
console = Console(stderr=True)
logger = logging.getLogger(__name__)


def setup_logging(verbose: bool = False) -> None:
    """Configure logging based on verbosity level.

    Args:
        verbose: If True, set DEBUG level; otherwise INFO.
    """
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[logging.StreamHandler()],
    )


def _format_sam_error(error: SamError) -> None:
    """Display a SAM error with a hint for its type."""
    console.print(f"[red]Error: {escape(error.message)}[/red]")

    if isinstance(error, ValidationError):
        if error.details.get("field"):
            console.print(f"[yellow]Field: {error.details['field']}[/yellow]")
    elif isinstance(error, ConfigurationError):
        if error.details.get("config_path"):
            console.print(f"[yellow]Config file: {error.details['config_path']}[/yellow]")
    elif isinstance(error, ExportError):
        if error.details.get("supported"):
            console.print(
                f"[yellow]Supported formats: {', '.join(error.details['supported'])}[/yellow]"
            )

    logger.debug(
        "SamError details - code=%s, details=%s, cause=%s",
        error.code.value,
        error.details,
        error.cause,
    )


def _layout_config(args: argparse.Namespace) -> tuple[LayoutConfig, GraphFilter]:
    config = load_config(args.config, strict=args.config is not None)

    overrides: dict[str, Any] = {}
    if args.width is not None:
        overrides["width"] = args.width
    if args.height is not None:
        overrides["height"] = args.height
    if args.iterations is not None:
        overrides["iterations"] = args.iterations
    if args.seed is not None:
        overrides["random_seed"] = args.seed

    try:
        layout = LayoutConfig.model_validate({**config.layout.model_dump(), **overrides})
    except pydantic.ValidationError as e:
        raise ConfigurationError(f"Invalid layout options: {e}", cause=e) from e

    filter_overrides: dict[str, Any] = {
        "roles": frozenset(args.role or ()),
        "focus_ids": frozenset(args.focus or ()),
    }
    if args.hide_orphans:
        filter_overrides["show_orphaned"] = False
    if args.hide_ghosts:
        filter_overrides["show_ghosts"] = False
    if args.min_weight is not None:
        filter_overrides["min_edge_weight"] = args.min_weight

    return layout, GraphFilter.from_config(config.filters, **filter_overrides)


def _print_summary(graph: GraphData) -> None:
    table = Table(title="Relationship Graph")
    table.add_column("Metric", style="cyan")
    table.add_column("Value", justify="right")

    table.add_row("Nodes", str(graph.node_count))
    table.add_row("Edges", str(graph.edge_count))
    for edge_type, count in sorted(Counter(e.edge_type.value for e in graph.edges).items()):
        table.add_row(f"  {edge_type}", str(count))
    table.add_row("Ghosts", str(sum(1 for n in graph.nodes if n.is_ghost)))
    table.add_row("Orphans", str(sum(1 for n in graph.nodes if n.is_orphaned)))
    table.add_row("Clusters", str(graph.metadata.get("cluster_count", 0)))
    max_speed = max((n.speed for n in graph.nodes), default=0.0)
    table.add_row("Max residual velocity", f"{max_speed:.4f}")

    console.print(table)


def cmd_layout(args: argparse.Namespace) -> int:
    """Build, lay out and export a graph from a payload file."""
    layout, graph_filter = _layout_config(args)
    inputs = load_payload(args.input)

    graph = build_and_layout(inputs, layout, detect=args.detect_communities)
    nodes, edges = filter_graph(graph.nodes, graph.edges, graph_filter)
    graph = GraphData(nodes=nodes, edges=edges, metadata=graph.metadata)

    text = export_graph(graph, args.format, args.output)
    if args.output is None:
        sys.stdout.write(text + "\n")
    else:
        console.print(f"[green]Wrote {args.format} to {args.output}[/green]")

    _print_summary(graph)
    return 0


class HelpFormatter(argparse.RawDescriptionHelpFormatter):
    """Custom help formatter with improved argument formatting."""

    def __init__(self, prog: str) -> None:
        super().__init__(prog, max_help_position=30, width=100)


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser with all subcommands.

    Returns:
        Configured ArgumentParser.
    """
    parser = argparse.ArgumentParser(
        prog="sam",
        description="SAM - relationship graph builder and layout engine",
        formatter_class=HelpFormatter,
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="enable debug logging for troubleshooting",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")

    subparsers = parser.add_subparsers(
        dest="command",
        title="commands",
        description="Use 'sam <command> --help' for more information on a specific command.",
        metavar="<command>",
    )

    layout_parser = subparsers.add_parser(
        "layout",
        help="build and lay out a graph from a JSON payload",
        description=(
            "Build the relationship graph described by a JSON payload, run the\n"
            "force-directed layout and export the result."
        ),
        formatter_class=HelpFormatter,
        epilog="""
Examples:
  sam layout people.json                     Print JSON to stdout
  sam layout people.json -o out.graphml -f graphml
  sam layout people.json --seed 7 --iterations 500
  sam layout people.json --focus p1 --hide-ghosts
        """,
    )
    layout_parser.add_argument("input", type=Path, help="graph payload (JSON)")
    layout_parser.add_argument("-o", "--output", type=Path, help="write export here")
    layout_parser.add_argument(
        "-f",
        "--format",
        choices=sorted(EXPORTERS),
        default="json",
        help="export format (default: json)",
    )
    layout_parser.add_argument("--width", type=float, help="canvas width")
    layout_parser.add_argument("--height", type=float, help="canvas height")
    layout_parser.add_argument("--iterations", type=int, help="simulation iterations")
    layout_parser.add_argument("--seed", type=int, help="random seed for initial jitter")
    layout_parser.add_argument("--config", type=Path, help="graph config file")
    layout_parser.add_argument(
        "--detect-communities",
        action="store_true",
        help="cluster by detected communities when the payload has no contexts",
    )
    layout_parser.add_argument(
        "--role", action="append", metavar="ROLE", help="only show people with this role"
    )
    layout_parser.add_argument(
        "--focus", action="append", metavar="ID", help="only show this person and neighbours"
    )
    layout_parser.add_argument("--hide-orphans", action="store_true", help="hide unlinked people")
    layout_parser.add_argument("--hide-ghosts", action="store_true", help="hide ghost nodes")
    layout_parser.add_argument("--min-weight", type=float, help="hide lighter edges")
    layout_parser.set_defaults(func=cmd_layout)

    return parser


def main(argv: list[str] | None = None) -> int:
    """Main entry point for the CLI.

    Args:
        argv: Command-line arguments. Uses sys.argv if None.

    Returns:
        Exit code.
    """
    parser = create_parser()
    args = parser.parse_args(argv)

    setup_logging(args.verbose)

    if args.command is None:
        parser.print_help()
        return 0

    try:
        result: int = args.func(args)
    except SamError as e:
        _format_sam_error(e)
        return 1
    return result


def run() -> NoReturn:
    """Entry point that handles interrupts and exit."""
    try:
        exit_code = main()
    except KeyboardInterrupt:
        console.print("\n[dim]Interrupted.[/dim]")
        exit_code = 130
    except Exception as e:
        console.print(f"[red]Unexpected error: {e}[/red]")
        logger.exception("Unexpected error")
        exit_code = 1

    sys.exit(exit_code)


if __name__ == "__main__":
    run()
