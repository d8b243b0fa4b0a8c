#!/usr/bin/env python3
"""
stategraph CLI - path, loop and partition analysis for state machines

Usage:
    stategraph paths <graph.json> <start>        Enumerate simple paths from a state
    stategraph loops <graph.json>                Detect loops
    stategraph split <graph.json> -k 3           Split into subgraphs with boundaries
    stategraph render <graph.json> -o out.png    Draw the graph colored by partition
"""

import argparse
import json
import signal
import sys
from contextlib import contextmanager

from . import config


def main(argv=None):
    parser = argparse.ArgumentParser(
        description="stategraph: path, loop and partition analysis for state machines",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
    stategraph paths machine.json start
    stategraph paths machine.json start --target done --via review
    stategraph loops machine.json --unique
    stategraph split machine.json -k 4 --json
        """
    )

    subparsers = parser.add_subparsers(dest="command", help="Commands")

    # paths command
    paths_parser = subparsers.add_parser("paths", help="Enumerate simple paths from a state")
    paths_parser.add_argument("graph", help="Path to graph JSON document")
    paths_parser.add_argument("start", help="Start state id")
    paths_parser.add_argument("--target", "-t", help="Stop at this state instead of terminal states")
    paths_parser.add_argument("--via", "-v", help="Only paths that visit this state before the target")
    paths_parser.add_argument("--limit", "-n", type=int, default=config.DEFAULT_MAX_RESULTS, help="Max paths")
    paths_parser.add_argument("--json", "-j", action="store_true", help="Output as JSON")

    # loops command
    loops_parser = subparsers.add_parser("loops", help="Detect loops")
    loops_parser.add_argument("graph", help="Path to graph JSON document")
    loops_parser.add_argument("--unique", "-u", action="store_true", help="Report each logical loop once")
    loops_parser.add_argument("--limit", "-n", type=int, default=config.DEFAULT_MAX_RESULTS, help="Max loops")
    loops_parser.add_argument("--json", "-j", action="store_true", help="Output as JSON")

    # split command
    split_parser = subparsers.add_parser("split", help="Split into subgraphs with boundary metadata")
    split_parser.add_argument("graph", help="Path to graph JSON document")
    split_parser.add_argument("-k", type=int, default=config.DEFAULT_TARGET_PARTITIONS, help="Target partitions")
    split_parser.add_argument("--json", "-j", action="store_true", help="Output as JSON")

    # render command
    render_parser = subparsers.add_parser("render", help="Render the graph colored by partition")
    render_parser.add_argument("graph", help="Path to graph JSON document")
    render_parser.add_argument("--output", "-o", default="stategraph.png", help="Output file path")
    render_parser.add_argument("-k", type=int, default=config.DEFAULT_TARGET_PARTITIONS, help="Target partitions")
    render_parser.add_argument("--layout", "-l", choices=["spring", "kamada_kawai", "circular"], default="spring")

    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 1

    from .core import StateGraphError, load_graph

    try:
        graph = load_graph(args.graph)
    except (OSError, StateGraphError) as e:
        print(f"Error loading graph: {e}", file=sys.stderr)
        return 1

    print(f"Loaded {len(graph)} states", file=sys.stderr)

    try:
        if args.command == "paths":
            return cmd_paths(graph, args)
        elif args.command == "loops":
            return cmd_loops(graph, args)
        elif args.command == "split":
            return cmd_split(graph, args)
        elif args.command == "render":
            return cmd_render(graph, args)
    except (StateGraphError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    return 0


@contextmanager
def _interrupt_cancels(token):
    """Ctrl-C cancels the running search instead of killing the process."""
    previous = signal.signal(signal.SIGINT, lambda signum, frame: token.cancel())
    try:
        yield
    finally:
        signal.signal(signal.SIGINT, previous)


def _format_steps(states, rules, rejected):
    lines = []
    for i, state in enumerate(states):
        lines.append(f"  {i + 1}. {state.name}")
        if i < len(rules):
            skipped = ", ".join(str(r.condition) for r in rejected[i])
            suffix = f"  (rejected: {skipped})" if skipped else ""
            lines.append(f"       --[{rules[i].condition}]-->{suffix}")
    return lines


def cmd_paths(graph, args):
    """Handle paths command."""
    from .core import CancellationToken, PathMode, SearchCancelled, enumerate_paths

    if args.via and not args.target:
        print("--via requires --target", file=sys.stderr)
        return 1

    mode = PathMode.TO_TERMINAL
    if args.target:
        mode = PathMode.THROUGH_WAYPOINT if args.via else PathMode.TO_TARGET

    token = CancellationToken()
    found = []

    def on_path(path):
        found.append(path)
        if not args.json:
            print(f"Path {len(found)}:")
            print("\n".join(_format_steps(path.states, path.rules, path.rejected)))

    try:
        with _interrupt_cancels(token):
            report = enumerate_paths(
                graph,
                args.start,
                mode=mode,
                target_id=args.target,
                waypoint_id=args.via,
                on_path_found=on_path,
                is_cancelled=token.is_cancelled,
                max_results=args.limit,
            )
        truncated = report.truncated
    except SearchCancelled:
        print(f"Search cancelled after {len(found)} paths", file=sys.stderr)
        truncated = True

    if args.json:
        print(json.dumps({"paths": [p.to_dict() for p in found], "truncated": truncated}, indent=2))
    else:
        print(f"\nFound {len(found)} path(s){' (limit reached)' if truncated else ''}")
    return 0


def cmd_loops(graph, args):
    """Handle loops command."""
    from .core import CancellationToken, SearchCancelled, detect_loops, unique_loops

    token = CancellationToken()

    try:
        with _interrupt_cancels(token):
            report = detect_loops(graph, is_cancelled=token.is_cancelled, max_results=args.limit)
        loops, truncated = report.results, report.truncated
    except SearchCancelled as e:
        print("Search cancelled", file=sys.stderr)
        loops, truncated = e.results, True

    if args.unique:
        loops = unique_loops(loops)

    if args.json:
        print(json.dumps({"loops": [lp.to_dict() for lp in loops], "truncated": truncated}, indent=2))
        return 0

    if not loops:
        print("No loops found.")
        return 0
    for i, lp in enumerate(loops, 1):
        print(f"Loop {i}: " + " -> ".join(s.name for s in lp.closed_states))
    print(f"\nFound {len(loops)} loop(s){' (limit reached)' if truncated else ''}")
    return 0


def cmd_split(graph, args):
    """Handle split command."""
    from .core import split_graph

    subgraphs = split_graph(graph, args.k)

    if args.json:
        print(json.dumps({"subgraphs": [sg.to_dict() for sg in subgraphs]}, indent=2))
        return 0

    for sg in subgraphs:
        print(f"## {sg.name} ({len(sg.states)} states)")
        print("  States: " + ", ".join(s.name for s in sg.states))
        if sg.outgoing_boundary:
            print("  Outgoing: " + ", ".join(r.name for r in sg.outgoing_boundary))
        if sg.incoming_boundary:
            print("  Incoming: " + ", ".join(r.name for r in sg.incoming_boundary))
        print()
    return 0


def cmd_render(graph, args):
    """Handle render command."""
    try:
        from .visualization.renderer import GraphRenderer
    except ImportError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    from .core import partition

    renderer = GraphRenderer(graph)
    output = renderer.render_partitions(partition(graph, args.k), args.output, layout=args.layout)
    print(f"Rendered to {output}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
