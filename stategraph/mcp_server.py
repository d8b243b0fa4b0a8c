#!/usr/bin/env python3
"""
stategraph MCP Server - state machine path, loop and partition analysis

Tools let an agent load a state machine document and ask:
1. Which paths lead from a state to an end (or to a target, or via a waypoint)?
2. Where are the loops?
3. How does the machine split into smaller subgraphs, and what crosses between them?
"""

import json
from enum import Enum
from typing import Optional

from mcp.server.fastmcp import FastMCP
from pydantic import BaseModel, ConfigDict, Field

from . import config
from .core import (
    PathMode,
    SearchCancelled,
    StateGraph,
    StateGraphError,
    detect_loops,
    enumerate_paths,
    graph_from_dict,
    load_graph,
    split_graph,
    unique_loops,
)

# Initialize MCP server
mcp = FastMCP("stategraph_mcp")

# Graph loaded for this session
_graph: Optional[StateGraph] = None
_graph_source: Optional[str] = None

# Constants
CHARACTER_LIMIT = 25000


class ResponseFormat(str, Enum):
    """Output format for tool responses."""
    MARKDOWN = "markdown"
    JSON = "json"


# ============================================================================
# Input Models
# ============================================================================

class LoadGraphInput(BaseModel):
    """Input for loading a state machine."""
    model_config = ConfigDict(str_strip_whitespace=True, extra='forbid')

    path: Optional[str] = Field(
        default=None,
        description="Path to a graph JSON document ({'states': [...]})",
    )
    document: Optional[str] = Field(
        default=None,
        description="Inline graph JSON document, used when no path is given",
    )


class FindPathsInput(BaseModel):
    """Input for path enumeration."""
    model_config = ConfigDict(str_strip_whitespace=True, extra='forbid')

    start: str = Field(..., description="Start state id", min_length=1)
    target: Optional[str] = Field(
        default=None,
        description="Target state id. Omit to search for paths to any terminal state",
    )
    via: Optional[str] = Field(
        default=None,
        description="State id the path must visit before reaching the target (requires target)",
    )
    limit: int = Field(
        default=config.DEFAULT_MAX_RESULTS,
        description="Maximum number of paths to return",
        ge=1,
        le=1000,
    )
    response_format: ResponseFormat = Field(default=ResponseFormat.MARKDOWN)


class DetectLoopsInput(BaseModel):
    """Input for loop detection."""
    model_config = ConfigDict(str_strip_whitespace=True, extra='forbid')

    unique: bool = Field(default=True, description="Report each logical loop once")
    limit: int = Field(
        default=config.DEFAULT_MAX_RESULTS,
        description="Maximum number of loop reports to collect",
        ge=1,
        le=1000,
    )
    response_format: ResponseFormat = Field(default=ResponseFormat.MARKDOWN)


class SplitGraphInput(BaseModel):
    """Input for graph splitting."""
    model_config = ConfigDict(str_strip_whitespace=True, extra='forbid')

    partitions: int = Field(
        default=config.DEFAULT_TARGET_PARTITIONS,
        description="Target number of partitions (clamped to 2..number of states)",
        ge=1,
    )
    response_format: ResponseFormat = Field(default=ResponseFormat.MARKDOWN)


# ============================================================================
# Helper Functions
# ============================================================================

def _ensure_graph() -> str:
    """Return an error message if no graph is loaded."""
    if _graph is None:
        return "Error: No graph loaded. Call stategraph_load first."
    return ""


def _truncate_response(response: str, message: str = "") -> str:
    """Truncate response if too long."""
    if len(response) <= CHARACTER_LIMIT:
        return response

    truncated = response[:CHARACTER_LIMIT - 200]
    truncated += f"\n\n---\n**TRUNCATED**: Response exceeded {CHARACTER_LIMIT} characters. {message}"
    return truncated


def _steps_markdown(states, rules, rejected) -> str:
    parts = []
    for i, state in enumerate(states):
        parts.append(f"`{state.name}`")
        if i < len(rules):
            note = ""
            if rejected[i]:
                note = " (after " + ", ".join(str(r.condition) for r in rejected[i]) + ")"
            parts.append(f"--[{rules[i].condition}{note}]-->")
    return " ".join(parts)


# ============================================================================
# MCP Tools
# ============================================================================

@mcp.tool(
    name="stategraph_load",
    annotations={
        "title": "Load State Machine",
        "readOnlyHint": True,
        "destructiveHint": False,
        "idempotentHint": True,
    }
)
async def stategraph_load(params: LoadGraphInput) -> str:
    """Load a state machine from a JSON file or an inline JSON document."""
    global _graph, _graph_source

    try:
        if params.path:
            graph = load_graph(params.path)
            source = params.path
        elif params.document:
            graph = graph_from_dict(json.loads(params.document))
            source = "<inline>"
        else:
            return "Error: Provide either 'path' or 'document'."
    except (OSError, ValueError, StateGraphError) as e:
        return f"Error loading graph: {e}"

    _graph, _graph_source = graph, source
    stats = graph.stats()
    return (
        f"Loaded {stats['states']} states and {stats['rules']} rules from {source} "
        f"({stats['terminal_states']} terminal, {stats['dangling_rules']} dangling rules)"
    )


@mcp.tool(
    name="stategraph_find_paths",
    annotations={
        "title": "Find Paths",
        "readOnlyHint": True,
        "destructiveHint": False,
        "idempotentHint": True,
    }
)
async def stategraph_find_paths(params: FindPathsInput) -> str:
    """
    Enumerate simple paths from a start state.

    Without a target, paths end at terminal states (no outgoing rules). With a
    target, paths end there; with `via` as well, only paths that visited `via`
    first count. Each step lists the rules tried before the one taken.
    """
    error = _ensure_graph()
    if error:
        return error
    if params.via and not params.target:
        return "Error: 'via' requires 'target'."

    mode = PathMode.TO_TERMINAL
    if params.target:
        mode = PathMode.THROUGH_WAYPOINT if params.via else PathMode.TO_TARGET

    try:
        report = enumerate_paths(
            _graph,
            params.start,
            mode=mode,
            target_id=params.target,
            waypoint_id=params.via,
            max_results=params.limit,
        )
    except (StateGraphError, ValueError) as e:
        return f"Error: {e}"

    if params.response_format == ResponseFormat.JSON:
        return _truncate_response(json.dumps({
            "paths": [p.to_dict() for p in report.results],
            "truncated": report.truncated,
        }, indent=2))

    if not report.results:
        return f"No paths found from `{params.start}`."

    lines = [f"# Paths from `{params.start}` ({len(report.results)}{'+' if report.truncated else ''})", ""]
    for i, path in enumerate(report.results, 1):
        lines.append(f"{i}. " + _steps_markdown(path.states, path.rules, path.rejected))
    return _truncate_response("\n".join(lines), "Lower 'limit' or use a target.")


@mcp.tool(
    name="stategraph_detect_loops",
    annotations={
        "title": "Detect Loops",
        "readOnlyHint": True,
        "destructiveHint": False,
        "idempotentHint": True,
    }
)
async def stategraph_detect_loops(params: DetectLoopsInput) -> str:
    """Find loops. The same loop can be reported once per state on it unless `unique` is set."""
    error = _ensure_graph()
    if error:
        return error

    try:
        report = detect_loops(_graph, max_results=params.limit)
    except SearchCancelled as e:
        return f"Error: search cancelled after {len(e.results)} loops"

    loops = unique_loops(report.results) if params.unique else report.results

    if params.response_format == ResponseFormat.JSON:
        return _truncate_response(json.dumps({
            "loops": [lp.to_dict() for lp in loops],
            "truncated": report.truncated,
        }, indent=2))

    if not loops:
        return "No loops found in the state machine."

    lines = [f"# Loops ({len(loops)})", ""]
    for i, lp in enumerate(loops, 1):
        lines.append(f"{i}. " + " -> ".join(f"`{s.name}`" for s in lp.closed_states))
    return _truncate_response("\n".join(lines))


@mcp.tool(
    name="stategraph_split",
    annotations={
        "title": "Split State Machine",
        "readOnlyHint": True,
        "destructiveHint": False,
        "idempotentHint": True,
    }
)
async def stategraph_split(params: SplitGraphInput) -> str:
    """
    Split the state machine into subgraphs.

    Disconnected pieces are returned as they are; a connected machine is split
    around its best-connected states. Boundary states show what each subgraph
    leads to and is entered from.
    """
    error = _ensure_graph()
    if error:
        return error

    subgraphs = split_graph(_graph, params.partitions)

    if params.response_format == ResponseFormat.JSON:
        return _truncate_response(json.dumps({"subgraphs": [sg.to_dict() for sg in subgraphs]}, indent=2))

    lines = [f"# {len(subgraphs)} subgraph(s) of {_graph_source}", ""]
    for sg in subgraphs:
        lines.append(f"## {sg.name} ({len(sg.states)} states)")
        lines.append("States: " + ", ".join(f"`{s.name}`" for s in sg.states))
        out = ", ".join(f"`{r.name}`" for r in sg.outgoing_boundary) or "none"
        inc = ", ".join(f"`{r.name}`" for r in sg.incoming_boundary) or "none"
        lines.append(f"Outgoing: {out}")
        lines.append(f"Incoming: {inc}")
        lines.append("")
    return _truncate_response("\n".join(lines))


# Entry point for running the server
def main():
    """Run the MCP server."""
    mcp.run()


if __name__ == "__main__":
    main()
