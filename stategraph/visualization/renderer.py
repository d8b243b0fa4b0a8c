"""
Graph visualization using NetworkX and Matplotlib.

Renders a state machine as an image with:
- States colored by partition
- Terminal states drawn with a heavier outline
- Rules crossing partition boundaries highlighted
- Dangling rule targets shown as grey "Unknown" nodes
"""

from typing import Dict, List, Optional, Sequence, Tuple

import matplotlib.patches as mpatches
import matplotlib.pyplot as plt
import networkx as nx

from ..core.models import StateGraph
from ..core.partition import Partition


# Color palette for partitions
PARTITION_COLORS = [
    '#4E79A7',  # Blue
    '#F28E2B',  # Orange
    '#E15759',  # Red
    '#76B7B2',  # Teal
    '#59A14F',  # Green
    '#EDC948',  # Yellow
    '#B07AA1',  # Purple
    '#FF9DA7',  # Pink
    '#9C755F',  # Brown
    '#BAB0AC',  # Gray
]

DEFAULT_COLOR = PARTITION_COLORS[0]
UNKNOWN_COLOR = '#DDDDDD'
BOUNDARY_EDGE_COLOR = '#FF0000'
EDGE_COLOR = '#999999'


def to_networkx(graph: StateGraph) -> "nx.MultiDiGraph":
    """Convert a StateGraph to a NetworkX MultiDiGraph (one edge per rule)."""
    G = nx.MultiDiGraph()

    for state in graph.states:
        G.add_node(state.id, name=state.name, terminal=state.is_terminal, known=True)

    for state in graph.states:
        for rule in state.rules:
            if rule.target_id not in G:
                ref = graph.resolve(rule.target_id)
                G.add_node(rule.target_id, name=ref.name, terminal=False, known=False)
            G.add_edge(
                state.id,
                rule.target_id,
                key=rule.id,
                condition=str(rule.condition),
                priority=rule.priority,
            )

    return G


class GraphRenderer:
    """
    Renders state graphs as images.

    Usage:
        renderer = GraphRenderer(graph)
        renderer.render("machine.png")
        renderer.render_partitions(partition(graph, 3), "split.png")
    """

    def __init__(self, graph: StateGraph):
        self.graph = graph
        self.nx_graph = to_networkx(graph)

    @staticmethod
    def _layout(G: "nx.DiGraph", layout: str) -> Dict[str, Tuple[float, float]]:
        if layout == "spring":
            return nx.spring_layout(G, k=2, iterations=50, seed=42)
        elif layout == "kamada_kawai":
            return nx.kamada_kawai_layout(G)
        elif layout == "circular":
            return nx.circular_layout(G)
        return nx.spring_layout(G, seed=42)

    def render(
        self,
        output_path: str,
        title: str = "State Machine",
        figsize: Tuple[int, int] = (16, 12),
        layout: str = "spring",
        show_labels: bool = True,
        colors: Optional[Dict[str, str]] = None,
        boundary_edges: Optional[Sequence[Tuple[str, str]]] = None,
        legend: Optional[List[Tuple[str, str]]] = None,
    ) -> str:
        """
        Render the graph to an image file.

        Args:
            output_path: Path to save the image (PNG, PDF, SVG supported)
            colors: state id -> color; unlisted known states use the default color
            boundary_edges: (source, target) pairs drawn in the boundary color
            legend: (label, color) entries

        Returns:
            Path to the saved image
        """
        if len(self.nx_graph) == 0:
            raise ValueError("Graph is empty, nothing to render")

        colors = colors or {}
        highlighted = set(boundary_edges or ())

        # Parallel rules collapse to one drawn arrow
        drawn = nx.DiGraph(self.nx_graph)

        fig, ax = plt.subplots(figsize=figsize)
        pos = self._layout(drawn, layout)

        edge_list = list(drawn.edges())
        nx.draw_networkx_edges(
            drawn, pos,
            edgelist=edge_list,
            edge_color=[BOUNDARY_EDGE_COLOR if e in highlighted else EDGE_COLOR for e in edge_list],
            alpha=0.6,
            arrows=True,
            arrowsize=12,
            connectionstyle="arc3,rad=0.1",
            ax=ax
        )

        nodes = list(drawn.nodes())
        node_colors = []
        for n in nodes:
            if not drawn.nodes[n]["known"]:
                node_colors.append(UNKNOWN_COLOR)
            else:
                node_colors.append(colors.get(n, DEFAULT_COLOR))
        nx.draw_networkx_nodes(
            drawn, pos,
            nodelist=nodes,
            node_color=node_colors,
            node_size=600,
            linewidths=[2.5 if drawn.nodes[n]["terminal"] else 0.5 for n in nodes],
            edgecolors='#333333',
            alpha=0.9,
            ax=ax
        )

        if show_labels:
            labels = {n: drawn.nodes[n]["name"] for n in nodes}
            nx.draw_networkx_labels(drawn, pos, labels=labels, font_size=8, font_weight='bold', ax=ax)

        if legend:
            ax.legend(handles=[mpatches.Patch(color=c, label=lbl) for lbl, c in legend], loc='upper left', fontsize=8)

        ax.set_title(title, fontsize=14, fontweight='bold')
        ax.axis('off')

        plt.tight_layout()
        plt.savefig(output_path, dpi=150, bbox_inches='tight', facecolor='white')
        plt.close(fig)

        return output_path

    def render_partitions(
        self,
        partitions: Sequence[Partition],
        output_path: str,
        layout: str = "spring",
        figsize: Tuple[int, int] = (16, 12),
    ) -> str:
        """Render with states colored by partition and cross-partition rules in red."""
        colors: Dict[str, str] = {}
        owner: Dict[str, int] = {}
        legend: List[Tuple[str, str]] = []
        for i, part in enumerate(partitions):
            color = PARTITION_COLORS[i % len(PARTITION_COLORS)]
            legend.append((part.name, color))
            for sid in part.state_ids:
                colors[sid] = color
                owner[sid] = i

        boundary = [
            (s.id, r.target_id)
            for s in self.graph.states
            for r in s.rules
            if owner.get(s.id) != owner.get(r.target_id)
        ]

        return self.render(
            output_path,
            title=f"State Machine ({len(partitions)} subgraphs)",
            figsize=figsize,
            layout=layout,
            colors=colors,
            boundary_edges=boundary,
            legend=legend,
        )
