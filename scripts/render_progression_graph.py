#!/usr/bin/env python3
"""Render the realm ladder, its cycles and its reincarnation paths."""

from __future__ import annotations

import argparse
from pathlib import Path
import sys

import matplotlib.pyplot as plt
import networkx as nx
from matplotlib.lines import Line2D

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from cultivation.balance import BalanceConfig, load_balance
from cultivation.models.realms import DEFAULT_LADDER, Cycle, RealmLadder
from cultivation.stages import StageCostModel
from cultivation.utils import format_number, format_years

EDGE_STYLES = {
    "advance": {"color": "#2ca02c", "style": "solid", "width": 2.0, "label": "Breakthrough"},
    "mandatory": {"color": "#d62728", "style": "dashed", "width": 1.8, "label": "Mandatory reincarnation"},
    "ascension": {"color": "#9467bd", "style": "dashed", "width": 1.8, "label": "Ascension"},
}

CYCLE_COLOURS = {
    Cycle.MORTAL: "#f5deb3",
    Cycle.SPIRIT: "#aec7e8",
    None: "#dddddd",
}


def build_graph(balance: BalanceConfig, ladder: RealmLadder) -> nx.DiGraph:
    stages = StageCostModel(balance.stage_requirement, len(ladder))
    graph = nx.DiGraph()
    for index, realm in enumerate(ladder):
        lifespan = balance.lifespan.configured_for(index)
        graph.add_node(
            index,
            label=(
                f"{realm.name}\n"
                f"stage 1: {format_number(stages.requirement(index, 1))} qi\n"
                f"life: {format_years(lifespan)}"
            ),
            cycle=balance.cycles.cycle_of(index),
        )
    for index in range(len(ladder) - 1):
        if index == ladder.gate_index:
            continue
        graph.add_edge(index, index + 1, kind="advance")
    graph.add_edge(ladder.gate_index, 0, kind="mandatory")
    graph.add_edge(ladder.gate_index, ladder.gate_index + 1, kind="advance")
    graph.add_edge(ladder.last_index, 0, kind="ascension")
    return graph


def render_progression_graph(
    output_path: Path, balance: BalanceConfig, ladder: RealmLadder = DEFAULT_LADDER, dpi: int = 150
) -> None:
    graph = build_graph(balance, ladder)
    pos = {index: (index % 6, -(index // 6)) for index in graph.nodes}

    plt.figure(figsize=(16, 6), dpi=dpi)
    nx.draw_networkx_nodes(
        graph,
        pos,
        node_color=[CYCLE_COLOURS[graph.nodes[node]["cycle"]] for node in graph.nodes],
        node_size=5200,
        node_shape="s",
        linewidths=0.8,
        edgecolors="#333333",
    )
    labels = {node: graph.nodes[node]["label"] for node in graph.nodes}
    nx.draw_networkx_labels(graph, pos, labels=labels, font_size=6)

    for kind, style in EDGE_STYLES.items():
        edges = [(u, v) for u, v, data in graph.edges(data=True) if data["kind"] == kind]
        if not edges:
            continue
        nx.draw_networkx_edges(
            graph,
            pos,
            edgelist=edges,
            edge_color=style["color"],
            width=style["width"],
            style=style["style"],
            arrows=True,
            arrowsize=12,
            node_size=5200,
            connectionstyle="arc3,rad=0.15" if kind != "advance" else "arc3",
        )

    handles = [
        Line2D([], [], color=style["color"], linestyle=style["style"], linewidth=style["width"], label=style["label"])
        for style in EDGE_STYLES.values()
    ]
    for cycle in Cycle:
        handles.append(
            Line2D([], [], marker="s", linestyle="", color=CYCLE_COLOURS[cycle], label=cycle.display_name)
        )
    plt.legend(handles=handles, loc="lower right", frameon=False, fontsize=8)
    plt.axis("off")
    plt.tight_layout()

    output_path.parent.mkdir(parents=True, exist_ok=True)
    plt.savefig(output_path, bbox_inches="tight")
    plt.close()


def main() -> None:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument(
        "--output",
        type=Path,
        default=Path("img/progression.png"),
        help="Where to write the rendered graph image.",
    )
    parser.add_argument("--balance", type=Path, default=None, help="Balance document (JSON or TOML).")
    parser.add_argument("--dpi", type=int, default=150, help="Rendering DPI for the generated figure.")
    args = parser.parse_args()

    balance = load_balance(args.balance, len(DEFAULT_LADDER))
    render_progression_graph(args.output, balance, dpi=args.dpi)


if __name__ == "__main__":
    main()
