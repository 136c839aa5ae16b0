"""Output formatting utilities for the CLI."""

from __future__ import annotations

import json
import sys
from fractions import Fraction
from typing import Any

import click

from svcmap.topology.models import ApplicationNode, Topology

NODE_HEADERS = ["ID", "Kind", "Name", "Type", "SLA", "CPM", "Avg RT", "Apdex", "Alarm", "Servers"]
CALL_HEADERS = ["Source", "Target", "Call Type", "CPM", "Avg RT"]


def format_ratio(value: Fraction) -> str:
    """Whole ratios print as integers, the rest with two decimals."""
    if value.denominator == 1:
        return str(value.numerator)
    return f"{float(value):.2f}"


def print_table(headers: list[str], rows: list[list[str]]) -> None:
    """Print rows under ``headers`` in a bordered table.

    Short rows are padded with blanks; cells beyond the header count are
    dropped.
    """
    if not headers:
        return

    rows = [(list(row) + [""] * len(headers))[: len(headers)] for row in rows]
    widths = [max([len(h)] + [len(r[i]) for r in rows]) for i, h in enumerate(headers)]
    border = "+" + "+".join("-" * (w + 2) for w in widths) + "+"

    def line(cells: list[str]) -> str:
        return "| " + " | ".join(c.ljust(w) for c, w in zip(cells, widths)) + " |"

    click.echo(border)
    click.echo(line(headers))
    click.echo(border)
    for row in rows:
        click.echo(line(row))
    click.echo(border)


def print_json(data: Any) -> None:
    json.dump(data, sys.stdout, indent=2, default=str)
    click.echo()


def print_topology(topology: Topology) -> None:
    """Print nodes and calls as two tables."""
    node_rows: list[list[str]] = []
    for node in topology.nodes:
        row = [str(node.id), node.kind, node.name, node.type]
        # Conjectural and user nodes carry no metrics.
        if isinstance(node, ApplicationNode):
            row += [
                str(node.sla),
                str(node.cpm),
                format_ratio(node.avg_response_time),
                str(node.apdex),
                "yes" if node.alarm else "no",
                str(node.num_of_server),
            ]
        node_rows.append(row)
    print_table(NODE_HEADERS, node_rows)

    call_rows = [
        [
            f"{c.source_name} ({c.source})",
            f"{c.target_name} ({c.target})",
            c.call_type,
            str(c.cpm),
            format_ratio(c.avg_response_time),
        ]
        for c in topology.calls
    ]
    print_table(CALL_HEADERS, call_rows)
