# plot_figure.py
"""Plotly rendering of the engine's visible graph for the web viewer."""

from typing import Optional

import plotly.graph_objects as go

from config import BIDIRECTIONAL
from engine import GraphEngine
from utils_geom import line_width

EDGE_COLOR = 'rgba(60,60,60,1)'
SELECTED_COLOR = '#e74c3c'
HIGHLIGHT_COLOR = '#1dd1a1'


def _hover(node) -> str:
    lines = [f"<b>{node.getLabel()}</b>"]
    if node.getSecondaryLabel():
        lines.append(node.getSecondaryLabel())
    if node.getCategory():
        lines.append(f"layer: {node.getCategory()}")
    for measure, score in node.getCentrality().items():
        lines.append(f"{measure}: {score:.4f}")
    return "<br>".join(lines)


def build_figure(engine: GraphEngine, measure: Optional[str] = None, height: int = 700) -> go.Figure:
    """
    One line trace per edge (width from its weight) and one marker trace for
    all nodes. With `measure` set, nodes are colored by that centrality score
    instead of their own color.
    """
    fig = go.Figure()
    nodes = engine.visibleNodes()
    byId = {n.id: n for n in nodes}

    # Draw edges
    for e in engine.visibleEdges():
        a, b = byId[e.getFrom()], byId[e.getTo()]
        fig.add_trace(go.Scatter(
            x=[a.x(), b.x()], y=[a.y(), b.y()],
            mode='lines',
            line=dict(color=SELECTED_COLOR if e.id == engine.selectedEdgeId else EDGE_COLOR,
                      width=line_width(e.getWeight())),
            hoverinfo='text',
            text=f"{a.getLabel()} {'<->' if e.getDirection() == BIDIRECTIONAL else '->'} "
                 f"{b.getLabel()} (w={e.getWeight():g})",
            showlegend=False
        ))

    # Draw nodes
    outline = []
    for n in nodes:
        if n.id == engine.selectedNodeId:
            outline.append(SELECTED_COLOR)
        elif n.isHighlighted():
            outline.append(HIGHLIGHT_COLOR)
        else:
            outline.append('#000000')

    if measure:
        marker = dict(
            size=[2 * n.getRadius() for n in nodes],
            color=[n.getCentrality().get(measure, 0.0) for n in nodes],
            colorscale='Viridis', showscale=True, colorbar=dict(title=measure),
            line=dict(width=2, color=outline),
        )
    else:
        marker = dict(
            size=[2 * n.getRadius() for n in nodes],
            color=[n.getColor() for n in nodes],
            line=dict(width=2, color=outline),
        )

    fig.add_trace(go.Scatter(
        x=[n.x() for n in nodes], y=[n.y() for n in nodes],
        mode='markers+text',
        text=[n.getLabel() for n in nodes], textposition='bottom center',
        hovertext=[_hover(n) for n in nodes], hoverinfo='text',
        customdata=[n.id for n in nodes],
        marker=marker,
        showlegend=False
    ))

    # Canvas coordinates grow downward
    fig.update_yaxes(scaleanchor="x", scaleratio=1, autorange="reversed")
    fig.update_layout(
        margin=dict(l=20, r=20, t=10, b=10),
        xaxis=dict(visible=False), yaxis=dict(visible=False),
        dragmode='pan', height=height
    )
    return fig
