"""
Plotly chart builders for the SiteSentinel dashboard.
All functions return plotly Figure objects.
"""
from __future__ import annotations

import plotly.graph_objects as go

from models import CategoryResult, LinkStatus
from scoring.scorer import score_color

_BG = "#1A1D27"
_PAPER = "#0E1117"
_GRID = "#2A2D3A"
_TEXT = "#FAFAFA"


def _base_layout(**kwargs) -> dict:
    return {
        "paper_bgcolor": _PAPER,
        "plot_bgcolor":  _BG,
        "font": {"color": _TEXT, "family": "sans-serif"},
        "margin": {"l": 20, "r": 20, "t": 40, "b": 20},
        **kwargs,
    }


def _title(text: str) -> dict:
    return {"text": text, "x": 0.5, "xanchor": "center", "font": {"size": 14, "color": _TEXT}}


# ── Overall score gauge ────────────────────────────────────────────────────────

def overall_score_gauge(score: float, threat_detected: bool = False) -> go.Figure:
    color = score_color(score)
    fig = go.Figure(go.Indicator(
        mode="gauge+number",
        value=score,
        domain={"x": [0, 1], "y": [0, 1]},
        number={"font": {"size": 48, "color": color}},
        gauge={
            "axis": {"range": [0, 100], "tickcolor": _TEXT, "tickfont": {"color": _TEXT}},
            "bar": {"color": color, "thickness": 0.25},
            "bgcolor": _BG,
            "borderwidth": 2,
            "bordercolor": _GRID,
            "steps": [
                {"range": [0, 45],   "color": "#3A1A1A"},
                {"range": [45, 60],  "color": "#3A241A"},
                {"range": [60, 75],  "color": "#3A2E1A"},
                {"range": [75, 90],  "color": "#1A2A3A"},
                {"range": [90, 100], "color": "#1A3A1A"},
            ],
        },
    ))
    fig.update_layout(
        **_base_layout(height=260),
        title=_title("Threat Detected" if threat_detected else "Trust Score"),
    )
    return fig


# ── Category scores (horizontal bar) ───────────────────────────────────────────

def category_scores_bar(categories: list[CategoryResult]) -> go.Figure:
    if not categories:
        return _empty_chart("No categories analysed")

    ordered = sorted(categories, key=lambda c: c.score)
    labels = [f"{c.icon} {c.category}" for c in ordered]
    scores = [c.score for c in ordered]

    fig = go.Figure(go.Bar(
        y=labels,
        x=scores,
        orientation="h",
        marker_color=[score_color(s) for s in scores],
        text=[f"{s}" + (" ⛔" if c.threat_detected else "") for s, c in zip(scores, ordered)],
        textposition="auto",
        hovertemplate="<b>%{y}</b><br>Score: %{x}<extra></extra>",
    ))
    fig.update_layout(
        **_base_layout(height=max(300, len(ordered) * 38 + 80)),
        title=_title("Category Scores"),
        xaxis={"range": [0, 100], "title": "Score", "gridcolor": _GRID, "color": _TEXT},
        yaxis={"gridcolor": _GRID, "color": _TEXT, "automargin": True},
        showlegend=False,
    )
    return fig


# ── Link status donut ──────────────────────────────────────────────────────────

def link_status_donut(counts: dict[str, int]) -> go.Figure:
    statuses = [s for s in LinkStatus.ALL if counts.get(s, 0) > 0]
    if not statuses:
        return _empty_chart("No external links")

    values = [counts[s] for s in statuses]
    fig = go.Figure(go.Pie(
        labels=statuses,
        values=values,
        hole=0.6,
        marker={"colors": [LinkStatus.COLORS[s] for s in statuses], "line": {"color": _BG, "width": 2}},
        hovertemplate="<b>%{label}</b>: %{value} links<extra></extra>",
    ))
    fig.update_layout(
        **_base_layout(height=260),
        title=_title("External Link Safety"),
        annotations=[{
            "text": f"<b>{sum(values)}</b><br>Links",
            "x": 0.5, "y": 0.5,
            "font_size": 18,
            "font_color": _TEXT,
            "showarrow": False,
        }],
        legend={"font": {"color": _TEXT}},
        showlegend=True,
    )
    return fig


# ── Reference sources bar ──────────────────────────────────────────────────────

def reference_sources_bar(reference_counts: dict[str, int]) -> go.Figure:
    items = sorted(((k, v) for k, v in reference_counts.items() if v), key=lambda kv: -kv[1])
    if not items:
        return _empty_chart("No references captured")

    kinds, values = zip(*items)
    fig = go.Figure(go.Bar(
        x=list(kinds),
        y=list(values),
        marker_color="#6C63FF",
        hovertemplate="<b>%{x}</b><br>References: %{y}<extra></extra>",
    ))
    fig.update_layout(
        **_base_layout(height=260),
        title=_title("Where Links Were Found"),
        xaxis={"title": "Source", "gridcolor": _GRID, "color": _TEXT},
        yaxis={"title": "References", "gridcolor": _GRID, "color": _TEXT},
        showlegend=False,
    )
    return fig


# ── Helper ─────────────────────────────────────────────────────────────────────

def _empty_chart(message: str) -> go.Figure:
    fig = go.Figure()
    fig.add_annotation(text=message, x=0.5, y=0.5, showarrow=False, font={"color": _TEXT, "size": 14})
    fig.update_layout(**_base_layout(height=260))
    return fig
