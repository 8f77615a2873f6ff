"""
Sunburst Render Surface
Draws the drill-down chart from the zoom controller's render state with Plotly
and routes hover/click events to the controller through a binding table keyed
by element role, so nothing here needs to know how clicks are delivered.

Arcs are Barpolar bars (angle 0 at 12 o'clock, clockwise); labels sit at arc
midpoints; a transparent disc in the middle is the zoom-out control.
"""

import logging
from functools import partial

import numpy as np
import pandas as pd
import plotly.graph_objects as go

from shopping_dashboard.partition import DEFAULT_CHART_SIZE, DEFAULT_RADIUS, ancestors, radial_extent
from shopping_dashboard.zoom import RING_MAX, ZoomController

# Setup logging
logger = logging.getLogger(__name__)

GENDER_COLORS = {
    'Male': '#667eea',
    'Female': '#764ba2'
}
FALLBACK_COLOR = '#9e9e9e'

INTERIOR_OPACITY = 0.7
LEAF_OPACITY = 0.5

CENTER_ID = '__center__'

# Gap between neighbouring arcs, in radians; never more than half an arc's width
PAD_ANGLE = 0.005

# Trace order in the sunburst figure
ARC_TRACE = 0
LABEL_TRACE = 1
CENTER_TRACE = 2


def tooltip_text(layout: pd.DataFrame, node_id: str) -> str:
    """Ancestor path and value, e.g. 'root → Male → 20-29<br>Value: $130.00'"""
    path = ' → '.join(layout.at[i, 'name'] for i in ancestors(layout, node_id))
    return f"{path}<br>Value: ${layout.at[node_id, 'value']:,.2f}"


def arc_ids(layout: pd.DataFrame) -> list:
    """Node ids drawn as arcs, in trace point order (everything but the root)."""
    return layout.index[layout['depth'].to_numpy() > 0].tolist()


def arc_widths(intervals: pd.DataFrame) -> pd.Series:
    """Drawn angular width in degrees, less the padding gap."""
    span = intervals['x1'] - intervals['x0']
    return np.degrees(span - np.minimum(span / 2, PAD_ANGLE))


def label_positions(intervals: pd.DataFrame, radius: float = DEFAULT_RADIUS) -> pd.DataFrame:
    """Arc midpoints: angle in degrees and radius in pixels."""
    return pd.DataFrame({
        'theta': np.degrees((intervals['x0'] + intervals['x1']) / 2),
        'r': (intervals['y0'] + intervals['y1']) / 2 * radius
    }, index=intervals.index)


def build_sunburst_figure(controller: ZoomController, now=None, radius: float = DEFAULT_RADIUS,
                          size: int = DEFAULT_CHART_SIZE) -> go.Figure:
    """Render the controller's state at ``now`` as a Plotly figure."""
    layout = controller.layout
    now = controller.clock() if now is None else now
    ids = arc_ids(layout)
    current = controller.current(now).loc[ids]
    visible = controller.visibility(now).loc[ids]
    nodes = layout.loc[ids]

    radii = radial_extent(current, radius)
    base_opacity = np.where(nodes['is_leaf'], LEAF_OPACITY, INTERIOR_OPACITY)
    opacity = np.where(visible['arc'], base_opacity, 0.0)
    colors = [GENDER_COLORS.get(top, FALLBACK_COLOR) for top in nodes['top']]
    hover = [tooltip_text(layout, node_id) if shown else '' for node_id, shown in zip(ids, visible['arc'])]

    fig = go.Figure()

    fig.add_trace(go.Barpolar(
        r=(radii['outer'] - radii['inner']).tolist(),
        base=radii['inner'].tolist(),
        theta=np.degrees((current['x0'] + current['x1']) / 2).tolist(),
        width=arc_widths(current).tolist(),
        customdata=ids,
        hovertext=hover,
        hoverinfo=['text' if shown else 'skip' for shown in visible['arc']],
        marker=dict(
            color=colors,
            opacity=opacity.tolist(),
            line=dict(color='#fff', width=1)
        ),
        name='arcs'
    ))

    labels = label_positions(current, radius)
    fig.add_trace(go.Scatterpolar(
        r=labels['r'].tolist(),
        theta=labels['theta'].tolist(),
        mode='text',
        text=[name if shown else '' for name, shown in zip(nodes['name'], visible['label'])],
        textfont=dict(size=10),
        hoverinfo='skip',
        name='labels'
    ))

    back_to = layout.at[controller.center_target, 'name']
    fig.add_trace(go.Barpolar(
        r=[radius],
        base=[0],
        theta=[0],
        width=[360],
        customdata=[CENTER_ID],
        hovertext=[f"Back to {back_to}"],
        hoverinfo='text',
        marker=dict(color='rgba(0,0,0,0)', line=dict(width=0)),
        name='center'
    ))

    fig.update_layout(
        height=size,
        width=size,
        showlegend=False,
        template='plotly_white',
        margin=dict(l=10, r=10, t=10, b=10),
        font=dict(family='sans-serif', size=10),
        polar=dict(
            radialaxis=dict(range=[0, RING_MAX * radius], visible=False),
            angularaxis=dict(rotation=90, direction='clockwise', visible=False),
            bargap=0
        )
    )
    return fig


def build_event_bindings(controller: ZoomController) -> dict:
    """(element role, event) -> handler"""
    return {
        ('arc', 'click'): controller.click_arc,
        ('center', 'click'): controller.click_center,
        ('arc', 'hover'): partial(tooltip_text, controller.layout),
    }


def dispatch(bindings: dict, role: str, event: str, payload=None):
    handler = bindings.get((role, event))
    if handler is None:
        logger.debug(f"No handler for {role}/{event}")
        return None
    return handler() if payload is None else handler(payload)


def point_target(point: dict, ids: list):
    """
    Resolve a selected chart point to (role, node id).

    Uses the point's customdata when the host passes it through, otherwise
    the trace and point index.
    """
    custom = point.get('customdata')
    if isinstance(custom, (list, tuple)):
        custom = custom[0] if custom else None

    if custom is None:
        curve = point.get('curve_number')
        index = point.get('point_index', point.get('point_number'))
        if curve == CENTER_TRACE:
            custom = CENTER_ID
        elif curve == ARC_TRACE and index is not None and 0 <= index < len(ids):
            custom = ids[index]

    if custom is None:
        return None, None
    if custom == CENTER_ID:
        return 'center', None
    return 'arc', custom


def handle_selection(controller: ZoomController, bindings: dict, points) -> bool:
    """Forward the first actionable selected point as a click."""
    ids = arc_ids(controller.layout)
    interactive = controller.visibility()['interactive']

    for point in points or []:
        role, node_id = point_target(point, ids)
        if role == 'center':
            dispatch(bindings, 'center', 'click')
            return True
        if role == 'arc' and node_id in interactive.index and interactive[node_id]:
            return bool(dispatch(bindings, 'arc', 'click', node_id))
    return False
