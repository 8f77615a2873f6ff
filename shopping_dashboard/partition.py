"""
Radial Partition Layout
Turns the aggregate tree into the static sunburst layout: every node gets an
angular interval [x0, x1) in radians and a radial interval [y0, y1) in ring
levels. Depth d occupies ring [d, d + 1); the root ring is the center control.

The layout is a DataFrame indexed by node id so the render and zoom code can
work on whole columns at once.
"""

import numpy as np
import pandas as pd

from shopping_dashboard.aggregate import AggregateNode

TAU = 2 * np.pi

# Chart is 600x600, radius = min(width, height) / 6
DEFAULT_CHART_SIZE = 600
DEFAULT_RADIUS = DEFAULT_CHART_SIZE / 6

INTERVAL_COLUMNS = ['x0', 'x1', 'y0', 'y1']
LAYOUT_COLUMNS = ['name', 'parent', 'depth', 'value', 'top', 'is_leaf'] + INTERVAL_COLUMNS


def partition(root: AggregateNode) -> pd.DataFrame:
    """
    Lay out the tree as a radial partition.

    Children are ordered by descending value (stable for ties) and tile their
    parent's angular interval in proportion to value. A parent with value 0
    gives all of its children zero width at its start angle.
    """
    rows = []

    def place(node, parent_id, top, x0, x1):
        rows.append({
            'id': node.id,
            'name': node.name,
            'parent': parent_id,
            'depth': node.depth,
            'value': node.value,
            'top': top,
            'is_leaf': node.is_leaf,
            'x0': x0,
            'x1': x1,
            'y0': float(node.depth),
            'y1': float(node.depth + 1)
        })

        ordered = sorted(node.children, key=lambda child: -child.value)
        scale = (x1 - x0) / node.value if node.value > 0 else 0.0
        cursor = x0
        for i, child in enumerate(ordered):
            child_x1 = cursor + child.value * scale
            # Last positive child closes the interval exactly
            if i == len(ordered) - 1 and child.value > 0:
                child_x1 = x1
            place(child, node.id, top if top is not None else child.name, cursor, child_x1)
            cursor = child_x1

    place(root, None, None, 0.0, TAU)

    layout = pd.DataFrame(rows).set_index('id')
    return layout[LAYOUT_COLUMNS]


def radial_extent(intervals: pd.DataFrame, radius: float = DEFAULT_RADIUS) -> pd.DataFrame:
    """Scale ring levels to pixels; the outer edge keeps a 1px gap between rings."""
    inner = intervals['y0'] * radius
    outer = np.maximum(inner, intervals['y1'] * radius - 1)
    return pd.DataFrame({'inner': inner, 'outer': outer}, index=intervals.index)


def ancestors(layout: pd.DataFrame, node_id: str) -> list:
    """Ids from the root down to ``node_id``, inclusive."""
    chain = []
    current = node_id
    while not pd.isna(current):
        chain.append(current)
        current = layout.at[current, 'parent']
    return list(reversed(chain))
