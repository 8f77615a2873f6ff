"""
Zoom/Focus Controller for the drill-down sunburst.

Holds the current focus node and the render state (current and target
intervals per node id). Selecting an arc zooms into that node, selecting the
center zooms out to the focus's parent. Targets are always derived from the
static layout; a transition starts from whatever is on screen at the moment of
the click, so a click during an animation continues smoothly from the
mid-flight position.

Progress is read from an injectable monotonic clock, which lets the dashboard
drive frames from wall time and lets tests step time by hand.
"""

import logging
import time
from dataclasses import dataclass
from typing import Optional

import pandas as pd

from shopping_dashboard.partition import INTERVAL_COLUMNS, TAU

# Setup logging
logger = logging.getLogger(__name__)

DEFAULT_DURATION = 0.75  # seconds

# Visible ring band, in ring levels
RING_MIN = 1
RING_MAX = 3

LABEL_MIN_AREA = 0.03


def arc_visible(intervals: pd.DataFrame) -> pd.Series:
    return (intervals['y1'] <= RING_MAX) & (intervals['y0'] >= RING_MIN) & (intervals['x1'] > intervals['x0'])


def label_visible(intervals: pd.DataFrame) -> pd.Series:
    area = (intervals['y1'] - intervals['y0']) * (intervals['x1'] - intervals['x0'])
    return (intervals['y1'] <= RING_MAX) & (intervals['y0'] >= RING_MIN) & (area > LABEL_MIN_AREA)


def focus_targets(layout: pd.DataFrame, focus_id: str) -> pd.DataFrame:
    """
    Re-normalize every static interval relative to the focus node.

    Angles are rescaled so the focus spans the full circle (anything outside
    collapses to a zero-width wedge at 0 or 2*pi); ring levels shift down by
    the focus depth, floored at 0.
    """
    p = layout.loc[focus_id]
    width = p['x1'] - p['x0']

    return pd.DataFrame({
        'x0': ((layout['x0'] - p['x0']) / width).clip(0, 1) * TAU,
        'x1': ((layout['x1'] - p['x0']) / width).clip(0, 1) * TAU,
        'y0': (layout['y0'] - p['depth']).clip(lower=0),
        'y1': (layout['y1'] - p['depth']).clip(lower=0),
    }, index=layout.index)


def interpolate(start: pd.DataFrame, target: pd.DataFrame, t: float) -> pd.DataFrame:
    """Linear interpolation, angles and radii independently."""
    return start + (target - start) * t


@dataclass
class Transition:
    start: pd.DataFrame
    target: pd.DataFrame
    started_at: float
    duration: float

    def progress(self, now: float) -> float:
        if self.duration <= 0:
            return 1.0
        return min(1.0, max(0.0, (now - self.started_at) / self.duration))

    def at(self, t: float) -> pd.DataFrame:
        if t >= 1.0:
            return self.target.copy()
        return interpolate(self.start, self.target, t)


class ZoomController:
    """Single-focus state machine over a static partition layout."""

    def __init__(self, layout: pd.DataFrame, duration: float = DEFAULT_DURATION, clock=time.monotonic):
        self.layout = layout
        self.duration = duration
        self.clock = clock
        self.root_id = layout.index[layout['depth'].to_numpy() == 0][0]
        self.focus = self.root_id

        rest = layout[INTERVAL_COLUMNS].astype(float)
        self.transition = Transition(start=rest, target=rest.copy(), started_at=clock(), duration=0.0)

    def _now(self, now):
        return self.clock() if now is None else now

    @property
    def center_target(self) -> str:
        """Node the center control zooms out to."""
        parent = self.layout.at[self.focus, 'parent']
        return self.root_id if pd.isna(parent) else parent

    @property
    def target(self) -> pd.DataFrame:
        return self.transition.target

    def progress(self, now=None) -> float:
        return self.transition.progress(self._now(now))

    def is_animating(self, now=None) -> bool:
        return self.progress(now) < 1.0

    def current(self, now=None) -> pd.DataFrame:
        """Intervals as they are on screen at ``now``."""
        return self.transition.at(self.progress(now))

    def focus_on(self, node_id: str, now=None) -> Optional[Transition]:
        """
        Start a transition to ``node_id`` from the on-screen state.

        Zero-width nodes (value 0) cannot be a zoom root; the request is
        ignored and None is returned.
        """
        if node_id not in self.layout.index:
            raise KeyError(node_id)

        node = self.layout.loc[node_id]
        if node['x1'] <= node['x0']:
            logger.warning(f"Ignoring focus on zero-width node: {node_id}")
            return None

        now = self._now(now)
        start = self.current(now)
        previous = self.focus

        self.focus = node_id
        self.transition = Transition(
            start=start,
            target=focus_targets(self.layout, node_id),
            started_at=now,
            duration=self.duration
        )
        logger.info(f"Focus: {previous} -> {node_id}")
        return self.transition

    def click_arc(self, node_id: str, now=None) -> bool:
        """Zoom into an arc; True when a transition started."""
        return self.focus_on(node_id, now) is not None

    def click_center(self, now=None) -> Optional[Transition]:
        return self.focus_on(self.center_target, now)

    def visibility(self, now=None) -> pd.DataFrame:
        """
        Which arcs and labels to draw at ``now`` and which arcs accept clicks.

        While animating, anything visible at the start, at the target, or in
        the interpolated frame is drawn, so leaving elements shrink away
        instead of vanishing. Interactivity follows the target.
        """
        t = self.progress(now)
        start, target = self.transition.start, self.transition.target
        current = self.transition.at(t)

        arc_drawn = arc_visible(current)
        label_drawn = label_visible(current)
        if t < 1.0:
            arc_drawn = arc_drawn | arc_visible(start) | arc_visible(target)
            label_drawn = label_drawn | label_visible(start) | label_visible(target)

        return pd.DataFrame({
            'arc': arc_drawn,
            'label': label_drawn,
            'interactive': arc_visible(target)
        }, index=self.layout.index)
