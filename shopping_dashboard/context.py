"""
Application context for one dashboard session.

Everything the charts and the zoom controller share is built once here and
passed around explicitly: configuration, the load result, the aggregate tree,
the partition layout, the controller and its event bindings.
"""

import logging
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

import pandas as pd

from shopping_dashboard.aggregate import AggregateNode, build_hierarchy, compute_summary, hierarchy_table
from shopping_dashboard.load_transactions import LoadResult, load_transactions
from shopping_dashboard.partition import DEFAULT_CHART_SIZE, partition
from shopping_dashboard.render import build_event_bindings
from shopping_dashboard.reports import build_summary_workbook
from shopping_dashboard.zoom import DEFAULT_DURATION, ZoomController

# Setup logging
logger = logging.getLogger(__name__)

DEFAULT_DATA_PATH = Path(__file__).parent.parent / "data" / "customer_shopping_data.csv"
DEFAULT_FRAME_INTERVAL = 0.05  # seconds between animation frames


@dataclass
class DashboardConfig:
    data_path: Path = DEFAULT_DATA_PATH
    log_dir: Path = Path("logs")
    chart_size: int = DEFAULT_CHART_SIZE
    transition_duration: float = DEFAULT_DURATION
    frame_interval: float = DEFAULT_FRAME_INTERVAL

    @property
    def radius(self) -> float:
        return self.chart_size / 6


@dataclass
class AppContext:
    config: DashboardConfig
    load_result: LoadResult
    tree: AggregateNode
    layout: pd.DataFrame
    controller: ZoomController
    summary: dict
    bindings: dict = field(default_factory=dict)

    @property
    def records(self) -> pd.DataFrame:
        return self.load_result.records

    def summary_workbook(self) -> bytes:
        return build_summary_workbook(
            self.summary,
            hierarchy_table(self.tree),
            self.load_result.issues,
            self.load_result.skipped_rows
        )


def build_context(config: DashboardConfig, load_result: Optional[LoadResult] = None,
                  clock=time.monotonic) -> AppContext:
    """Load (unless given a load result), aggregate, lay out and wire the controller."""
    if load_result is None:
        load_result = load_transactions(config.data_path)

    records = load_result.records
    tree = build_hierarchy(records)
    layout = partition(tree)
    controller = ZoomController(layout, duration=config.transition_duration, clock=clock)

    context = AppContext(
        config=config,
        load_result=load_result,
        tree=tree,
        layout=layout,
        controller=controller,
        summary=compute_summary(records),
        bindings=build_event_bindings(controller)
    )
    logger.info(f"Context ready: {len(records):,} records, {len(layout):,} layout nodes")
    return context
