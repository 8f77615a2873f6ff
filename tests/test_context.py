"""
Tests for the dashboard context and command line options.

Covers:
- Building the shared context from a CSV file
- Dashboard options passed after Streamlit's '--'
"""

from pathlib import Path

import pytest

from shopping_dashboard.context import DEFAULT_DATA_PATH, DashboardConfig, build_context
from shopping_dashboard.dashboard import parse_args
from shopping_dashboard.load_transactions import DatasetLoadError, records_from_dicts
from shopping_dashboard.render import dispatch
from tests.conftest import MIXED_ROWS, SCENARIO_ROWS


class TestBuildContext:
    """Everything the dashboard shares is built once."""

    def test_from_csv(self, csv_file, clock):
        context = build_context(DashboardConfig(data_path=csv_file), clock=clock)

        assert len(context.records) == len(MIXED_ROWS)
        assert context.layout.index[0] == 'root'
        assert context.tree.value == pytest.approx(context.summary['total_revenue'])
        assert context.controller.focus == 'root'

    def test_from_load_result(self, clock):
        config = DashboardConfig(transition_duration=0.5)
        context = build_context(config, load_result=records_from_dicts(SCENARIO_ROWS), clock=clock)

        assert context.controller.duration == 0.5
        assert context.summary['top_category'] == 'Shoes'

    def test_bindings_drive_controller(self, csv_file, clock):
        context = build_context(DashboardConfig(data_path=csv_file), clock=clock)

        dispatch(context.bindings, 'arc', 'click', 'root/Female')
        assert context.controller.focus == 'root/Female'

    def test_summary_workbook(self, csv_file, clock):
        context = build_context(DashboardConfig(data_path=csv_file), clock=clock)
        data = context.summary_workbook()
        # xlsx files are zip archives
        assert data[:2] == b'PK'

    def test_missing_dataset(self, tmp_path):
        with pytest.raises(DatasetLoadError):
            build_context(DashboardConfig(data_path=tmp_path / "missing.csv"))

    def test_radius(self):
        assert DashboardConfig(chart_size=600).radius == 100


class TestParseArgs:

    def test_defaults(self):
        config = parse_args([])

        assert config.data_path == DEFAULT_DATA_PATH
        assert config.log_dir == Path("logs")
        assert config.chart_size == 600
        assert config.transition_duration == 0.75

    def test_options(self, tmp_path):
        config = parse_args([
            '-i', str(tmp_path / "data.csv"),
            '--log-dir', str(tmp_path / "logs"),
            '--chart-size', '480',
            '--transition-ms', '300'
        ])

        assert config.data_path == tmp_path / "data.csv"
        assert config.log_dir == tmp_path / "logs"
        assert config.chart_size == 480
        assert config.transition_duration == 0.3
