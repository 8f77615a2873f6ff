"""
Shopping Mall Sales Dashboard
Interactive dashboard over the customer shopping dataset with a drill-down
sunburst (gender -> age range -> category), revenue by gender, an age x
category heatmap and monthly purchase trends.

Usage:
    streamlit run shopping_dashboard/dashboard.py -- -i data/customer_shopping_data.csv
    streamlit run shopping_dashboard/dashboard.py -- --input ./customer_shopping_data.csv --log-dir logs
"""
import argparse
import logging
import sys
import time
from datetime import datetime
from pathlib import Path

import plotly.io as pio
import streamlit as st

from shopping_dashboard.aggregate import available_years
from shopping_dashboard.charts import create_gender_chart, create_heatmap, create_monthly_trend, year_options
from shopping_dashboard.context import DEFAULT_DATA_PATH, DEFAULT_FRAME_INTERVAL, AppContext, DashboardConfig, build_context
from shopping_dashboard.load_transactions import DatasetLoadError, LoadResult, load_transactions
from shopping_dashboard.partition import DEFAULT_CHART_SIZE, ancestors
from shopping_dashboard.render import arc_ids, build_sunburst_figure, dispatch, handle_selection
from shopping_dashboard.reports import format_currency
from shopping_dashboard.zoom import DEFAULT_DURATION

# Setup logging
logger = logging.getLogger(__name__)

SUNBURST_KEY = 'sunburst'
DRILL_KEY = 'drill_target'


def parse_args(argv=None) -> DashboardConfig:
    """Parse dashboard options; Streamlit forwards arguments given after '--'"""
    parser = argparse.ArgumentParser(description='Shopping Mall Sales Dashboard')
    parser.add_argument(
        '-i', '--input',
        default=None,
        help='Path to customer_shopping_data.csv (default: data/customer_shopping_data.csv)'
    )
    parser.add_argument(
        '--log-dir',
        default=None,
        help='Directory for log files (default: logs/)'
    )
    parser.add_argument(
        '--chart-size',
        type=int,
        default=DEFAULT_CHART_SIZE,
        help='Sunburst width and height in pixels (default: 600)'
    )
    parser.add_argument(
        '--transition-ms',
        type=int,
        default=int(DEFAULT_DURATION * 1000),
        help='Zoom animation duration in milliseconds (default: 750)'
    )

    if argv is None:
        if '--' in sys.argv:
            argv = sys.argv[sys.argv.index('--') + 1:]
        else:
            argv = sys.argv[1:]
    args = parser.parse_args(argv)

    return DashboardConfig(
        data_path=Path(args.input) if args.input else DEFAULT_DATA_PATH,
        log_dir=Path(args.log_dir) if args.log_dir else Path("logs"),
        chart_size=args.chart_size,
        transition_duration=args.transition_ms / 1000,
        frame_interval=DEFAULT_FRAME_INTERVAL
    )


def setup_logging(log_dir: Path):
    """Configure logging to file and console"""
    log_dir.mkdir(parents=True, exist_ok=True)
    log_file = log_dir / f"dashboard_{datetime.now().strftime('%Y%m%d_%H%M%S')}.log"

    logging.basicConfig(
        level=logging.INFO,
        format='%(asctime)s - %(levelname)s - %(message)s',
        handlers=[
            logging.FileHandler(log_file),
            logging.StreamHandler()
        ]
    )
    logger.info(f"Logging to: {log_file}")


@st.cache_data(ttl=3600)
def load_dataset(data_path: str) -> LoadResult:
    """Load and validate the transactions file"""
    return load_transactions(data_path)


def get_context(config: DashboardConfig) -> AppContext:
    """One context per browser session, rebuilt only when the dataset changes."""
    context = st.session_state.get('context')
    if context is None or context.config.data_path != config.data_path:
        context = build_context(config, load_result=load_dataset(str(config.data_path)))
        st.session_state['context'] = context
    return context


def node_label(context: AppContext, node_id: str) -> str:
    layout = context.layout
    return ' → '.join(layout.at[i, 'name'] for i in ancestors(layout, node_id)[1:])


# --- Event callbacks (run before the script body on rerun) ---

def on_sunburst_select():
    context = st.session_state['context']
    event = st.session_state.get(SUNBURST_KEY)
    if not event:
        return
    points = event['selection']['points']
    handle_selection(context.controller, context.bindings, points)


def on_drill_change():
    context = st.session_state['context']
    node_id = st.session_state.get(DRILL_KEY)
    if node_id:
        dispatch(context.bindings, 'arc', 'click', node_id)
    st.session_state[DRILL_KEY] = None


def on_zoom_out():
    context = st.session_state['context']
    dispatch(context.bindings, 'center', 'click')


def display_stats(summary: dict):
    st.subheader("Key Metrics")
    col1, col2, col3, col4 = st.columns(4)

    with col1:
        st.metric("Total Customers", f"{summary['total_customers']:,}")
    with col2:
        st.metric("Total Revenue", format_currency(summary['total_revenue']))
    with col3:
        st.metric("Average Purchase", format_currency(summary['avg_purchase']))
    with col4:
        st.metric("Top Category", summary['top_category'] or "No data")

    if summary['avg_purchase'] is None:
        st.caption("No data indicates there are no valid records in the dataset")


def display_sunburst(context: AppContext):
    """Drill-down chart plus the zoom controls; plays the active transition frame by frame."""
    config = context.config
    controller = context.controller

    st.subheader("Sales by Gender, Age and Category")
    st.caption("Click a segment to zoom in, click the center to zoom out")

    focus_path = node_label(context, controller.focus) or "All customers"
    st.markdown(f"**Focus:** {focus_path}")

    col1, col2 = st.columns([3, 1])
    visible = controller.visibility()
    options = [i for i in arc_ids(context.layout) if visible.at[i, 'interactive']]
    with col1:
        st.selectbox(
            "Drill into",
            options=[None] + options,
            format_func=lambda i: "Select a segment" if i is None else node_label(context, i),
            key=DRILL_KEY,
            on_change=on_drill_change
        )
    with col2:
        st.button(
            "Zoom out",
            on_click=on_zoom_out,
            disabled=controller.focus == controller.root_id,
            use_container_width=True
        )

    placeholder = st.empty()
    while controller.is_animating():
        fig = build_sunburst_figure(controller, radius=config.radius, size=config.chart_size)
        placeholder.plotly_chart(fig, use_container_width=False)
        time.sleep(config.frame_interval)

    fig = build_sunburst_figure(controller, radius=config.radius, size=config.chart_size)
    placeholder.plotly_chart(
        fig,
        use_container_width=False,
        key=SUNBURST_KEY,
        on_select=on_sunburst_select,
        selection_mode='points'
    )


def display_secondary_charts(context: AppContext):
    records = context.records

    col1, col2 = st.columns(2)
    with col1:
        st.plotly_chart(create_gender_chart(records), use_container_width=True)
    with col2:
        st.plotly_chart(create_heatmap(records), use_container_width=True)

    st.subheader("Monthly Purchase Trends")
    years = available_years(records)
    if not years:
        st.info("No dated transactions to show")
        return

    selected_year = st.selectbox("Year", year_options(years), index=0)
    st.plotly_chart(create_monthly_trend(records, selected_year), use_container_width=True)


def display_data_explorer(context: AppContext):
    st.subheader("Data Explorer")
    records = context.records

    with st.expander("View Raw Data"):
        st.dataframe(records.head(500), use_container_width=True, hide_index=True)

        col1, col2 = st.columns(2)
        with col1:
            st.download_button(
                label="Download Records (CSV)",
                data=records.to_csv(index=False),
                file_name="customer_shopping_valid.csv",
                mime="text/csv"
            )
        with col2:
            st.download_button(
                label="Download Summary Workbook (Excel)",
                data=context.summary_workbook(),
                file_name="shopping_summary.xlsx",
                mime="application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"
            )


def main():
    st.set_page_config(
        page_title="Shopping Mall Sales Dashboard",
        page_icon=":bar_chart:",
        layout="wide",
        initial_sidebar_state="collapsed"
    )
    pio.templates.default = "plotly_white"

    config = parse_args()
    if 'logging_ready' not in st.session_state:
        setup_logging(config.log_dir)
        st.session_state['logging_ready'] = True

    st.title("Shopping Mall Sales Dashboard")
    st.caption("Customer shopping transactions")
    st.markdown("---")

    try:
        with st.spinner("Loading data..."):
            context = get_context(config)
    except DatasetLoadError as e:
        logger.error(f"Dataset load failed: {e}")
        st.error(f"Could not load the dataset: {e}")
        st.stop()

    load_result = context.load_result
    if load_result.skipped_rows:
        st.warning(
            f"{load_result.skipped_rows:,} of {load_result.total_rows:,} records were skipped "
            f"because of invalid fields"
        )
        with st.expander("Skipped record details"):
            st.dataframe(load_result.issues, use_container_width=True, hide_index=True)
    if load_result.undated_rows:
        st.caption(f"{load_result.undated_rows:,} records have no valid invoice date and are not in the monthly trend")

    display_stats(context.summary)
    st.markdown("---")

    if context.records.empty:
        st.info("No valid records to chart")
        st.stop()

    display_sunburst(context)
    st.markdown("---")

    display_secondary_charts(context)
    st.markdown("---")

    display_data_explorer(context)

    st.markdown("---")
    st.markdown(
        f"*Dashboard generated on {datetime.now().strftime('%Y-%m-%d %H:%M:%S')} | "
        f"Data: {load_result.total_rows:,} total records, {len(context.records):,} valid records*"
    )


if __name__ == "__main__":
    main()
