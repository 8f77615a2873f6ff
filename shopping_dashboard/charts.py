"""
Secondary Charts - Gender, Age x Category and Monthly Trend
Plotly figures built from the derived aggregates in aggregate.py.
"""

import numpy as np
import pandas as pd
import plotly.express as px
import plotly.graph_objects as go

from shopping_dashboard.aggregate import (
    AGE_BRACKETS,
    age_category_matrix,
    monthly_revenue,
    revenue_by_gender,
)
from shopping_dashboard.render import GENDER_COLORS


TREND_COLOR = '#667eea'
EMPTY_CELL_COLOR = '#f8f9fa'

ALL_YEARS = 'All years'


def create_gender_chart(records: pd.DataFrame) -> go.Figure:
    """Revenue by gender bar chart."""
    gender_data = revenue_by_gender(records)

    fig = px.bar(
        gender_data,
        x='Gender',
        y='Revenue',
        color='Gender',
        color_discrete_map=GENDER_COLORS,
        title='Revenue by Gender',
        template='plotly_white'
    )
    fig.update_traces(hovertemplate='%{x}<br>Sales: $%{y:,.2f}<extra></extra>')
    fig.update_layout(
        yaxis_title='Revenue ($)',
        yaxis=dict(tickformat='$.2s'),
        bargap=0.3,
        showlegend=False,
        height=300
    )
    return fig


def create_heatmap(records: pd.DataFrame) -> go.Figure:
    """Revenue heatmap, categories by age bracket. Empty cells show the background."""
    matrix = age_category_matrix(records)
    z = matrix.to_numpy(dtype=float)
    z = np.where(z > 0, z, np.nan)

    fig = go.Figure(data=go.Heatmap(
        z=z,
        x=AGE_BRACKETS,
        y=matrix.index.tolist(),
        colorscale='Blues',
        zmin=0,
        xgap=1,
        ygap=1,
        colorbar=dict(title='Revenue'),
        hovertemplate='%{x} years<br>%{y}<br>Sales: $%{z:,.2f}<extra></extra>'
    ))

    fig.update_layout(
        title='Revenue by Age and Category',
        xaxis_title='Age Range',
        yaxis_title='Category',
        plot_bgcolor=EMPTY_CELL_COLOR,
        height=300,
        template='plotly_white'
    )
    return fig


def year_options(years) -> list:
    return [ALL_YEARS] + [str(year) for year in years]


def create_monthly_trend(records: pd.DataFrame, selected_year=ALL_YEARS) -> go.Figure:
    """Monthly revenue line with area fill, for all years or a single year."""
    year = None if selected_year in (None, ALL_YEARS) else int(selected_year)
    monthly = monthly_revenue(records, year)

    title = "Monthly Revenue - All Years" if year is None else f"Monthly Revenue - {year}"

    fig = go.Figure()
    fig.add_trace(go.Scatter(
        x=monthly['Month'],
        y=monthly['Revenue'],
        mode='lines+markers',
        line=dict(color=TREND_COLOR, width=3, shape='spline'),
        marker=dict(size=10, color=TREND_COLOR, line=dict(color='#fff', width=2)),
        fill='tozeroy',
        fillcolor='rgba(102, 126, 234, 0.3)',
        hovertemplate='%{x}<br>Sales: $%{y:,.2f}<extra></extra>',
        name='Revenue'
    ))

    fig.update_layout(
        title=title,
        xaxis_title='Month',
        yaxis_title='Revenue ($)',
        yaxis=dict(tickformat='$.2s', rangemode='tozero'),
        height=400,
        template='plotly_white'
    )
    return fig
