"""Shopping mall sales dashboard: transaction aggregation, drill-down sunburst and charts."""
