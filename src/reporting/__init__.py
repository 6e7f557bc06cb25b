"""
Reporting module for the contact dashboard.

Contains static matplotlib/seaborn figures of the reshaped data.
"""

from src.reporting.visuals import (
    close_figure,
    plot_dashboard_summary,
    plot_region_totals,
    plot_timeline,
    plot_top_countries,
    save_dashboard_figures,
    save_figure,
    set_style,
    timeline_frame,
)

__all__ = [
    "close_figure",
    "plot_dashboard_summary",
    "plot_region_totals",
    "plot_timeline",
    "plot_top_countries",
    "save_dashboard_figures",
    "save_figure",
    "set_style",
    "timeline_frame",
]
