"""
Renderers for dashboard output.

Currently supports:
- HTML: Single-page dashboard with embedded chart specs and D3 renderers
"""

from src.dashboard.renderers.html import (
    render_dashboard_html,
    render_section_html,
    save_dashboard_html,
)

__all__ = [
    "render_dashboard_html",
    "render_section_html",
    "save_dashboard_html",
]
