"""
Module: visuals

Purpose: Static figures of the household-contact data.

Key Functions:
- plot_timeline: Contacts over time for the countries with the highest peaks
- plot_region_totals: Total contacts per top-level hierarchy group
- plot_top_countries: Largest groups at the deepest hierarchy level
- plot_dashboard_summary: One-page grid of the above
- save_dashboard_figures: Render and save every figure

Architecture Notes:
- Uses matplotlib and seaborn
- Returns figure objects for notebook integration
- Works from the reshaped chart data, never from the raw CSV
"""

import logging
import math
from pathlib import Path

import matplotlib.pyplot as plt
import pandas as pd
import seaborn as sns
from matplotlib.axes import Axes
from matplotlib.figure import Figure

from src.dashboard.data_queries import ChartDataBundle, HierarchyData, TimelineData
from src.exceptions import ReportGenerationError

logger = logging.getLogger(__name__)


# =============================================================================
# CONFIGURATION
# =============================================================================


def set_style(style: str = "whitegrid") -> None:
    """Set the default plotting style."""
    sns.set_style(style)
    plt.rcParams["figure.figsize"] = (10, 6)
    plt.rcParams["font.size"] = 10


def _no_data(ax: Axes) -> None:
    ax.text(0.5, 0.5, "No data", ha="center", va="center", transform=ax.transAxes, color="gray")


# =============================================================================
# TIMELINE
# =============================================================================


def timeline_frame(data: TimelineData) -> pd.DataFrame:
    """Flatten timeline series into a (country, year, contacts) frame.

    Points without a year or with a non-finite contact count are dropped.
    """
    rows = [
        {"country": country, "year": record.year, "contacts": record.contacts}
        for country, records in data.series.items()
        for record in records
        if record.year is not None and math.isfinite(record.contacts)
    ]
    return pd.DataFrame(rows, columns=["country", "year", "contacts"])


def plot_timeline(
    data: TimelineData,
    *,
    top_n: int = 10,
    title: str = "Estimated Household Contacts Over Time",
    figsize: tuple[int, int] = (12, 6),
    color_palette: str = "tab10",
    ax: Axes | None = None,
) -> Figure:
    """
    Plot contacts over time for the countries with the highest peaks.

    Args:
        data: Timeline data
        top_n: Number of countries to draw
        title: Chart title
        figsize: Figure size
        color_palette: Seaborn color palette
        ax: Optional axes to draw into

    Returns:
        matplotlib Figure
    """
    owns_figure = ax is None
    if ax is None:
        fig, ax = plt.subplots(figsize=figsize)
    else:
        fig = ax.figure

    frame = timeline_frame(data)

    if frame.empty:
        _no_data(ax)
    else:
        peaks = frame.groupby("country", sort=False)["contacts"].max()
        top = peaks.sort_values(ascending=False).head(top_n).index
        subset = frame[frame["country"].isin(top)]

        sns.lineplot(
            data=subset,
            x="year",
            y="contacts",
            hue="country",
            palette=sns.color_palette(color_palette, len(top)),
            marker="o",
            ax=ax,
        )
        sns.move_legend(ax, "upper left", bbox_to_anchor=(1.01, 1), title="Country", fontsize=8)
        ax.xaxis.get_major_locator().set_params(integer=True)

    ax.set_xlabel("Year")
    ax.set_ylabel("Estimated household contacts")
    ax.set_title(title)

    if owns_figure:
        fig.tight_layout()
    return fig


# =============================================================================
# HIERARCHY PLOTS
# =============================================================================


def plot_region_totals(
    data: HierarchyData,
    *,
    title: str | None = None,
    figsize: tuple[int, int] = (10, 6),
    color_palette: str = "viridis",
    ax: Axes | None = None,
) -> Figure:
    """
    Plot the total contacts of each top-level group.

    Args:
        data: Hierarchy data
        title: Optional custom title
        figsize: Figure size
        color_palette: Seaborn color palette
        ax: Optional axes to draw into

    Returns:
        matplotlib Figure
    """
    owns_figure = ax is None
    if ax is None:
        fig, ax = plt.subplots(figsize=figsize)
    else:
        fig = ax.figure

    groups = sorted(data.root.children, key=lambda node: node.value, reverse=True)

    if not groups:
        _no_data(ax)
    else:
        names = [g.name for g in groups]
        values = [g.value for g in groups]
        ax.barh(range(len(groups)), values, color=sns.color_palette(color_palette, len(groups)))

        ax.set_yticks(range(len(groups)))
        ax.set_yticklabels(names)
        ax.invert_yaxis()

        for i, val in enumerate(values):
            ax.text(val, i, f" {val:,.0f}", va="center", fontsize=9)

    ax.set_xlabel("Estimated household contacts")
    ax.set_title(title or f"Total Contacts by {data.grouping.keys[0]}")

    if owns_figure:
        fig.tight_layout()
    return fig


def plot_top_countries(
    data: HierarchyData,
    *,
    top_n: int = 15,
    title: str | None = None,
    figsize: tuple[int, int] = (10, 7),
    color_palette: str = "Blues_r",
    ax: Axes | None = None,
) -> Figure:
    """
    Plot the largest groups at the deepest grouping level.

    With the region -> country grouping these are countries, summed over all
    of their rows.

    Args:
        data: Hierarchy data
        top_n: Number of groups to draw
        title: Optional custom title
        figsize: Figure size
        color_palette: Seaborn color palette
        ax: Optional axes to draw into

    Returns:
        matplotlib Figure
    """
    owns_figure = ax is None
    if ax is None:
        fig, ax = plt.subplots(figsize=figsize)
    else:
        fig = ax.figure

    deepest = len(data.grouping.keys)
    groups = [node for node in data.root.descendants() if node.depth == deepest]
    groups = sorted(groups, key=lambda node: node.value, reverse=True)[:top_n]

    if not groups:
        _no_data(ax)
    else:
        sns.barplot(
            x=[g.value for g in groups],
            y=[g.name for g in groups],
            hue=[g.name for g in groups],
            palette=sns.color_palette(color_palette, len(groups)),
            legend=False,
            orient="h",
            ax=ax,
        )

    ax.set_xlabel("Estimated household contacts")
    ax.set_title(title or f"Top {top_n} by {data.grouping.keys[-1]}")

    if owns_figure:
        fig.tight_layout()
    return fig


# =============================================================================
# SUMMARY
# =============================================================================


def plot_dashboard_summary(
    data: ChartDataBundle,
    *,
    title: str = "Household Contacts Summary",
    figsize: tuple[int, int] = (16, 10),
) -> Figure:
    """
    Create a one-page summary of the dataset.

    Args:
        data: Reshaped data for every chart
        title: Figure title
        figsize: Figure size

    Returns:
        matplotlib Figure
    """
    fig = plt.figure(figsize=figsize)
    gs = fig.add_gridspec(2, 2, hspace=0.35, wspace=0.3)

    # Top left: yearly totals across all countries
    ax1 = fig.add_subplot(gs[0, 0])
    frame = timeline_frame(data.timeline)
    if frame.empty:
        _no_data(ax1)
    else:
        yearly = frame.groupby("year")["contacts"].sum()
        ax1.plot(yearly.index, yearly.to_numpy(), marker="o", color="steelblue")
        ax1.xaxis.get_major_locator().set_params(integer=True)
    ax1.set_xlabel("Year")
    ax1.set_ylabel("Contacts")
    ax1.set_title("Total Contacts per Year")

    # Top right: region totals
    ax2 = fig.add_subplot(gs[0, 1])
    plot_region_totals(data.treemap, ax=ax2)

    # Bottom left: top countries
    ax3 = fig.add_subplot(gs[1, 0])
    plot_top_countries(data.sunburst, top_n=10, ax=ax3)

    # Bottom right: summary stats
    ax4 = fig.add_subplot(gs[1, 1])
    ax4.axis("off")

    years = f"{data.year_range[0]}-{data.year_range[1]}" if data.year_range else "n/a"
    summary_text = f"""
    Summary Statistics
    ─────────────────────
    Rows: {data.record_count:,}
    Countries: {data.country_count:,}
    Regions: {data.region_count:,}
    Years: {years}
    Total contacts: {data.treemap.total:,.0f}
    Mapped countries: {data.choropleth.matched_count:,}
    """
    ax4.text(0.1, 0.5, summary_text, fontsize=12, family="monospace", va="center")

    fig.suptitle(title, fontsize=16, y=1.02)
    return fig


# =============================================================================
# UTILITY FUNCTIONS
# =============================================================================


def save_figure(
    fig: Figure,
    filepath: str | Path,
    *,
    dpi: int = 150,
    bbox_inches: str = "tight",
) -> None:
    """
    Save figure to file.

    Args:
        fig: Figure to save
        filepath: Path to save to
        dpi: Resolution
        bbox_inches: Bounding box option

    Raises:
        ReportGenerationError: If the file cannot be written
    """
    filepath = Path(filepath)
    try:
        filepath.parent.mkdir(parents=True, exist_ok=True)
        fig.savefig(filepath, dpi=dpi, bbox_inches=bbox_inches)
    except OSError as e:
        raise ReportGenerationError(
            f"Could not save figure to {filepath}: {e}",
            report_type="figure",
            context={"path": str(filepath)},
        ) from e


def close_figure(fig: Figure) -> None:
    """Close a figure to free memory."""
    plt.close(fig)


def save_dashboard_figures(
    data: ChartDataBundle,
    output_dir: str | Path,
    *,
    dpi: int = 150,
) -> list[Path]:
    """
    Render every static figure and save it as PNG.

    Args:
        data: Reshaped data for every chart
        output_dir: Directory to write the figures into
        dpi: Resolution

    Returns:
        Paths of the written files
    """
    output_dir = Path(output_dir)

    figures = {
        "timeline.png": lambda: plot_timeline(data.timeline),
        "region_totals.png": lambda: plot_region_totals(data.treemap),
        "top_countries.png": lambda: plot_top_countries(data.sunburst),
        "summary.png": lambda: plot_dashboard_summary(data),
    }

    paths = []
    for filename, make_figure in figures.items():
        fig = make_figure()
        try:
            path = output_dir / filename
            save_figure(fig, path, dpi=dpi)
            paths.append(path)
        finally:
            close_figure(fig)

    logger.info(f"Saved {len(paths)} figures to {output_dir}")
    return paths
