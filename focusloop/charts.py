"""Matplotlib charts for session statistics.

All figures use a dark theme with the red accent of the timer card.
"""

from __future__ import annotations

import io

import matplotlib
matplotlib.use("Agg")  # non-interactive backend -- render to image buffers
import matplotlib.pyplot as plt
import numpy as np
from matplotlib.figure import Figure
from PIL import Image

from focusloop.models import DayCount, WeekCount

# -- Palette ---------------------------------------------------------------
_BG = "#2b2b2b"
_FG = "#e0e0e0"
_RED = "#e53935"
_DARK_RED = "#b71c1c"
_GRID = "#444444"


# -----------------------------------------------------------------------
# Helpers
# -----------------------------------------------------------------------

def _fig_to_pil(fig: Figure, dpi: int = 100) -> Image.Image:
    """Render a matplotlib Figure to a PIL Image and close it."""
    buf = io.BytesIO()
    fig.savefig(buf, format="png", dpi=dpi, bbox_inches="tight",
                facecolor=fig.get_facecolor(), edgecolor="none")
    plt.close(fig)
    buf.seek(0)
    return Image.open(buf)


def _style_axes(ax, title: str, counts: list[int]) -> None:
    ax.set_facecolor(_BG)
    ax.set_title(title, color=_FG, fontsize=11, fontweight="bold")
    ax.tick_params(colors=_FG, labelsize=8)
    ax.spines["bottom"].set_color(_GRID)
    ax.spines["left"].set_color(_GRID)
    ax.spines["top"].set_visible(False)
    ax.spines["right"].set_visible(False)
    ax.yaxis.grid(color=_GRID, linewidth=0.5)
    ax.set_ylim(0, max(counts + [1]) * 1.2)
    # Whole sessions only on the count axis.
    ax.yaxis.get_major_locator().set_params(integer=True)


# -----------------------------------------------------------------------
# Charts
# -----------------------------------------------------------------------

def daily_bar_chart(
    series: list[DayCount],
    *,
    title: str = "Last 7 days",
    size: tuple[int, int] = (520, 260),
    dpi: int = 100,
) -> Image.Image:
    """Bar per day, labelled with the weekday abbreviation."""
    x = np.arange(len(series))
    counts = [d.count for d in series]

    fig = Figure(figsize=(size[0] / dpi, size[1] / dpi), dpi=dpi, facecolor=_BG)
    ax = fig.add_subplot(111)
    bars = ax.bar(x, counts, color=_RED, width=0.6)
    ax.bar_label(bars, labels=[str(c) for c in counts], color=_FG, fontsize=8)
    ax.set_xticks(x)
    ax.set_xticklabels([d.day.strftime("%a").upper() for d in series])
    _style_axes(ax, title, counts)

    return _fig_to_pil(fig, dpi=dpi)


def weekly_line_chart(
    series: list[WeekCount],
    *,
    title: str = "Weekly total",
    size: tuple[int, int] = (520, 260),
    dpi: int = 100,
) -> Image.Image:
    """Line through the totals of consecutive weeks, oldest on the left."""
    x = np.arange(len(series))
    counts = [w.count for w in series]

    fig = Figure(figsize=(size[0] / dpi, size[1] / dpi), dpi=dpi, facecolor=_BG)
    ax = fig.add_subplot(111)
    ax.plot(x, counts, color=_DARK_RED, linewidth=2, marker="o",
            markersize=6, markerfacecolor=_RED, markeredgecolor="white",
            markeredgewidth=0.5)
    for xi, count in zip(x, counts):
        ax.annotate(str(count), (xi, count), textcoords="offset points",
                    xytext=(0, 6), ha="center", color=_FG, fontsize=8)
    ax.set_xticks(x)
    ax.set_xticklabels([w.label for w in series])
    _style_axes(ax, title, counts)

    return _fig_to_pil(fig, dpi=dpi)


def stats_image(days: list[DayCount], weeks: list[WeekCount]) -> Image.Image:
    """Daily bars above the weekly line, in one image."""
    top = daily_bar_chart(days)
    bottom = weekly_line_chart(weeks)
    combined = Image.new("RGB", (max(top.width, bottom.width), top.height + bottom.height), _BG)
    combined.paste(top, (0, 0))
    combined.paste(bottom, (0, top.height))
    return combined
