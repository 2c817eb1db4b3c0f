"""SVG rendering of chart descriptions with matplotlib."""

from __future__ import annotations

import io
import logging
from datetime import date
from pathlib import Path
from typing import Iterable, List

import matplotlib

matplotlib.use("Agg")

import matplotlib.dates as mdates  # noqa: E402
import matplotlib.pyplot as plt  # noqa: E402

from .export import ChartSeries, ChartSpec  # noqa: E402

logger = logging.getLogger(__name__)

_COLORS = ("#4C78A8", "#F58518", "#54A24B", "#E45756")
_BAR_WIDTH_DAYS = 5


def _dates(series: ChartSeries) -> List[date]:
    return [date.fromisoformat(point.x) for point in series.points]


def render_svg(chart: ChartSpec) -> bytes:
    """Render ``chart`` to SVG bytes."""
    fig, ax = plt.subplots(figsize=(10, 5))
    try:
        for index, series in enumerate(chart.series):
            color = _COLORS[index % len(_COLORS)]
            x_values = _dates(series)
            y_values = [point.y for point in series.points]

            if chart.mark == "bar":
                ax.bar(x_values, y_values, width=_BAR_WIDTH_DAYS, color=color, label=series.label)
            else:
                ax.plot(
                    x_values,
                    y_values,
                    marker="o",
                    linestyle="--" if series.dashed else "-",
                    color=color,
                    label=series.label,
                )

        ax.set_title(chart.title)
        ax.set_xlabel("Week")
        ax.set_ylabel(chart.y_title)
        ax.xaxis.set_major_formatter(mdates.DateFormatter("%Y-%m-%d"))
        fig.autofmt_xdate()
        if len(chart.series) > 1:
            ax.legend(loc="upper right")

        buffer = io.BytesIO()
        fig.savefig(buffer, format="svg", bbox_inches="tight")
        return buffer.getvalue()
    finally:
        plt.close(fig)


def write_charts(charts: Iterable[ChartSpec], directory: Path) -> List[Path]:
    """Render each chart into ``directory``; failures are logged and skipped."""
    written: List[Path] = []

    try:
        directory.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        logger.error(
            "Failed to create chart directory %s: %s",
            directory,
            exc,
            extra={"directory": str(directory), "error": str(exc)},
        )
        return written

    for chart in charts:
        path = directory / chart.filename
        try:
            path.write_bytes(render_svg(chart))
        except Exception as exc:
            logger.exception(
                "Failed to generate chart %s: %s",
                chart.name,
                exc,
                extra={"chart": chart.name, "error": str(exc)},
            )
            continue
        written.append(path)

    logger.info("Generated charts", extra={"directory": str(directory), "count": len(written)})
    return written
