"""Rasterize the sentiment chart for the PDF export and the browser view."""

import io
import logging

from matplotlib.figure import Figure

from supportiq.errors import ChartRenderError
from supportiq.models.views import SentimentChart
from supportiq.services.presentation import SPEAKER_COLORS

logger = logging.getLogger(__name__)

CHART_SIZE_INCHES = (8.0, 3.0)
CHART_DPI = 150


def _present(series: list[float | None]) -> tuple[list[int], list[float]]:
    xs = [i for i, value in enumerate(series) if value is not None]
    return xs, [series[i] for i in xs]


def render_sentiment_chart_png(chart: SentimentChart, dpi: int = CHART_DPI) -> bytes:
    """Draw both speaker series as areas, joined across the other speaker's turns."""
    try:
        fig = Figure(figsize=CHART_SIZE_INCHES, dpi=dpi)
        ax = fig.add_subplot()
        for name, series in (("Agent", chart.agent_series), ("Customer", chart.customer_series)):
            xs, ys = _present(series)
            if not xs:
                continue
            color = SPEAKER_COLORS[name]
            ax.plot(xs, ys, color=color, linewidth=2, marker="o", markersize=3, label=name)
            ax.fill_between(xs, ys, chart.y_domain[0], color=color, alpha=0.15)

        ax.set_ylim(*chart.y_domain)
        ax.set_xlim(-0.5, max(len(chart.labels) - 0.5, 0.5))
        ax.set_xticks([])
        ax.grid(axis="y", linestyle="--", color="#e2e8f0")
        for side in ("top", "right", "bottom"):
            ax.spines[side].set_visible(False)
        ax.set_title("Engagement Flow", loc="left", fontsize=11)
        if chart.labels:
            ax.legend(loc="upper right", frameon=False, fontsize=8, ncols=2)
        fig.tight_layout()

        buffer = io.BytesIO()
        fig.savefig(buffer, format="png")
        return buffer.getvalue()
    except Exception as exc:
        logger.warning("Sentiment chart rendering failed: %s", exc)
        raise ChartRenderError("Could not render the sentiment chart.") from exc
