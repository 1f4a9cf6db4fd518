"""Tests for the sentiment chart rasterizer."""

from unittest.mock import patch

import pytest

from supportiq.errors import ChartRenderError
from supportiq.services import chart as chart_mod
from supportiq.services.chart import render_sentiment_chart_png
from supportiq.services.presentation import build_sentiment_chart

PNG_SIGNATURE = b"\x89PNG\r\n\x1a\n"


def test_renders_png(sample_result):
    png = render_sentiment_chart_png(build_sentiment_chart(sample_result.transcript), dpi=50)
    assert png.startswith(PNG_SIGNATURE)


def test_renders_single_speaker(sample_result):
    customer_only = [s for s in sample_result.transcript if s.speaker == "Customer"]
    png = render_sentiment_chart_png(build_sentiment_chart(customer_only), dpi=50)
    assert png.startswith(PNG_SIGNATURE)


def test_renders_empty_transcript():
    png = render_sentiment_chart_png(build_sentiment_chart([]), dpi=50)
    assert png.startswith(PNG_SIGNATURE)


def test_failure_raises_chart_render_error(sample_result):
    chart = build_sentiment_chart(sample_result.transcript)
    with patch.object(chart_mod, "Figure", side_effect=RuntimeError("no backend")):
        with pytest.raises(ChartRenderError):
            render_sentiment_chart_png(chart)
