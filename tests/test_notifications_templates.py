"""Tests for notification template rendering."""

import pytest

from job_scraper.notifications import NotificationTemplateError, TemplateRenderer


def test_summary_renders_single_line():
    message = TemplateRenderer().render_summary(
        {"clock_time": "6:05 pm", "display_name": "Plumbers", "qualified_count": 4, "total_found": 37}
    )

    assert message == "6:05 pm | Plumbers Scraped | 4/37 jobs"
    assert "\n" not in message


def test_missing_variable_raises():
    with pytest.raises(NotificationTemplateError):
        TemplateRenderer().render_summary({"clock_time": "6:05 pm"})


def test_missing_template_raises():
    with pytest.raises(NotificationTemplateError):
        TemplateRenderer(summary_template="nope.txt.j2").render_summary({})
