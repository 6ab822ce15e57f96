"""Jinja2 rendering for notification messages."""

import logging
from typing import Any, Dict

from jinja2 import Environment, PackageLoader, StrictUndefined, TemplateError

from .models import NotificationTemplateError

logger = logging.getLogger(__name__)


class TemplateRenderer:
    """Renders message templates from job_scraper/notifications/message_templates.

    Missing variables raise instead of rendering as blanks.
    """

    def __init__(
        self,
        template_dir: str = "message_templates",
        summary_template: str = "scrape_summary.txt.j2",
    ):
        self.summary_template_name = summary_template
        self.env = Environment(
            loader=PackageLoader("job_scraper.notifications", template_dir),
            autoescape=False,
            undefined=StrictUndefined,
            trim_blocks=True,
            keep_trailing_newline=False,
        )

    def render_summary(self, context: Dict[str, Any]) -> str:
        """Render the per-service summary as a single line.

        Raises:
            NotificationTemplateError: If the template is missing or a variable is undefined
        """
        try:
            template = self.env.get_template(self.summary_template_name)
            rendered = template.render(context)
        except TemplateError as e:
            logger.error(f"Template rendering failed: {e}", exc_info=True)
            raise NotificationTemplateError(f"Template rendering failed: {e}") from e

        return " ".join(rendered.split())
