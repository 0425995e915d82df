"""Service for generating CV HTML from templates."""

from pathlib import Path
from typing import Optional
from jinja2 import Environment, FileSystemLoader, select_autoescape
from cv_builder.config import settings
from cv_builder.models.document_models import RenderedDocument
from cv_builder.utils.template_helpers import register_jinja_filters


LAYOUTS = ("preview", "print")


class CVGenerator:
    """Service to generate CV HTML from Jinja2 templates."""

    def __init__(self, template_dir: Optional[Path] = None):
        """
        Initialize the CV generator.

        Args:
            template_dir: Directory containing Jinja2 templates. Defaults to cv_builder/templates/
        """
        if template_dir is None:
            template_dir = settings.template_dir

        self.template_dir = template_dir
        self.env = Environment(
            loader=FileSystemLoader(str(template_dir)),
            autoescape=select_autoescape(['html', 'xml'])
        )

        # Register custom filters
        register_jinja_filters(self.env)

    def generate_html(self, document: RenderedDocument, layout: str = "preview") -> str:
        """
        Generate CV HTML from a rendered document.

        The preview and print layouts share one template and differ only in
        styling, so they always show the same sections in the same order.

        Args:
            document: Structured CV document
            layout: 'preview' for on-screen display or 'print' for paper/PDF

        Returns:
            str: Rendered HTML string

        Raises:
            ValueError: If the layout is not supported
        """
        if layout not in LAYOUTS:
            raise ValueError(f"Unsupported layout: {layout}. Supported: {', '.join(LAYOUTS)}")

        template = self.env.get_template("cv_template.html")
        return template.render(
            document=document,
            header=document.header,
            sections=document.sections,
            layout=layout,
        )
