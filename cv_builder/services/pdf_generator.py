"""Service for generating PDF from HTML."""

import logging
from typing import Optional
from cv_builder.config import settings
from cv_builder.models.document_models import RenderedDocument
from cv_builder.services.cv_generator import CVGenerator

logger = logging.getLogger(__name__)


class PDFGenerator:
    """Service to generate PDF from HTML using WeasyPrint."""

    def __init__(self, cv_generator: Optional[CVGenerator] = None):
        """
        Initialize the PDF generator.

        Args:
            cv_generator: CV generator instance. If None, creates a new one.
        """
        if cv_generator is None:
            cv_generator = CVGenerator()
        self.cv_generator = cv_generator

    def generate_pdf(self, document: RenderedDocument) -> bytes:
        """
        Generate PDF from a rendered CV document.

        Args:
            document: Structured CV document

        Returns:
            bytes: PDF file as bytes
        """
        # WeasyPrint loads native libraries on import, so defer it to export time
        from weasyprint import HTML as WeasyHTML, CSS

        # Generate HTML first, with the print layout
        html_content = self.cv_generator.generate_html(document, layout="print")

        # Create HTML object
        html = WeasyHTML(string=html_content)

        # Configure PDF settings (page size and margins)
        page_css = CSS(string=f"""
            @page {{
                size: {settings.pdf_page_size};
                margin: {settings.pdf_margin};
            }}
        """)

        # Generate PDF
        pdf_bytes = html.write_pdf(stylesheets=[page_css])
        logger.info("Generated PDF for CV %s (%d bytes)", document.cv_id, len(pdf_bytes))

        return pdf_bytes

    @staticmethod
    def filename_for(document: RenderedDocument) -> str:
        """Download file name, e.g. Jane_Doe_CV.pdf."""
        name = "_".join(document.header.full_name.split())
        return f"{name}_CV.pdf" if name else "CV.pdf"
