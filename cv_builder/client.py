"""HTTP client for the CV Builder API, used by the Streamlit editor."""

import logging
import re
from typing import List, Optional, Tuple

import httpx

from cv_builder.models.cv_models import CVData
from cv_builder.models.load_models import PartialLoadDegraded
from cv_builder.models.response_models import CVResponse, SaveResponse

logger = logging.getLogger(__name__)


class CVBuilderClient:
    """Thin synchronous wrapper around the CV endpoints."""

    def __init__(
        self,
        base_url: str,
        timeout: float = 60.0,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        """
        Initialize the client.

        Args:
            base_url: Base URL of the FastAPI server
            timeout: Request timeout in seconds
            transport: Optional httpx transport (tests use a mock transport)
        """
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.transport = transport

    def _client(self, timeout: Optional[float] = None) -> httpx.Client:
        return httpx.Client(
            base_url=self.base_url,
            timeout=timeout or self.timeout,
            transport=self.transport,
        )

    def is_healthy(self) -> bool:
        """Check whether the server answers its health endpoint."""
        try:
            with self._client(timeout=2.0) as client:
                response = client.get("/health")
        except httpx.HTTPError as e:
            logger.warning("Health check against %s failed: %s", self.base_url, e)
            return False
        return response.status_code == 200

    def load_cv(self, professional_id: str) -> Tuple[CVData, bool, List[PartialLoadDegraded]]:
        """
        Load a CV, or the prefilled skeleton when none is stored.

        Returns:
            Tuple[CVData, bool, List[PartialLoadDegraded]]: The CV, whether it
            was prefilled, and the sections that failed to load

        Raises:
            httpx.HTTPStatusError: If the server rejects the request
        """
        with self._client() as client:
            response = client.get(f"/api/v1/cv/{professional_id}")
            response.raise_for_status()
        body = CVResponse.model_validate(response.json())
        return body.cv, body.prefilled, body.warnings

    def save_cv(self, professional_id: str, cv: CVData) -> SaveResponse:
        """
        Save a CV.

        A partial save (HTTP 207) is returned like a full one; check
        ``failed_sections`` on the result.

        Raises:
            httpx.HTTPStatusError: If nothing was saved
        """
        payload = cv.model_dump(mode="json", by_alias=True)
        with self._client() as client:
            response = client.put(f"/api/v1/cv/{professional_id}", json=payload)
            response.raise_for_status()
        return SaveResponse.model_validate(response.json())

    def preview_html(self, professional_id: str, layout: str = "preview") -> str:
        """Fetch the rendered HTML preview."""
        with self._client() as client:
            response = client.get(f"/api/v1/cv/{professional_id}/preview", params={"layout": layout})
            response.raise_for_status()
        return response.text

    def export_pdf(self, professional_id: str) -> Tuple[bytes, str]:
        """
        Fetch the CV as PDF.

        Returns:
            Tuple[bytes, str]: PDF bytes and the download file name
        """
        # PDF rendering can be slow for long CVs
        with self._client(timeout=300.0) as client:
            response = client.get(f"/api/v1/cv/{professional_id}/pdf")
            response.raise_for_status()
        match = re.search(r'filename="([^"]+)"', response.headers.get("content-disposition", ""))
        return response.content, match.group(1) if match else "CV.pdf"
