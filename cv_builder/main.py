"""FastAPI application for CV Builder."""

import logging
from io import BytesIO
from typing import Optional, Tuple
from fastapi import Depends, FastAPI, HTTPException, status
from fastapi.responses import HTMLResponse, JSONResponse, StreamingResponse
from cv_builder.api.dependencies import (
    get_cv_generator,
    get_document_renderer,
    get_pdf_generator,
    get_prefill_resolver,
    get_profiles,
    get_repository,
)
from cv_builder.config import settings
from cv_builder.models.cv_models import CVData
from cv_builder.models.document_models import RenderedDocument
from cv_builder.models.load_models import Merged
from cv_builder.models.request_models import Layout
from cv_builder.models.response_models import (
    CVResponse,
    ErrorResponse,
    HealthResponse,
    RootResponse,
    SaveResponse,
    SectionFailure,
)
from cv_builder.services.cv_generator import CVGenerator
from cv_builder.services.cv_repository import CVRepository
from cv_builder.services.document_renderer import DocumentRenderer
from cv_builder.services.errors import PartialSaveError, PersistenceError, ProfileNotFoundError
from cv_builder.services.pdf_generator import PDFGenerator
from cv_builder.services.prefill_resolver import PrefillResolver
from cv_builder.services.profile_loader import ProfileLoader

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

API_VERSION = "1.0.0"

app = FastAPI(
    title="CV Builder API",
    description="""API to store, preview and export professional CVs.

## Features

* **Load**: Returns the stored CV, or a skeleton prefilled from the profile when none exists
* **Save**: Stores the CV root and its six sections (work experience, education, skills, languages, certifications, projects)
* **Preview**: Renders the CV as HTML for screen or print
* **Export**: Renders the CV as an A4 PDF""",
    version=API_VERSION,
    tags_metadata=[
        {
            "name": "health",
            "description": "Health check and status endpoints"
        },
        {
            "name": "cv",
            "description": "CV load, save, preview and export endpoints"
        }
    ]
)


@app.get(
    "/",
    response_model=RootResponse,
    status_code=status.HTTP_200_OK,
    summary="Root endpoint",
    description="Returns API information including name and version",
    tags=["health"]
)
async def root():
    """
    Root endpoint.

    Returns basic API information including name and version.
    """
    return RootResponse(message="CV Builder API", version=API_VERSION)


@app.get(
    "/health",
    response_model=HealthResponse,
    status_code=status.HTTP_200_OK,
    summary="Health check",
    description="Checks if the API service is running and healthy",
    tags=["health"]
)
async def health():
    """
    Health check endpoint.

    Returns the health status of the API service.
    """
    return HealthResponse(status="ok")


@app.get(
    "/api/v1/cv/{professional_id}",
    response_model=CVResponse,
    response_model_by_alias=True,
    summary="Load CV",
    description="""
    Returns the stored CV with all sections sorted by display order.

    If the professional has no CV yet, returns a skeleton built from their
    profile (summary from the bio, one skill per profile skill) with
    `prefilled` set. Sections that failed to load are listed in `warnings`.
    """,
    tags=["cv"],
    responses={
        404: {
            "description": "Not found - No CV and no profile to prefill from",
            "model": ErrorResponse
        }
    }
)
async def load_cv(
    professional_id: str,
    repository: CVRepository = Depends(get_repository),
    profiles: ProfileLoader = Depends(get_profiles),
    prefill: PrefillResolver = Depends(get_prefill_resolver),
):
    """Load a CV, falling back to a prefilled skeleton."""
    merged = await repository.load_merged(professional_id)
    if merged is not None:
        return CVResponse(cv=merged.cv, degraded=merged.degraded, warnings=merged.warnings)

    try:
        profile = profiles.get_profile(professional_id)
    except ProfileNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))

    return CVResponse(cv=prefill.build_skeleton(profile), prefilled=True)


@app.put(
    "/api/v1/cv/{professional_id}",
    response_model=SaveResponse,
    summary="Save CV",
    description="""
    Stores the whole CV. The root is written first, then every section is
    replaced independently.

    **Status codes:**
    - `200`: everything was saved
    - `207`: the root was saved but some sections failed (listed in `failed_sections`); save again to repair
    - `503`: nothing was saved
    """,
    tags=["cv"],
    responses={
        207: {
            "description": "Partially saved",
            "model": SaveResponse
        },
        503: {
            "description": "Nothing saved - CV root could not be written",
            "model": ErrorResponse
        }
    }
)
async def save_cv(
    professional_id: str,
    cv: CVData,
    repository: CVRepository = Depends(get_repository),
):
    """Save a CV for the professional in the path."""
    try:
        cv_id = await repository.save(cv, professional_id=professional_id)
    except PartialSaveError as e:
        body = SaveResponse(
            cv_id=e.cv_id,
            saved_sections=e.saved_sections,
            failed_sections=[
                SectionFailure(section=error.section, step=error.step, detail=str(error.cause))
                for error in e.section_errors
            ],
        )
        return JSONResponse(status_code=207, content=body.model_dump(mode="json"))
    except PersistenceError as e:
        raise HTTPException(status_code=503, detail=str(e))

    return SaveResponse(cv_id=cv_id, saved_sections=list(repository.sections))


async def _render_document(
    professional_id: str,
    repository: CVRepository,
    profiles: ProfileLoader,
    renderer: DocumentRenderer,
) -> Tuple[RenderedDocument, Merged]:
    merged = await repository.load_merged(professional_id)
    if merged is None:
        raise HTTPException(status_code=404, detail=f"No CV found for professional {professional_id}")

    profile = None
    try:
        profile = profiles.get_profile(professional_id)
    except ProfileNotFoundError:
        logger.warning("Rendering CV %s without profile details", merged.cv.id)

    return renderer.render(merged.cv, profile), merged


def _degraded_headers(merged: Merged) -> Optional[dict]:
    if not merged.degraded:
        return None
    return {"X-CV-Degraded-Sections": ",".join(section.value for section in merged.failed_sections)}


@app.get(
    "/api/v1/cv/{professional_id}/document",
    response_model=RenderedDocument,
    summary="Structured CV document",
    description="Returns the ordered, layout-free document that the preview and PDF are built from",
    tags=["cv"],
    responses={404: {"description": "Not found - No CV stored", "model": ErrorResponse}}
)
async def get_document(
    professional_id: str,
    repository: CVRepository = Depends(get_repository),
    profiles: ProfileLoader = Depends(get_profiles),
    renderer: DocumentRenderer = Depends(get_document_renderer),
):
    """Render the stored CV as a structured document."""
    document, merged = await _render_document(professional_id, repository, profiles, renderer)
    return JSONResponse(content=document.model_dump(mode="json"), headers=_degraded_headers(merged))


@app.get(
    "/api/v1/cv/{professional_id}/preview",
    response_class=HTMLResponse,
    summary="HTML preview",
    description="Renders the stored CV as HTML, laid out for screen (`preview`) or paper (`print`)",
    tags=["cv"],
    responses={404: {"description": "Not found - No CV stored", "model": ErrorResponse}}
)
async def preview_cv(
    professional_id: str,
    layout: Layout = Layout.PREVIEW,
    repository: CVRepository = Depends(get_repository),
    profiles: ProfileLoader = Depends(get_profiles),
    renderer: DocumentRenderer = Depends(get_document_renderer),
    generator: CVGenerator = Depends(get_cv_generator),
):
    """Render the stored CV as HTML."""
    document, merged = await _render_document(professional_id, repository, profiles, renderer)
    html = generator.generate_html(document, layout=layout.value)
    return HTMLResponse(content=html, headers=_degraded_headers(merged))


@app.get(
    "/api/v1/cv/{professional_id}/pdf",
    response_class=StreamingResponse,
    summary="Export CV as PDF",
    description="Renders the stored CV as an A4 PDF download",
    tags=["cv"],
    responses={
        200: {
            "description": "CV PDF file",
            "content": {
                "application/pdf": {
                    "schema": {
                        "type": "string",
                        "format": "binary"
                    }
                }
            }
        },
        404: {"description": "Not found - No CV stored", "model": ErrorResponse},
        500: {"description": "Internal server error", "model": ErrorResponse}
    }
)
async def export_pdf(
    professional_id: str,
    repository: CVRepository = Depends(get_repository),
    profiles: ProfileLoader = Depends(get_profiles),
    renderer: DocumentRenderer = Depends(get_document_renderer),
    pdf_generator: PDFGenerator = Depends(get_pdf_generator),
):
    """
    Export the stored CV as PDF.

    **Returns:**
    - PDF file as binary stream with filename `First_Last_CV.pdf`
    """
    document, merged = await _render_document(professional_id, repository, profiles, renderer)

    try:
        pdf_bytes = pdf_generator.generate_pdf(document)
    except Exception as e:
        logger.error("Error generating PDF for CV %s: %s", document.cv_id, e)
        raise HTTPException(status_code=500, detail=f"Error generating CV: {str(e)}")

    filename = PDFGenerator.filename_for(document)
    headers = {"Content-Disposition": f'attachment; filename="{filename}"'}
    headers.update(_degraded_headers(merged) or {})
    return StreamingResponse(
        BytesIO(pdf_bytes),
        media_type="application/pdf",
        headers=headers
    )
