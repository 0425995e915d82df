"""Response models for API endpoints."""

from typing import List, Optional
from pydantic import BaseModel, Field

from cv_builder.models.cv_models import CVData, SectionKey
from cv_builder.models.load_models import PartialLoadDegraded


class ErrorResponse(BaseModel):
    """Error response model."""

    detail: str = Field(
        ...,
        description="Error message describing what went wrong",
        examples=["No CV found for professional demo-professional"]
    )


class HealthResponse(BaseModel):
    """Health check response model."""

    status: str = Field(
        ...,
        description="Service status",
        examples=["ok"]
    )


class RootResponse(BaseModel):
    """Root endpoint response model."""

    message: str = Field(
        ...,
        description="API name and version information",
        examples=["CV Builder API"]
    )
    version: str = Field(
        ...,
        description="API version",
        examples=["1.0.0"]
    )


class CVResponse(BaseModel):
    """A loaded CV, or a prefilled skeleton when none exists yet."""

    cv: CVData
    prefilled: bool = Field(
        False,
        description="True when no CV is stored and this one was built from the profile"
    )
    degraded: bool = Field(
        False,
        description="True when one or more sections failed to load"
    )
    warnings: List[PartialLoadDegraded] = Field(
        default_factory=list,
        description="Sections that failed to load and are shown empty"
    )


class SectionFailure(BaseModel):
    """A section that could not be written."""

    section: SectionKey
    step: str
    detail: str


class SaveResponse(BaseModel):
    """Outcome of saving a CV."""

    cv_id: Optional[str] = Field(
        None,
        description="Id of the stored CV root"
    )
    saved_sections: List[SectionKey] = Field(default_factory=list)
    failed_sections: List[SectionFailure] = Field(
        default_factory=list,
        description="Sections to retry; these may currently be empty"
    )
