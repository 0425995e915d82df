"""Events produced while loading a CV.

A load yields either a single ``CVNotFound`` or ``RootOnly`` followed by
``Merged``. Each event carries its own aggregate, so a consumer never sees a
half-merged object.
"""

from typing import List, Literal, Union
from pydantic import BaseModel, Field

from cv_builder.models.cv_models import CVData, SectionKey


class PartialLoadDegraded(BaseModel):
    """A section whose fetch failed and was replaced by an empty list."""

    section: SectionKey
    message: str


class CVNotFound(BaseModel):
    """No CV root exists yet for this professional."""

    phase: Literal["not_found"] = "not_found"
    professional_id: str


class RootOnly(BaseModel):
    """Root record loaded, sections still in flight (all empty)."""

    phase: Literal["root_only"] = "root_only"
    cv: CVData


class Merged(BaseModel):
    """Root plus every section, each sorted by display order."""

    phase: Literal["merged"] = "merged"
    cv: CVData
    warnings: List[PartialLoadDegraded] = Field(default_factory=list)

    @property
    def degraded(self) -> bool:
        return bool(self.warnings)

    @property
    def failed_sections(self) -> List[SectionKey]:
        return [warning.section for warning in self.warnings]


LoadEvent = Union[CVNotFound, RootOnly, Merged]
