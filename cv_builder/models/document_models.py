"""Pydantic models for the rendered, layout-free CV document.

The same ``RenderedDocument`` feeds the HTML preview and the PDF export, so
both show identical sections in identical order.
"""

from typing import List, Optional
from pydantic import BaseModel, Field

from cv_builder.models.cv_models import SectionKey


SUMMARY_SECTION = "summary"


class DocumentLink(BaseModel):
    """Labelled hyperlink."""

    label: str
    url: str


class DocumentField(BaseModel):
    """Label/value pair such as ``Grade/GPA: 3.8``."""

    label: str
    value: str


class DocumentHeader(BaseModel):
    """Name, contact details and personal facts shown above the sections."""

    full_name: str = ""
    title: str = ""
    location: str = ""
    email: str = ""
    phone: str = ""
    photo_url: Optional[str] = None
    links: List[DocumentLink] = Field(default_factory=list)
    personal_details: List[DocumentField] = Field(default_factory=list)


class BulletGroup(BaseModel):
    """Titled bullet list, e.g. Key Responsibilities."""

    label: str
    items: List[str]


class DocumentEntry(BaseModel):
    """One rendered section item."""

    title: str
    subtitle: str = ""
    caption: str = ""
    date_range: Optional[str] = None
    location: str = ""
    badge: str = ""
    details: List[DocumentField] = Field(default_factory=list)
    description: str = ""
    bullet_groups: List[BulletGroup] = Field(default_factory=list)
    tags: List[str] = Field(default_factory=list)
    link: Optional[DocumentLink] = None


class SkillLine(BaseModel):
    """Skill as shown inside its category."""

    name: str
    level: str = ""
    years_experience: Optional[int] = None


class SkillGroup(BaseModel):
    """Skills sharing a category."""

    category: str
    skills: List[SkillLine]


class DocumentSection(BaseModel):
    """A titled section of the document."""

    key: str
    title: str
    text: str = ""
    entries: List[DocumentEntry] = Field(default_factory=list)
    skill_groups: List[SkillGroup] = Field(default_factory=list)


class RenderedDocument(BaseModel):
    """Complete structured CV, ready for preview or export."""

    cv_id: Optional[str] = None
    header: DocumentHeader
    sections: List[DocumentSection] = Field(default_factory=list)

    @property
    def section_keys(self) -> List[str]:
        return [section.key for section in self.sections]

    def get_section(self, key) -> Optional[DocumentSection]:
        if isinstance(key, SectionKey):
            key = key.value
        for section in self.sections:
            if section.key == key:
                return section
        return None

