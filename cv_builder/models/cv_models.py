"""Pydantic models for CV data structures."""

import re
from datetime import datetime
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel


_DATE_PATTERN = re.compile(r"^\d{4}-(0[1-9]|1[0-2])(-\d{2})?$")


def _normalize_date(value: Optional[str]) -> Optional[str]:
    """Turn blank dates into None and reject anything that is not a real YYYY-MM[-DD] date."""
    if value is None:
        return None
    value = str(value).strip()
    if not value:
        return None
    if not _DATE_PATTERN.match(value):
        raise ValueError(f"Invalid date '{value}'. Expected YYYY-MM or YYYY-MM-DD")
    try:
        datetime.strptime(value, "%Y-%m-%d" if len(value) > 7 else "%Y-%m")
    except ValueError:
        raise ValueError(f"Invalid date '{value}'. No such calendar day") from None
    return value


def _blank_to_none(value):
    if isinstance(value, str) and not value.strip():
        return None
    return value


class SectionKey(str, Enum):
    """The six ordered child collections of a CV."""

    WORK_EXPERIENCE = "work_experience"
    EDUCATION = "education"
    SKILLS = "skills"
    LANGUAGES = "languages"
    CERTIFICATIONS = "certifications"
    PROJECTS = "projects"


class SkillLevel(str, Enum):
    """Skill proficiency, ordered from Beginner to Expert."""

    BEGINNER = "Beginner"
    INTERMEDIATE = "Intermediate"
    ADVANCED = "Advanced"
    EXPERT = "Expert"

    @property
    def rank(self) -> int:
        return list(SkillLevel).index(self)


class LanguageLevel(str, Enum):
    """Language proficiency, ordered from Basic to Native."""

    BASIC = "Basic"
    CONVERSATIONAL = "Conversational"
    FLUENT = "Fluent"
    NATIVE = "Native"

    @property
    def rank(self) -> int:
        return list(LanguageLevel).index(self)


class CVModel(BaseModel):
    """Base model: snake_case fields, camelCase JSON aliases."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class SectionItem(CVModel):
    """Fields shared by every section entry."""

    id: Optional[str] = None
    display_order: Optional[int] = None


class WorkExperience(SectionItem):
    """Work experience entry model."""

    job_title: str
    company_name: str
    location: str = ""
    start_date: Optional[str] = None
    end_date: Optional[str] = None
    is_current: bool = False
    responsibilities: List[str] = Field(default_factory=list)
    achievements: List[str] = Field(default_factory=list)

    @field_validator("start_date", "end_date", mode="before")
    @classmethod
    def check_dates(cls, value):
        return _normalize_date(value)

    @model_validator(mode="after")
    def drop_end_date_when_current(self):
        if self.is_current:
            self.end_date = None
        return self


class Education(SectionItem):
    """Education entry model."""

    institution_name: str
    degree_title: str
    field_of_study: str = ""
    location: str = ""
    start_date: Optional[str] = None
    end_date: Optional[str] = None
    is_ongoing: bool = False
    grade_gpa: str = ""
    description: str = ""

    @field_validator("start_date", "end_date", mode="before")
    @classmethod
    def check_dates(cls, value):
        return _normalize_date(value)

    @model_validator(mode="after")
    def drop_end_date_when_ongoing(self):
        if self.is_ongoing:
            self.end_date = None
        return self


class Skill(SectionItem):
    """Skill entry model. Category is a free-text display grouping key."""

    skill_name: str
    category: str = ""
    proficiency_level: Optional[SkillLevel] = None
    years_experience: Optional[int] = Field(default=None, ge=0)

    @field_validator("proficiency_level", mode="before")
    @classmethod
    def blank_level(cls, value):
        return _blank_to_none(value)


class Language(SectionItem):
    """Language proficiency model."""

    language_name: str
    proficiency_level: Optional[LanguageLevel] = None
    certification: str = ""

    @field_validator("proficiency_level", mode="before")
    @classmethod
    def blank_level(cls, value):
        return _blank_to_none(value)


class Certification(SectionItem):
    """Certification entry model."""

    certification_name: str
    issuing_organization: str = ""
    issue_date: Optional[str] = None
    expiry_date: Optional[str] = None
    credential_id: str = ""
    credential_url: str = ""
    description: str = ""

    @field_validator("issue_date", "expiry_date", mode="before")
    @classmethod
    def check_dates(cls, value):
        return _normalize_date(value)


class Project(SectionItem):
    """Project entry model."""

    project_name: str
    description: str = ""
    technologies_used: List[str] = Field(default_factory=list)
    project_url: str = ""
    start_date: Optional[str] = None
    end_date: Optional[str] = None
    is_ongoing: bool = False
    role: str = ""

    @field_validator("start_date", "end_date", mode="before")
    @classmethod
    def check_dates(cls, value):
        return _normalize_date(value)

    @model_validator(mode="after")
    def drop_end_date_when_ongoing(self):
        if self.is_ongoing:
            self.end_date = None
        return self


ROOT_FIELDS = ("summary", "citizenship", "work_permit_status", "has_driving_license")


class CVData(CVModel):
    """Complete CV data model: the root record plus its six sections."""

    id: Optional[str] = None
    professional_id: Optional[str] = None
    summary: str = ""
    citizenship: str = ""
    work_permit_status: str = ""
    has_driving_license: bool = False
    work_experience: List[WorkExperience] = Field(default_factory=list)
    education: List[Education] = Field(default_factory=list)
    skills: List[Skill] = Field(default_factory=list)
    languages: List[Language] = Field(default_factory=list)
    certifications: List[Certification] = Field(default_factory=list)
    projects: List[Project] = Field(default_factory=list)

    # False only while a load has produced the root but not the sections yet
    sections_loaded: bool = Field(default=True, exclude=True)

    def section(self, key: SectionKey) -> list:
        """Return the live list backing a section."""
        return getattr(self, SectionKey(key).value)

    def root_fields(self) -> dict:
        """Return the columns persisted on the root record."""
        return {name: getattr(self, name) for name in ROOT_FIELDS}
