"""Pydantic models for the professional profile the CV is built on."""

from typing import List, Optional
from pydantic import BaseModel, Field


class ProfessionalProfile(BaseModel):
    """Read-only view of a professional's profile."""

    id: str
    first_name: str = ""
    last_name: str = ""
    title: str = ""
    location: str = ""
    email: str = ""
    phone: str = ""
    bio: str = ""
    skills: List[str] = Field(default_factory=list)
    portfolio_url: str = ""
    linkedin_url: str = ""
    github_url: str = ""
    profile_photo_url: Optional[str] = None

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()
