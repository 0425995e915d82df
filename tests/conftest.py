"""Shared fixtures for CV builder tests."""

import asyncio
from typing import Dict, List, Set, Tuple

import pytest

from cv_builder.models.cv_models import (
    Certification,
    CVData,
    Education,
    Language,
    Project,
    Skill,
    WorkExperience,
)
from cv_builder.models.profile_models import ProfessionalProfile
from cv_builder.services.backing_store import ROOT_TABLE, InMemoryStore
from cv_builder.services.cv_repository import CVRepository
from cv_builder.services.errors import StoreOperationError


PROFESSIONAL_ID = "pro-1"


class FlakyStore(InMemoryStore):
    """In-memory store that can fail or block chosen operations."""

    def __init__(self, latency: float = 0.0):
        super().__init__(latency=latency)
        self.fail: Set[Tuple[str, str]] = set()
        self.gates: Dict[str, asyncio.Event] = {}
        self.cancelled: List[str] = []
        self.calls: List[Tuple[str, str]] = []

    def _record(self, operation: str, table: str) -> None:
        self.calls.append((operation, table))
        if (operation, table) in self.fail:
            raise StoreOperationError(table, operation, "injected failure")

    async def get_by_parent(self, table, parent_key):
        self._record("get", table)
        return await super().get_by_parent(table, parent_key)

    async def list_by_parent(self, table, parent_key, order_by="display_order"):
        self._record("list", table)
        gate = self.gates.get(table)
        if gate is not None:
            try:
                await gate.wait()
            except asyncio.CancelledError:
                self.cancelled.append(table)
                raise
        return await super().list_by_parent(table, parent_key, order_by)

    async def delete_by_parent(self, table, parent_key):
        self._record("delete", table)
        return await super().delete_by_parent(table, parent_key)

    async def bulk_insert(self, table, rows):
        self._record("insert", table)
        return await super().bulk_insert(table, rows)

    async def upsert_root(self, parent_key, fields):
        self._record("upsert", ROOT_TABLE)
        return await super().upsert_root(parent_key, fields)


@pytest.fixture
def store():
    return FlakyStore()


@pytest.fixture
def repository(store):
    return CVRepository(store)


@pytest.fixture
def profile():
    return ProfessionalProfile(
        id=PROFESSIONAL_ID,
        first_name="Ada",
        last_name="Lovelace",
        title="Software Engineer",
        location="London",
        email="ada@example.com",
        phone="+44 20 0000 0000",
        bio="Engineer who enjoys analytical engines.",
        skills=["Python", "Go"],
        github_url="https://github.com/ada",
    )


@pytest.fixture
def sample_cv():
    """A CV with every section populated."""
    return CVData(
        professional_id=PROFESSIONAL_ID,
        summary="Backend engineer.",
        citizenship="British",
        work_permit_status="EU Blue Card",
        has_driving_license=True,
        work_experience=[
            WorkExperience(
                job_title="Engineer",
                company_name="Acme",
                location="London",
                start_date="2020-01",
                is_current=True,
                responsibilities=["Build services", "Review code"],
                achievements=["Cut latency by 40%"],
            ),
            WorkExperience(
                job_title="Intern",
                company_name="Initech",
                start_date="2018-06",
                end_date="2019-12",
            ),
        ],
        education=[
            Education(
                institution_name="University of London",
                degree_title="BSc Mathematics",
                field_of_study="Mathematics",
                start_date="2014-09",
                end_date="2018-06",
                grade_gpa="First",
            ),
        ],
        skills=[
            Skill(skill_name="Go", category="Programming", proficiency_level="Advanced", years_experience=4),
            Skill(skill_name="Welding", category="Trades", proficiency_level="Beginner"),
            Skill(skill_name="Rust", category="Programming", proficiency_level="Intermediate"),
        ],
        languages=[
            Language(language_name="English", proficiency_level="Native"),
            Language(language_name="French", proficiency_level="Conversational", certification="DELF B1"),
        ],
        certifications=[
            Certification(
                certification_name="AWS Solutions Architect",
                issuing_organization="Amazon",
                issue_date="2022-03-01",
                expiry_date="2025-03-01",
                credential_id="ABC-123",
                credential_url="https://aws.example.com/verify/ABC-123",
            ),
        ],
        projects=[
            Project(
                project_name="Difference Engine",
                description="Mechanical calculator",
                technologies_used=["Brass", "Gears"],
                project_url="https://example.com/engine",
                start_date="2021-01",
                is_ongoing=True,
                role="Lead",
            ),
        ],
    )


def section_contents(items):
    """Item fields without store-assigned ids or order."""
    return [item.model_dump(exclude={"id", "display_order"}) for item in items]
