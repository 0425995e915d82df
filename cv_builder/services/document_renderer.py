"""Service for turning a CV into a structured, print-ready document."""

from typing import List, Optional

from cv_builder.models.cv_models import (
    Certification,
    CVData,
    Education,
    Language,
    Project,
    SectionKey,
    Skill,
    WorkExperience,
)
from cv_builder.models.document_models import (
    SUMMARY_SECTION,
    BulletGroup,
    DocumentEntry,
    DocumentField,
    DocumentHeader,
    DocumentLink,
    DocumentSection,
    RenderedDocument,
    SkillGroup,
    SkillLine,
)
from cv_builder.models.profile_models import ProfessionalProfile
from cv_builder.services.errors import IncompleteDocumentError
from cv_builder.services.section_store import SECTION_DESCRIPTORS
from cv_builder.utils.template_helpers import format_date_range, format_month_year, group_skills_by_category


class DocumentRenderer:
    """
    Renders a merged CV into a ``RenderedDocument``.

    Section order is fixed: Summary, Work Experience, Education, Skills,
    Languages, Certifications, Projects. Empty sections are left out.
    """

    def render(self, cv: CVData, profile: Optional[ProfessionalProfile] = None) -> RenderedDocument:
        """
        Render a CV.

        Args:
            cv: Fully merged CV (never the root-only phase of a load)
            profile: Profile providing name and contact details

        Returns:
            RenderedDocument: Structured document

        Raises:
            IncompleteDocumentError: If ``cv`` is a root-only partial
        """
        if not cv.sections_loaded:
            raise IncompleteDocumentError("Cannot render a CV whose sections are still loading")

        sections: List[DocumentSection] = []

        if cv.summary.strip():
            sections.append(DocumentSection(key=SUMMARY_SECTION, title="Professional Summary", text=cv.summary))

        if cv.work_experience:
            sections.append(self._section(SectionKey.WORK_EXPERIENCE, [self._work(item) for item in cv.work_experience]))

        if cv.education:
            sections.append(self._section(SectionKey.EDUCATION, [self._education(item) for item in cv.education]))

        if cv.skills:
            sections.append(self._skills(cv.skills))

        if cv.languages:
            sections.append(self._section(SectionKey.LANGUAGES, [self._language(item) for item in cv.languages]))

        if cv.certifications:
            sections.append(
                self._section(SectionKey.CERTIFICATIONS, [self._certification(item) for item in cv.certifications])
            )

        if cv.projects:
            sections.append(self._section(SectionKey.PROJECTS, [self._project(item) for item in cv.projects]))

        return RenderedDocument(cv_id=cv.id, header=self._header(cv, profile), sections=sections)

    @staticmethod
    def _section(key: SectionKey, entries: List[DocumentEntry]) -> DocumentSection:
        return DocumentSection(key=key.value, title=SECTION_DESCRIPTORS[key].title, entries=entries)

    def _header(self, cv: CVData, profile: Optional[ProfessionalProfile]) -> DocumentHeader:
        details = []
        if cv.citizenship:
            details.append(DocumentField(label="Citizenship", value=cv.citizenship))
        if cv.work_permit_status:
            details.append(DocumentField(label="Work Permit", value=cv.work_permit_status))
        if cv.has_driving_license:
            details.append(DocumentField(label="Driving License", value="Yes"))

        if profile is None:
            return DocumentHeader(personal_details=details)

        links = [
            DocumentLink(label=label, url=url)
            for label, url in (
                ("Portfolio", profile.portfolio_url),
                ("LinkedIn", profile.linkedin_url),
                ("GitHub", profile.github_url),
            )
            if url
        ]
        return DocumentHeader(
            full_name=profile.full_name,
            title=profile.title,
            location=profile.location,
            email=profile.email,
            phone=profile.phone,
            photo_url=profile.profile_photo_url,
            links=links,
            personal_details=details,
        )

    def _work(self, item: WorkExperience) -> DocumentEntry:
        groups = []
        if item.responsibilities:
            groups.append(BulletGroup(label="Key Responsibilities", items=list(item.responsibilities)))
        if item.achievements:
            groups.append(BulletGroup(label="Key Achievements", items=list(item.achievements)))
        return DocumentEntry(
            title=item.job_title,
            subtitle=item.company_name,
            date_range=format_date_range(item.start_date, item.end_date, item.is_current),
            location=item.location,
            bullet_groups=groups,
        )

    def _education(self, item: Education) -> DocumentEntry:
        details = [DocumentField(label="Grade/GPA", value=item.grade_gpa)] if item.grade_gpa else []
        return DocumentEntry(
            title=item.degree_title,
            subtitle=item.institution_name,
            caption=item.field_of_study,
            date_range=format_date_range(item.start_date, item.end_date, item.is_ongoing),
            location=item.location,
            details=details,
            description=item.description,
        )

    def _skills(self, skills: List[Skill]) -> DocumentSection:
        groups = [
            SkillGroup(
                category=category,
                skills=[
                    SkillLine(
                        name=skill.skill_name,
                        level=skill.proficiency_level.value if skill.proficiency_level else "",
                        years_experience=skill.years_experience,
                    )
                    for skill in members
                ],
            )
            for category, members in group_skills_by_category(skills).items()
        ]
        return DocumentSection(
            key=SectionKey.SKILLS.value,
            title=SECTION_DESCRIPTORS[SectionKey.SKILLS].title,
            skill_groups=groups,
        )

    def _language(self, item: Language) -> DocumentEntry:
        return DocumentEntry(
            title=item.language_name,
            badge=item.proficiency_level.value if item.proficiency_level else "",
            caption=item.certification,
        )

    def _certification(self, item: Certification) -> DocumentEntry:
        details = []
        if item.issue_date:
            details.append(DocumentField(label="Issued", value=format_month_year(item.issue_date)))
        if item.expiry_date:
            details.append(DocumentField(label="Expires", value=format_month_year(item.expiry_date)))
        if item.credential_id:
            details.append(DocumentField(label="Credential ID", value=item.credential_id))
        return DocumentEntry(
            title=item.certification_name,
            subtitle=item.issuing_organization,
            details=details,
            description=item.description,
            link=DocumentLink(label="View Credential", url=item.credential_url) if item.credential_url else None,
        )

    def _project(self, item: Project) -> DocumentEntry:
        return DocumentEntry(
            title=item.project_name,
            subtitle=item.role,
            date_range=format_date_range(item.start_date, item.end_date, item.is_ongoing) if item.start_date else None,
            description=item.description,
            tags=list(item.technologies_used),
            link=DocumentLink(label="View Project", url=item.project_url) if item.project_url else None,
        )
