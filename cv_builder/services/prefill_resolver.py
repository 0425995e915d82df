"""Builds a starting CV from a professional's profile."""

import logging

from cv_builder.models.cv_models import CVData, Skill
from cv_builder.models.profile_models import ProfessionalProfile

logger = logging.getLogger(__name__)


class PrefillResolver:
    """Creates the skeleton CV shown to a professional who has none yet."""

    def build_skeleton(self, profile: ProfessionalProfile) -> CVData:
        """
        Build an unsaved CV from a profile.

        The summary is the profile bio and every profile skill becomes a Skill
        item, in profile order, with blank category and proficiency. The
        skeleton has no id; the first save creates the stored root.

        Args:
            profile: Profile of the professional

        Returns:
            CVData: Skeleton CV
        """
        names = [name.strip() for name in profile.skills if name and name.strip()]
        skills = [Skill(skill_name=name, display_order=index) for index, name in enumerate(names)]
        logger.info("Prefilled CV for professional %s with %d skills", profile.id, len(skills))
        return CVData(
            professional_id=profile.id,
            summary=profile.bio,
            skills=skills,
        )
