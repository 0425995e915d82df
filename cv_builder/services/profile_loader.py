"""Service for loading professional profiles from YAML files."""

import yaml
from pathlib import Path
from typing import Dict, Iterable, Optional
from cv_builder.config import settings
from cv_builder.models.profile_models import ProfessionalProfile
from cv_builder.services.errors import ProfileNotFoundError


class ProfileLoader:
    """Read-only source of professional profiles."""

    def __init__(self, profiles: Optional[Iterable[ProfessionalProfile]] = None):
        """
        Initialize the profile loader.

        Args:
            profiles: Profiles to serve. Defaults to none.
        """
        self._profiles: Dict[str, ProfessionalProfile] = {}
        for profile in profiles or []:
            self._profiles[profile.id] = profile

    @classmethod
    def from_yaml(cls, filepath: Path) -> "ProfileLoader":
        """
        Load profiles from a YAML file holding a list under ``profiles``.

        A missing file yields an empty loader.

        Args:
            filepath: Path to the YAML file

        Returns:
            ProfileLoader: Loader serving the file's profiles

        Raises:
            ValueError: If the YAML or a profile is invalid
        """
        if not filepath.exists():
            return cls()

        try:
            with open(filepath, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ValueError(f"Invalid YAML format in {filepath}: {e}")

        try:
            profiles = [ProfessionalProfile(**entry) for entry in data.get("profiles", [])]
        except Exception as e:
            raise ValueError(
                f"Invalid profile data structure in {filepath}. "
                f"Validation error: {e}"
            )
        return cls(profiles)

    def add_profile(self, profile: ProfessionalProfile) -> None:
        self._profiles[profile.id] = profile

    def get_profile(self, professional_id: str) -> ProfessionalProfile:
        """
        Get a professional's profile.

        Raises:
            ProfileNotFoundError: If there is no such profile
        """
        try:
            return self._profiles[professional_id]
        except KeyError:
            raise ProfileNotFoundError(f"Profile not found: {professional_id}") from None


# Singleton instance
_profile_loader: Optional[ProfileLoader] = None


def get_profile_loader(filepath: Optional[Path] = None) -> ProfileLoader:
    """
    Get or create the profile loader singleton.

    Args:
        filepath: Optional YAML file. Defaults to <data_dir>/<profiles_file>.

    Returns:
        ProfileLoader: The profile loader instance
    """
    global _profile_loader
    if _profile_loader is None:
        if filepath is None:
            filepath = settings.data_dir / settings.profiles_file
        _profile_loader = ProfileLoader.from_yaml(filepath)
    return _profile_loader
