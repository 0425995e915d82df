"""Tests for profile loading."""

import pytest

from cv_builder.config import PACKAGE_DIR
from cv_builder.services.errors import ProfileNotFoundError
from cv_builder.services.profile_loader import ProfileLoader


def test_load_bundled_profiles():
    """Test loading the bundled demo profiles."""
    loader = ProfileLoader.from_yaml(PACKAGE_DIR / "data" / "profiles.yaml")
    profile = loader.get_profile("demo-professional")

    assert profile.full_name == "Jane Doe"
    assert profile.skills == ["Python", "PostgreSQL", "Kubernetes"]


def test_load_from_file(tmp_path):
    """Test loading profiles from a YAML file."""
    path = tmp_path / "profiles.yaml"
    path.write_text(
        "profiles:\n"
        "  - id: p1\n"
        "    first_name: Grace\n"
        "    last_name: Hopper\n"
        "    bio: Compiler pioneer\n",
        encoding="utf-8",
    )
    profile = ProfileLoader.from_yaml(path).get_profile("p1")
    assert profile.bio == "Compiler pioneer"
    assert profile.skills == []


def test_missing_file_is_empty(tmp_path):
    """Test that a missing profiles file yields no profiles."""
    loader = ProfileLoader.from_yaml(tmp_path / "absent.yaml")
    with pytest.raises(ProfileNotFoundError, match="absent-id"):
        loader.get_profile("absent-id")


def test_invalid_yaml(tmp_path):
    """Test loading malformed YAML."""
    path = tmp_path / "profiles.yaml"
    path.write_text("profiles: [unclosed", encoding="utf-8")
    with pytest.raises(ValueError, match="Invalid YAML format"):
        ProfileLoader.from_yaml(path)


def test_invalid_profile(tmp_path):
    """Test loading a profile without an id."""
    path = tmp_path / "profiles.yaml"
    path.write_text("profiles:\n  - first_name: NoId\n", encoding="utf-8")
    with pytest.raises(ValueError, match="Invalid profile data structure"):
        ProfileLoader.from_yaml(path)
