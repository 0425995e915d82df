"""Helper functions for rendering CV documents and Jinja2 templates."""

import calendar
from datetime import datetime
from typing import Dict, Iterable, List, Optional
from jinja2 import Environment

from cv_builder.models.cv_models import Skill


PRESENT = "Present"
DEFAULT_SKILL_CATEGORY = "Other"


def format_month_year(value: Optional[str]) -> str:
    """
    Format an ISO date as "Month Year".

    Example: "2020-01" -> "January 2020", "2021-06-15" -> "June 2021"

    Args:
        value: Date string, YYYY-MM or YYYY-MM-DD

    Returns:
        str: Formatted date, "" for a blank value, the raw value if unparseable
    """
    if not value:
        return ""
    for fmt in ("%Y-%m-%d", "%Y-%m"):
        try:
            parsed = datetime.strptime(value, fmt)
        except ValueError:
            continue
        return f"{calendar.month_name[parsed.month]} {parsed.year}"
    return str(value)


def format_date_range(start: Optional[str], end: Optional[str], is_open: bool = False) -> Optional[str]:
    """
    Format a start/end pair as "January 2020 - Present".

    An open range (current job, ongoing study) always ends in "Present".

    Returns:
        Optional[str]: Formatted range, None if there is nothing to show
    """
    if not start and not end and not is_open:
        return None
    end_text = PRESENT if is_open else format_month_year(end)
    start_text = format_month_year(start)
    if not start_text or not end_text:
        return start_text or end_text
    return f"{start_text} - {end_text}"


def group_skills_by_category(skills: Iterable[Skill]) -> Dict[str, List[Skill]]:
    """
    Group skills by category.

    Categories keep the order in which they are first seen and skills keep
    their order within a category. A blank category groups as "Other".

    Args:
        skills: Skills in display order

    Returns:
        Dict[str, List[Skill]]: Dictionary mapping category to its skills
    """
    grouped: Dict[str, List[Skill]] = {}

    for skill in skills:
        category = skill.category.strip() or DEFAULT_SKILL_CATEGORY
        if category not in grouped:
            grouped[category] = []
        grouped[category].append(skill)

    return grouped


def register_jinja_filters(env: Environment) -> None:
    """
    Register helper functions as Jinja2 filters.

    Args:
        env: Jinja2 Environment instance
    """
    env.filters['month_year'] = format_month_year
