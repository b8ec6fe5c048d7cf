"""
Export configuration from environment
"""

import json
import os
from typing import Optional

from shared.schemas.profile import ColumnProfile, load_profile

RT_HOST = os.getenv("RT_HOST", "http://localhost:8080")
RT_USERNAME = os.getenv("RT_USERNAME", "")
RT_PASSWORD = os.getenv("RT_PASSWORD", "")
RT_TIMEOUT = float(os.getenv("RT_TIMEOUT", "30"))
RT_HISTORY_PER_PAGE = int(os.getenv("RT_HISTORY_PER_PAGE", "0")) or None

RTX_PROFILE = os.getenv("RTX_PROFILE", "generic")
RTX_CONCURRENCY = int(os.getenv("RTX_CONCURRENCY", "1"))


def parse_overrides(assignments: Optional[list[str]]) -> dict[str, str]:
    """Parse repeated COLUMN=VALUE arguments"""
    overrides = {}
    for assignment in assignments or []:
        column, sep, value = assignment.partition("=")
        if not sep or not column:
            raise ValueError(f"Expected COLUMN=VALUE, got '{assignment}'")
        overrides[column] = value
    return overrides


def build_profile(
    name_or_path: str,
    overrides: Optional[dict[str, str]] = None,
    translations_file: Optional[str] = None,
) -> ColumnProfile:
    """Load a column profile and apply literal-default and translation overrides"""
    profile = load_profile(name_or_path)
    if translations_file:
        with open(translations_file, "r") as f:
            profile = profile.with_translations(json.load(f))
    if overrides:
        profile = profile.with_defaults(overrides)
    return profile
