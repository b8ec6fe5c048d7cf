"""
RT Ticket Export - Column Profiles

A column profile is the declarative description of one CSV layout: an
ordered list of columns, each naming where its value comes from and what
literal to emit when nothing is sourced. Built-in profiles ship as JSON in
shared/profiles/.
"""

import json
from enum import Enum
from pathlib import Path
from typing import Any, Optional, Union

from pydantic import BaseModel, Field, field_validator, model_validator

PROFILES_DIR = Path(__file__).resolve().parent.parent / "profiles"

CUSTOM_FIELD_PREFIX = "cf:"


class MissingFieldPolicy(str, Enum):
    """What to do when a ticket lacks a custom field a column reads"""
    EMPTY = "empty"
    SKIP = "skip"


class ColumnSpec(BaseModel):
    """One output column"""
    name: str
    source: Optional[str] = Field(
        None,
        description="Logical field name, or 'cf:<Custom Field Name>'. None for literal-only columns",
    )
    default: Optional[Union[str, int, float]] = None
    translate: Optional[str] = Field(None, description="Name of a translation table")
    quote: Optional[bool] = Field(None, description="Force quoting on/off; None follows the source kind")
    required: Optional[bool] = Field(None, description="Overrides the profile's missing_fields policy")

    @model_validator(mode="after")
    def check_has_value(self):
        if self.source is None and self.default is None:
            raise ValueError(f"Column '{self.name}' needs a source or a default")
        return self

    @property
    def custom_field(self) -> Optional[str]:
        if self.source and self.source.startswith(CUSTOM_FIELD_PREFIX):
            return self.source[len(CUSTOM_FIELD_PREFIX):]
        return None


class ColumnProfile(BaseModel):
    """Ordered column set plus the knobs that change record assembly"""
    name: str
    description: str = ""
    columns: list[ColumnSpec]
    strip_inline_description: bool = True
    fragment_template: str = "{content}"
    fragment_separator: str = "\n\n"
    flatten_newlines: bool = True
    missing_fields: MissingFieldPolicy = MissingFieldPolicy.EMPTY
    translations: dict[str, dict[str, str]] = Field(default_factory=dict)

    class Config:
        use_enum_values = True

    @field_validator("columns")
    @classmethod
    def check_unique_names(cls, columns: list[ColumnSpec]) -> list[ColumnSpec]:
        names = [c.name for c in columns]
        duplicates = {n for n in names if names.count(n) > 1}
        if duplicates:
            raise ValueError(f"Duplicate column names: {', '.join(sorted(duplicates))}")
        if not columns:
            raise ValueError("A profile needs at least one column")
        return columns

    @field_validator("fragment_template")
    @classmethod
    def check_fragment_template(cls, template: str) -> str:
        try:
            template.format(created="", creator="", content="")
        except (KeyError, IndexError) as e:
            raise ValueError(
                f"fragment_template may only use {{created}}, {{creator}} and {{content}}, got {e}"
            ) from e
        return template

    @model_validator(mode="after")
    def check_translation_tables(self):
        for column in self.columns:
            if column.translate and column.translate not in self.translations:
                raise ValueError(
                    f"Column '{column.name}' uses unknown translation table '{column.translate}'"
                )
        return self

    @property
    def header(self) -> list[str]:
        return [c.name for c in self.columns]

    def with_defaults(self, overrides: dict[str, Any]) -> "ColumnProfile":
        """Return a copy whose literal defaults are replaced by `overrides`"""
        unknown = set(overrides) - set(self.header)
        if unknown:
            raise ValueError(f"Unknown columns: {', '.join(sorted(unknown))}")
        columns = [
            c.model_copy(update={"default": overrides[c.name]}) if c.name in overrides else c
            for c in self.columns
        ]
        return self.model_copy(update={"columns": columns})

    def with_translations(self, tables: dict[str, dict[str, str]]) -> "ColumnProfile":
        merged = {**self.translations, **tables}
        return self.model_copy(update={"translations": merged})


def available_profiles() -> list[str]:
    """Names of the built-in profiles"""
    return sorted(p.stem for p in PROFILES_DIR.glob("*.json"))


def load_profile(name_or_path: str) -> ColumnProfile:
    """
    Load a profile by built-in name (e.g. 'generic') or from a JSON file path.

    Raises:
        FileNotFoundError: neither a built-in name nor an existing file
        pydantic.ValidationError: the file does not describe a valid profile
    """
    path = Path(name_or_path)
    if not path.is_file():
        path = PROFILES_DIR / f"{name_or_path}.json"
    if not path.is_file():
        raise FileNotFoundError(
            f"Unknown profile '{name_or_path}' (built-in: {', '.join(available_profiles())})"
        )

    with open(path, "r") as f:
        data = json.load(f)
    return ColumnProfile.model_validate(data)
