"""
Custom field lookup and value translation
"""

from typing import Optional

from shared.errors import FieldNotFoundError
from shared.schemas.ticket import CustomField


def find_custom_field(custom_fields: list[CustomField], name: str) -> Optional[list[str]]:
    """Values of the first custom field named exactly `name`, or None"""
    for field in custom_fields:
        if field.name == name:
            return list(field.values)
    return None


def lookup_custom_field(
    custom_fields: list[CustomField],
    name: str,
    ticket_id: Optional[str] = None,
) -> list[str]:
    """
    Values of the first custom field named exactly `name`.

    Raises:
        FieldNotFoundError: no field with that name on the ticket
    """
    values = find_custom_field(custom_fields, name)
    if values is None:
        raise FieldNotFoundError(name, ticket_id=ticket_id)
    return values


class TranslationTable:
    """Static raw-value -> output-value mapping (SLA -> severity, username -> display name)"""

    def __init__(self, name: str, mapping: dict[str, str]):
        self.name = name
        self._mapping = dict(mapping)

    def translate(self, value: Optional[str]) -> Optional[str]:
        """Mapped value, or None when there is no translation for `value`"""
        if value is None:
            return None
        return self._mapping.get(value)

    def __contains__(self, value: str) -> bool:
        return value in self._mapping

    def __len__(self) -> int:
        return len(self._mapping)
