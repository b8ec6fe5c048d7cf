"""
Unit tests for custom field lookup and translation tables
"""
import pytest

from services.normalize.fields import TranslationTable, find_custom_field, lookup_custom_field
from shared.errors import FieldNotFoundError
from shared.schemas.ticket import CustomField


@pytest.fixture
def custom_fields():
    return [
        CustomField(name="Outcome", values=["Fixed"]),
        CustomField(name="TicketType", values=["Incident", "Hardware"]),
        CustomField(name="Outcome", values=["Duplicate"]),
        CustomField(name="Empty", values=[]),
    ]


class TestLookupCustomField:

    def test_returns_values(self, custom_fields):
        assert lookup_custom_field(custom_fields, "TicketType") == ["Incident", "Hardware"]

    def test_first_match_wins(self, custom_fields):
        assert lookup_custom_field(custom_fields, "Outcome") == ["Fixed"]

    def test_field_without_values(self, custom_fields):
        assert lookup_custom_field(custom_fields, "Empty") == []

    def test_missing_field_raises(self, custom_fields):
        with pytest.raises(FieldNotFoundError) as exc_info:
            lookup_custom_field(custom_fields, "Security Incident", ticket_id="12")
        assert exc_info.value.field_name == "Security Incident"
        assert "12" in str(exc_info.value)

    def test_name_match_is_exact(self, custom_fields):
        with pytest.raises(FieldNotFoundError):
            lookup_custom_field(custom_fields, "outcome")

    def test_find_returns_none_when_missing(self, custom_fields):
        assert find_custom_field(custom_fields, "Nope") is None

    def test_find_returns_copy(self, custom_fields):
        values = find_custom_field(custom_fields, "TicketType")
        values.append("changed")
        assert custom_fields[1].values == ["Incident", "Hardware"]


class TestTranslationTable:

    def test_translates_known_value(self):
        table = TranslationTable("severity", {"4 hours": "Severity 2"})
        assert table.translate("4 hours") == "Severity 2"

    def test_unknown_value_has_no_translation(self):
        table = TranslationTable("assignee", {"bob": "Bob Jones"})
        assert table.translate("carol") is None
        assert table.translate(None) is None

    def test_membership(self):
        table = TranslationTable("assignee", {"bob": "Bob Jones"})
        assert "bob" in table
        assert len(table) == 1
