"""Unit tests for mirror.title_resolver module."""

import pytest

from notion_mirror.mirror.models import TitleSource
from notion_mirror.mirror.title_resolver import (
    first_plain_text,
    resolve_title,
    safe_id,
    sanitize_name,
)
from tests.fixtures.sample_objects import (
    PAGE_ALPHA_ID,
    make_database,
    make_page,
    rich_text,
)


class TestSanitizeName:
    """Test cases for sanitize_name function."""

    def test_replaces_each_unsafe_character(self):
        assert sanitize_name("My Page: v2") == "My_Page__v2"

    @pytest.mark.parametrize("name", [None, ""])
    def test_missing_name_is_untitled(self, name):
        assert sanitize_name(name) == "untitled"

    def test_safe_characters_preserved(self):
        assert sanitize_name("Release-1.2_final") == "Release-1.2_final"

    def test_non_ascii_replaced_per_character(self):
        assert sanitize_name("Café/Notes") == "Caf__Notes"

    @pytest.mark.parametrize("name, expected", [
        (".", "_"),
        ("..", "__"),
        ("...", "___"),
    ])
    def test_dot_only_names_never_name_a_parent(self, name, expected):
        assert sanitize_name(name) == expected

    def test_dots_inside_a_name_are_kept(self):
        assert sanitize_name("..notes") == "..notes"

    def test_output_only_contains_safe_characters(self):
        result = sanitize_name("a<b>c|d*e?f\"g\\h")
        assert all(c.isalnum() or c in "._-" for c in result)
        assert len(result) == len("a<b>c|d*e?f\"g\\h")


class TestSafeId:

    def test_strips_dashes(self):
        assert safe_id({"id": PAGE_ALPHA_ID}) == "0a1b2c3d000040008000000000000001"

    def test_missing_id_raises(self):
        with pytest.raises(KeyError):
            safe_id({})


class TestFirstPlainText:

    def test_first_fragment_only(self):
        fragments = rich_text("Hello") + rich_text(" world")
        assert first_plain_text(fragments) == "Hello"

    @pytest.mark.parametrize("value", [None, [], "text", [None], [{"type": "text"}]])
    def test_no_text(self, value):
        assert first_plain_text(value) is None


class TestResolveTitle:
    """Test cases for resolve_title function."""

    def test_page_title_from_properties(self):
        result = resolve_title(make_page(PAGE_ALPHA_ID, "Alpha"))
        assert result.title == "Alpha"
        assert result.source == TitleSource.PROPERTIES_TITLE

    def test_database_title_from_top_level(self):
        result = resolve_title(make_database(PAGE_ALPHA_ID, "Tasks"))
        assert result.title == "Tasks"
        assert result.source == TitleSource.TOP_LEVEL_TITLE

    def test_properties_title_wins_over_top_level(self):
        obj = make_page(PAGE_ALPHA_ID, "From properties")
        obj["title"] = rich_text("From top level")

        assert resolve_title(obj).title == "From properties"

    def test_title_property_found_under_any_name(self):
        obj = make_page(PAGE_ALPHA_ID, "Renamed", property_name="Task name")
        obj["properties"] = {"Status": {"type": "select", "select": {}}, **obj["properties"]}

        assert resolve_title(obj).title == "Renamed"

    def test_empty_properties_title_falls_back_to_top_level(self):
        obj = make_page(PAGE_ALPHA_ID, None)
        obj["title"] = rich_text("Top")

        assert resolve_title(obj).title == "Top"

    def test_fallback_embeds_id(self):
        result = resolve_title(make_page(PAGE_ALPHA_ID, None))
        assert result.title == "untitled-0a1b2c3d000040008000000000000001"
        assert result.source == TitleSource.FALLBACK

    def test_fallback_is_deterministic(self):
        obj = {"id": "abc-def"}
        assert resolve_title(obj) == resolve_title(obj)

    def test_empty_string_title_is_kept(self):
        """An empty plain_text is a title; sanitize_name maps it to untitled."""
        obj = make_page(PAGE_ALPHA_ID, "")
        obj["properties"]["Name"]["title"] = [{"plain_text": ""}]

        result = resolve_title(obj)

        assert result.title == ""
        assert sanitize_name(result.title) == "untitled"
