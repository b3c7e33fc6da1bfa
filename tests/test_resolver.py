import datetime as dt
import logging

import pytest

from enlist.resolver import (
    DISPLAY_RESOLVER,
    GROUP_RESOLVER,
    PropertyResolver,
    Resolved,
    display_text,
    group_key,
    raw_text,
    subtitle_text,
    value_to_group_string,
)


class Stringly:
    def __init__(self, text: str):
        self.text = text

    def __str__(self) -> str:
        return self.text


@pytest.mark.parametrize(
    "value,expected",
    [
        (None, "None"),
        ("", "None"),
        ("plain", "plain"),
        ("[[Alice|Al]]", "Al"),
        (True, "True"),
        (False, "False"),
        (3, "3"),
        (2.5, "2.5"),
        ([], "None"),
        (["a", 1, True], "a, 1, True"),
        (["[[x]]", ["y", None]], "x, y, None"),
        (dt.date(2024, 1, 2), "2024-01-02"),
        (Stringly("null"), "None"),
        (Stringly("[[Page]]"), "Page"),
    ],
)
def test_value_to_group_string(value, expected) -> None:
    assert value_to_group_string(value) == expected


def test_accessor_value_wins(make_entry) -> None:
    entry = make_entry("a", frontmatter={"status": "raw"}, values={"note.status": "from-accessor"})
    assert group_key(entry, "note.status") == "from-accessor"


def test_failing_accessor_falls_back_to_frontmatter(make_entry, caplog) -> None:
    caplog.set_level(logging.DEBUG, logger="enlist.resolver")
    entry = make_entry("a", frontmatter={"status": "done"}, failing={"note.status"})

    assert group_key(entry, "note.status") == "done"
    assert "Accessor failed for note.status" in caplog.text


@pytest.mark.parametrize("empty", ["", "null", "undefined"])
def test_empty_accessor_strings_fall_back(make_entry, empty: str) -> None:
    entry = make_entry("a", frontmatter={"status": "done"}, values={"note.status": empty})
    assert group_key(entry, "note.status") == "done"


def test_folder_fallbacks(make_entry) -> None:
    nested = make_entry("a", folder="projects")
    root = make_entry("b")

    assert group_key(nested, "file.folder") == "projects"
    assert group_key(root, "file.folder") == "Root"
    assert subtitle_text(nested, "file.folder") == "projects"
    assert subtitle_text(root, "file.folder") is None


def test_unresolvable_property(make_entry) -> None:
    entry = make_entry("a", failing={"formula.score"})

    assert group_key(entry, "formula.score") == "None"
    assert display_text(entry, "formula.score") is None
    assert subtitle_text(entry, "note.missing") is None


def test_group_keys_ignore_alias_differences(make_entry) -> None:
    plain = make_entry("a", frontmatter={"owner": "[[Alice]]"})
    aliased = make_entry("b", frontmatter={"owner": "[[Bob|Alice]]"})
    assert group_key(plain, "note.owner") == group_key(aliased, "note.owner") == "Alice"


def test_display_text_strips_references(make_entry) -> None:
    entry = make_entry("a", frontmatter={"owner": "by [[Alice|Al]]", "tags": ["x", "y"]})

    assert display_text(entry, "note.owner") == "by Al"
    assert raw_text(entry, "note.owner") == "by [[Alice|Al]]"
    assert display_text(entry, "note.tags") == "x, y"


def test_subtitle_prefers_folder_over_accessor(make_entry) -> None:
    entry = make_entry("a", folder="inbox", values={"file.folder": "deep/inbox"})
    assert subtitle_text(entry, "file.folder") == "inbox"
    assert group_key(entry, "file.folder") == "deep/inbox"


def test_frontmatter_fallback_only_for_note_properties(make_entry) -> None:
    entry = make_entry("a", frontmatter={"size": 10})
    assert DISPLAY_RESOLVER.resolve(entry, "file.size") is None
    assert DISPLAY_RESOLVER.resolve(entry, "note.size") == Resolved(10, "accessor")


def test_resolver_reports_source(make_entry) -> None:
    entry = make_entry("a", folder="x", failing={"file.folder"})
    assert GROUP_RESOLVER.resolve(entry, "file.folder") == Resolved("x", "folder")


def test_custom_strategy_order(make_entry) -> None:
    calls = []

    def first(entry, property_id):
        calls.append("first")
        return None

    def second(entry, property_id):
        calls.append("second")
        return Resolved("hit", "test")

    def third(entry, property_id):
        calls.append("third")
        return Resolved("late", "test")

    resolver = PropertyResolver([first, second, third])
    assert resolver.resolve(make_entry("a"), "note.x") == Resolved("hit", "test")
    assert calls == ["first", "second"]
