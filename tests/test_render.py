import pytest

from enlist.collapse import CollapseState, CollapseStateStore, CompositeKey
from enlist.config import RenderOptions
from enlist.models import NativeGroup
from enlist.render import (
    Footer,
    derive_entry,
    get_preview,
    get_tags,
    get_thumbnail,
    iter_render_nodes,
    render,
    toggle_and_render,
)
from enlist.text import RefSegment, TextSegment

NOW_MS = 1_700_000_000_000
DAY_MS = 24 * 60 * 60 * 1000


def _visible_entries(nodes) -> list[str]:
    result = []
    for node in nodes:
        result.extend(view.title for view in node.entries)
        result.extend(_visible_entries(node.children))
    return result


def _status_groups(make_entry) -> list[NativeGroup]:
    return [
        NativeGroup(
            entries=[
                make_entry("one", frontmatter={"status": "done"}),
                make_entry("two", frontmatter={"status": "done"}),
                make_entry("three", frontmatter={"status": "todo"}),
            ]
        )
    ]


def test_status_grouping_scenario(make_entry) -> None:
    groups = _status_groups(make_entry)
    options = RenderOptions(primary_group="note.status")

    tree = render(groups, options, now_ms=NOW_MS)
    top = tree.nodes[0].children

    assert [(n.title, n.count) for n in top] == [("done", 2), ("todo", 1)]
    assert _visible_entries(tree.nodes) == ["one", "two", "three"]

    state = CollapseState().toggle(CompositeKey(("done",), "primary"))
    collapsed = render(groups, options, state, now_ms=NOW_MS)
    done, todo = collapsed.nodes[0].children

    assert done.collapsed and done.entries == [] and done.count == 2
    assert not todo.collapsed
    assert _visible_entries(collapsed.nodes) == ["three"]


def test_render_is_deterministic(make_entry) -> None:
    groups = _status_groups(make_entry)
    options = RenderOptions(primary_group="note.status", sub_group="file.folder")
    state = CollapseState().toggle(CompositeKey(("todo",), "primary"))

    assert render(groups, options, state, now_ms=NOW_MS) == render(groups, options, state, now_ms=NOW_MS)


def test_collapsed_parent_keeps_nested_state(make_entry) -> None:
    groups = _status_groups(make_entry)
    options = RenderOptions(primary_group="note.status", sub_group="file.folder")
    store = CollapseStateStore()
    nested = CompositeKey(("done", "Root"), "secondary")
    parent = CompositeKey(("done",), "primary")

    store.toggle(nested)
    tree = toggle_and_render(store, parent, groups, options, now_ms=NOW_MS)
    assert tree.nodes[0].children[0].children == []

    tree = toggle_and_render(store, parent, groups, options, now_ms=NOW_MS)
    sub = tree.nodes[0].children[0].children[0]
    assert sub.key == nested
    assert sub.collapsed


def test_native_groups_collapse_from_top(make_entry) -> None:
    entries = [make_entry(n, frontmatter={"status": "done"}) for n in ("a", "b")]
    groups = [NativeGroup(key="[[Work]]", entries=entries[:1]), NativeGroup(key="Home", entries=entries[1:])]
    state = CollapseState().toggle(CompositeKey(("[[Work]]",), "primary", native=True))

    tree = render(groups, RenderOptions(primary_group="note.status"), state, now_ms=NOW_MS)
    work, home = tree.nodes

    assert work.title == "Work"
    assert work.collapsed and work.children == []
    assert home.children[0].role == "secondary"
    assert home.children[0].key.to_string() == "Home::done"
    assert _visible_entries(tree.nodes) == ["b"]


def test_tags_are_merged_without_duplicates(make_entry) -> None:
    entry = make_entry("a", frontmatter={"tags": ["a", "b"]}, tags=["#b"])
    assert get_tags(entry) == ["a", "b"]

    single = make_entry("b", frontmatter={"tags": "solo"}, tags=["#solo", "#other"])
    assert get_tags(single) == ["solo", "other"]


def test_preview_sources(make_entry) -> None:
    described = make_entry("a", frontmatter={"summary": "Short [[Page|page]] summary", "abstract": "ignored"})
    assert get_preview(described, 2) == "Short page summary"

    configured = make_entry("b", frontmatter={"blurb": "line one\nline two\nline three"})
    assert get_preview(configured, 2, "note.blurb") == "line one line two"
    assert get_preview(configured, 2, "note.missing") is None
    assert get_preview(make_entry("c"), 2) is None


def test_thumbnail_resolution(make_entry) -> None:
    resolved = {"cover.png": "/vault/cover.png", "pics/embedded.jpg": "/vault/pics/embedded.jpg"}

    def resolve_link(link: str, source: str) -> str | None:
        return resolved.get(link)

    url = make_entry("a", frontmatter={"image": "https://example.com/x.png"})
    linked = make_entry("b", frontmatter={"image": "missing.png", "cover": "[[cover.png]]"})
    embedded = make_entry("c", embeds=["notes.md", "pics/embedded.jpg"])
    bare = make_entry("d", embeds=["unresolved.png"])

    assert get_thumbnail(url, resolve_link) == "https://example.com/x.png"
    assert get_thumbnail(linked, resolve_link) == "/vault/cover.png"
    assert get_thumbnail(embedded, resolve_link) == "/vault/pics/embedded.jpg"
    assert get_thumbnail(bare, resolve_link) is None
    assert get_thumbnail(linked) is None


def test_derive_entry_fields(make_entry) -> None:
    entry = make_entry(
        "note",
        folder="projects",
        mtime=NOW_MS - 3 * DAY_MS,
        frontmatter={"description": "About it", "word_count": 1500, "owner": "[[Alice|Al]] and Bob"},
    )
    options = RenderOptions(
        show_subtitle=True,
        order=("file.name", "note.owner", "note.missing"),
    )

    view = derive_entry(entry, options, now_ms=NOW_MS)

    assert view.title == "note"
    assert view.subtitle == "projects"
    assert view.preview == "About it"
    assert view.footer == Footer(relative_date="3d ago", word_count=1500)
    assert [p.property_id for p in view.properties] == ["note.owner"]
    assert view.properties[0].text == "Al and Bob"
    assert view.properties[0].segments == (
        RefSegment(target="Alice", display="Al", source="[[Alice|Al]]"),
        TextSegment(" and Bob"),
    )


def test_options_hide_fields(make_entry) -> None:
    entry = make_entry("a", folder="x", frontmatter={"description": "d", "tags": ["t"], "image": "http://i"})
    options = RenderOptions(
        preview_lines=0, show_thumbnails=False, show_tags=False, show_subtitle=False, show_metadata=False
    )

    view = derive_entry(entry, options, now_ms=NOW_MS)

    assert view.preview is None
    assert view.thumbnail is None
    assert view.tags == ()
    assert view.subtitle is None
    assert view.footer is None


@pytest.mark.parametrize("word_count", ["lots", float("inf"), float("-inf"), float("nan")])
def test_unusable_word_count_is_omitted(make_entry, word_count) -> None:
    entry = make_entry("a", frontmatter={"word_count": word_count})
    view = derive_entry(entry, RenderOptions(), now_ms=NOW_MS)
    assert view.footer.word_count is None


def test_empty_tree() -> None:
    tree = render([NativeGroup()], RenderOptions(primary_group="note.status"), now_ms=NOW_MS)
    assert tree.is_empty
    assert tree.nodes[0].children == []


def test_iter_render_nodes_lists_keyed_nodes(make_entry) -> None:
    tree = render(_status_groups(make_entry), RenderOptions(primary_group="note.status"), now_ms=NOW_MS)

    assert [n.title for n in iter_render_nodes(tree.nodes)] == ["done", "todo"]
