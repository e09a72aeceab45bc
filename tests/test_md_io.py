"""
Unit tests for the Markdown transcoder.

Tests cover:
- Heading / list / image parsing
- Serialization format
- Round trips
- Attribute reconciliation across reparses
"""

import pytest

from conftest import structure
from md_io import DEFAULT_ROOT_TEXT, from_markdown, reconcile_attributes, to_markdown
from node_models import MindmapNode


def _walk(node):
    yield node
    for child in node.children:
        yield from _walk(child)


class TestFromMarkdown:
    """Test parsing Markdown into a tree."""

    def test_h1_is_root(self):
        tree = from_markdown("# My Root")
        assert tree.text == "My Root"
        assert tree.heading_level == 1
        assert tree.children == []

    def test_empty_text_returns_default_root(self):
        tree = from_markdown("")
        assert tree.text == DEFAULT_ROOT_TEXT
        assert tree.heading_level == 1
        assert tree.children == []

    def test_text_without_h1_returns_default_root(self):
        tree = from_markdown("- orphan\n## Section\nplain text")
        assert tree.text == "Central Topic"
        assert tree.children == []

    def test_list_items_are_children_of_root(self):
        tree = from_markdown("# Root\n- Child 1\n- Child 2")
        assert [child.text for child in tree.children] == ["Child 1", "Child 2"]
        assert all(child.heading_level == 0 for child in tree.children)

    def test_nested_list_items(self):
        tree = from_markdown("# Root\n- Parent\n  - Child\n    - Grandchild")
        parent = tree.children[0]
        assert parent.text == "Parent"
        assert parent.children[0].text == "Child"
        assert parent.children[0].children[0].text == "Grandchild"

    def test_dedent_returns_to_matching_level(self):
        tree = from_markdown("# Root\n- A\n  - A1\n    - A1a\n  - A2\n- B")
        a, b = tree.children
        assert [child.text for child in a.children] == ["A1", "A2"]
        assert a.children[0].children[0].text == "A1a"
        assert b.text == "B"

    def test_text_is_trimmed(self):
        tree = from_markdown("#   Root   \n-   padded  ")
        assert tree.text == "Root"
        assert tree.children[0].text == "padded"

    def test_heading_levels_nest(self):
        tree = from_markdown("# Root\n## S\n### SS\n#### SSS")
        h2 = tree.children[0]
        h3 = h2.children[0]
        h4 = h3.children[0]
        assert (h2.heading_level, h3.heading_level, h4.heading_level) == (2, 3, 4)
        assert h4.text == "SSS"

    def test_sibling_headings(self):
        tree = from_markdown("# Root\n## A\n## B\n## C")
        assert [child.text for child in tree.children] == ["A", "B", "C"]

    def test_h3_attaches_directly_under_h1(self):
        tree = from_markdown("# Root\n### Direct H3")
        assert len(tree.children) == 1
        assert tree.children[0].text == "Direct H3"
        assert tree.children[0].heading_level == 3

    def test_h5_is_not_a_heading(self):
        tree = from_markdown("# Root\n##### H5")
        assert tree.children == []

    def test_concrete_heading_and_list_scenario(self):
        tree = from_markdown("# Root\n## A\n- item1\n- item2\n## B\n- item3")
        a, b = tree.children
        assert (a.text, a.heading_level) == ("A", 2)
        assert [child.text for child in a.children] == ["item1", "item2"]
        assert (b.text, b.heading_level) == ("B", 2)
        assert [child.text for child in b.children] == ["item3"]

    def test_heading_never_nests_under_list_item(self):
        tree = from_markdown("# Root\n## A\n- item\n  - sub\n### A.1\n## B")
        a, b = tree.children
        assert [child.text for child in a.children] == ["item", "A.1"]
        assert a.children[1].heading_level == 3
        assert b.text == "B"
        for node in _walk(tree):
            if node.heading_level == 0:
                assert all(child.heading_level == 0 for child in node.children)

    def test_complex_hierarchy(self, sample_tree):
        frontend, backend = sample_tree.children
        assert [child.text for child in frontend.children] == ["React components", "Styling"]
        assert [c.text for c in frontend.children[0].children] == ["Header", "Sidebar"]
        assert frontend.children[1].children[0].text == "CSS modules"
        assert [child.text for child in backend.children] == ["Express server", "Database layer"]
        assert backend.children[1].heading_level == 4
        assert backend.children[1].children[0].text == "PostgreSQL"

    def test_later_h1_starts_a_new_tree(self):
        tree = from_markdown("# First\n- a\n# Second\n- b")
        assert tree.text == "Second"
        assert [child.text for child in tree.children] == ["b"]

    def test_list_before_root_is_dropped(self):
        tree = from_markdown("- early\n# Root\n- late")
        assert [child.text for child in tree.children] == ["late"]

    def test_crlf_line_endings(self):
        tree = from_markdown("# Root\r\n## A\r\n- item\r\n")
        assert tree.children[0].text == "A"
        assert tree.children[0].children[0].text == "item"

    def test_blank_list_item_is_dropped(self):
        tree = from_markdown("# Root\n-    \n- real")
        assert [child.text for child in tree.children] == ["real"]

    def test_exactly_one_root_level_node(self, sample_tree):
        levels = [node.heading_level for node in _walk(sample_tree)]
        assert sample_tree.heading_level == 1
        assert levels.count(1) == 1

    def test_ids_are_unique(self):
        tree = from_markdown("# Root\n## A\n- item\n## B")
        ids = {node.id for node in _walk(tree)}
        assert len(ids) == 4

    def test_reparse_mints_new_ids(self):
        first = from_markdown("# Root\n- a")
        second = from_markdown("# Root\n- a")
        assert first.id != second.id
        assert first.children[0].id != second.children[0].id


class TestImageLines:
    """Test image attachment."""

    def test_image_attached_to_list_item(self):
        tree = from_markdown("# Root\n- item\n  ![alt](image.png)")
        assert tree.children[0].image == "image.png"
        assert tree.children[0].image_width is None

    def test_image_with_size(self):
        tree = from_markdown("# Root\n- item\n  ![](pic.jpg =200x150)")
        item = tree.children[0]
        assert item.image == "pic.jpg"
        assert item.image_width == 200
        assert item.image_height == 150

    def test_image_attached_to_heading(self):
        tree = from_markdown("# Root\n## Sec\n![](h.png)")
        assert tree.children[0].image == "h.png"

    def test_image_without_preceding_node_is_ignored(self):
        tree = from_markdown("# Root\n![](orphan.png)\n- item")
        assert tree.image is None
        assert len(tree.children) == 1
        assert tree.children[0].text == "item"
        assert tree.children[0].image is None

    def test_blank_line_breaks_image_attachment(self):
        tree = from_markdown("# Root\n- item\n\n![](late.png)")
        assert tree.children[0].image is None

    def test_image_line_is_not_a_child(self):
        tree = from_markdown("# Root\n- item\n  ![](a.png)\n- next")
        assert [child.text for child in tree.children] == ["item", "next"]


class TestToMarkdown:
    """Test serializing a tree."""

    def test_root_only(self):
        assert to_markdown(MindmapNode("Root", heading_level=1)) == "# Root\n"

    def test_list_items_with_indent(self):
        root = MindmapNode(
            "Root",
            heading_level=1,
            children=[MindmapNode("A", children=[MindmapNode("A1")]), MindmapNode("B")],
        )
        assert to_markdown(root) == "# Root\n- A\n  - A1\n- B\n"

    def test_headings(self):
        root = MindmapNode(
            "Root",
            heading_level=1,
            children=[
                MindmapNode("Section", heading_level=2, children=[MindmapNode("Sub", heading_level=3)])
            ],
        )
        assert to_markdown(root) == "# Root\n## Section\n### Sub\n"

    def test_list_depth_restarts_under_heading(self):
        root = MindmapNode(
            "Root",
            heading_level=1,
            children=[
                MindmapNode("Section", heading_level=2, children=[MindmapNode("item under heading")])
            ],
        )
        assert to_markdown(root) == "# Root\n## Section\n- item under heading\n"

    def test_list_image(self):
        root = MindmapNode("Root", heading_level=1, children=[MindmapNode("pic", image="a.png")])
        assert to_markdown(root) == "# Root\n- pic\n  ![](a.png)\n"

    def test_nested_list_image_is_indented(self):
        root = MindmapNode(
            "Root",
            heading_level=1,
            children=[MindmapNode("A", children=[MindmapNode("pic", image="a.png")])],
        )
        assert to_markdown(root) == "# Root\n- A\n  - pic\n    ![](a.png)\n"

    def test_image_size_suffix(self):
        root = MindmapNode(
            "Root",
            heading_level=1,
            children=[MindmapNode("pic", image="b.jpg", image_width=300, image_height=200)],
        )
        assert "![](b.jpg =300x200)" in to_markdown(root)

    def test_image_size_needs_both_dimensions(self):
        root = MindmapNode(
            "Root", heading_level=1, children=[MindmapNode("pic", image="b.jpg", image_width=300)]
        )
        assert to_markdown(root) == "# Root\n- pic\n  ![](b.jpg)\n"

    def test_heading_image_at_column_zero(self):
        root = MindmapNode(
            "Root", heading_level=1, children=[MindmapNode("Sec", heading_level=2, image="h.png")]
        )
        assert to_markdown(root) == "# Root\n## Sec\n![](h.png)\n"

    def test_none_root_raises(self):
        with pytest.raises(ValueError, match="root"):
            to_markdown(None)


class TestRoundTrip:
    """Test parse -> serialize -> parse."""

    def test_structure_survives(self, sample_tree):
        again = from_markdown(to_markdown(sample_tree))
        assert structure(again) == structure(sample_tree)

    def test_images_survive(self, sample_tree):
        again = from_markdown(to_markdown(sample_tree))
        server = again.children[1].children[0]
        assert (server.image, server.image_width, server.image_height) == (
            "assets/server.png",
            200,
            100,
        )

    def test_concrete_scenario(self):
        tree = from_markdown("# Root\n## A\n- item1\n- item2\n## B\n- item3")
        assert structure(from_markdown(to_markdown(tree))) == structure(tree)

    def test_irregular_indentation_normalizes(self):
        tree = from_markdown("# Root\n- a\n     - b\n - c")
        text = to_markdown(tree)
        assert text == "# Root\n- a\n  - b\n  - c\n"
        assert structure(from_markdown(text)) == structure(tree)

    def test_serialization_is_stable(self, sample_tree):
        once = to_markdown(sample_tree)
        assert to_markdown(from_markdown(once)) == once


class TestReconcileAttributes:
    """Test carrying state from a previous parse."""

    def test_copies_collapsed(self):
        old = from_markdown("# Root\n- a\n  - a1")
        old.children[0].collapsed = True
        new = from_markdown("# Root\n- a\n  - a1")
        reconcile_attributes(old, new)
        assert new.children[0].collapsed is True
        assert new.collapsed is False

    def test_copies_image_when_new_has_none(self):
        old = MindmapNode("Root", heading_level=1, children=[
            MindmapNode("pic", image="pic.png", image_width=100, image_height=50)
        ])
        new = from_markdown("# Root\n- pic")
        reconcile_attributes(old, new)
        pic = new.children[0]
        assert (pic.image, pic.image_width, pic.image_height) == ("pic.png", 100, 50)

    def test_previous_image_replaces_parsed_one(self):
        old = from_markdown("# Root\n- pic\n  ![](old.png =10x10)")
        new = from_markdown("# Root\n- pic\n  ![](new.png =30x20)")
        reconcile_attributes(old, new)
        pic = new.children[0]
        assert (pic.image, pic.image_width, pic.image_height) == ("old.png", 10, 10)

    def test_path_and_size_stay_together(self):
        old = from_markdown("# Root\n- pic\n  ![](old.png =10x10)")
        new = from_markdown("# Root\n- pic\n  ![](new.png)")
        reconcile_attributes(old, new)
        pic = new.children[0]
        assert (pic.image, pic.image_width, pic.image_height) == ("old.png", 10, 10)

    def test_parsed_size_kept_when_previous_has_none(self):
        old = from_markdown("# Root\n- pic\n  ![](pic.png)")
        new = from_markdown("# Root\n- pic\n  ![](pic.png =40x30)")
        reconcile_attributes(old, new)
        pic = new.children[0]
        assert (pic.image, pic.image_width, pic.image_height) == ("pic.png", 40, 30)

    def test_heading_level_comes_from_text(self):
        old = from_markdown("# Root\n## A")
        new = from_markdown("# Root\n- A")
        reconcile_attributes(old, new)
        assert new.children[0].heading_level == 0

    def test_mismatched_child_counts(self):
        old = from_markdown("# Root\n- a\n  - x\n- b")
        for child in old.children:
            child.collapsed = True
        new = from_markdown("# Root\n- a\n  - x")
        reconcile_attributes(old, new)
        assert new.children[0].collapsed is True

        fresh = from_markdown("# Root\n- a\n  - x\n- b\n  - y\n- c\n  - z")
        reconcile_attributes(new, fresh)
        assert [child.collapsed for child in fresh.children] == [True, False, False]

    def test_positional_matching_shifts_on_insert(self):
        old = from_markdown("# Root\n- a\n  - a1\n- b\n  - b1")
        old.children[0].collapsed = True
        new = from_markdown("# Root\n- new\n  - n1\n- a\n  - a1\n- b\n  - b1")
        reconcile_attributes(old, new)
        assert new.children[0].collapsed is True
        assert new.children[1].collapsed is False

    def test_recurses(self):
        old = from_markdown("# Root\n## A\n- x\n  - y")
        old.children[0].children[0].collapsed = True
        new = from_markdown("# Root\n## A\n- x\n  - y")
        reconcile_attributes(old, new)
        assert new.children[0].children[0].collapsed is True
