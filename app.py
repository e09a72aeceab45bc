from __future__ import annotations

from pathlib import Path
import sys
from typing import Callable, Optional

from textual import events
from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.screen import ModalScreen
from textual.widgets import Footer, Header, Input, Tree
from textual.widgets._tree import TextType, TreeNode
from rich.text import Text

import activity_log
from layout import arrange
from md_io import from_markdown, reconcile_attributes, to_markdown
from node_models import MindmapNode
from svg_export import to_svg
import tree_ops


def svg_path_for(markdown_path: Path) -> Path:
    name = markdown_path.name
    if name.endswith(".mindmap.md"):
        return markdown_path.with_name(name[: -len(".mindmap.md")] + ".svg")
    return markdown_path.with_suffix(".svg")


class MindmapTree(Tree[MindmapNode]):
    """Tree widget specialised for ``MindmapNode`` data."""

    def process_label(self, label: TextType) -> Text:
        if isinstance(label, str):
            return Text.from_markup(label, justify="left")
        return label


class EditTextScreen(ModalScreen[Optional[str]]):
    """Modal prompt for renaming a node."""

    DEFAULT_CSS = """
    EditTextScreen {
        align: center middle;
        background: transparent;
    }

    #edit-text-field {
        width: 60;
        border: round $secondary;
        background: $surface;
    }
    """

    def __init__(self, initial_text: str) -> None:
        super().__init__()
        self._initial_text = initial_text

    def compose(self) -> ComposeResult:
        yield Input(value=self._initial_text, placeholder="Node text", id="edit-text-field")

    def on_mount(self) -> None:
        self.query_one("#edit-text-field", Input).focus()

    def on_key(self, event: events.Key) -> None:
        field = self.query_one("#edit-text-field", Input)
        if event.key == "escape":
            event.stop()
            self.dismiss(None)
        elif event.key == "enter":
            event.stop()
            self.dismiss(field.value)


class MindmapApp(App[None]):
    """Textual editor for Markdown-backed mind maps."""

    TITLE = "mindmap"

    CSS = """
    #mindmap-tree {
        width: 1fr;
    }
    """

    BINDINGS = [
        Binding("q", "quit", "Quit"),
        Binding("s", "save", "Save"),
        Binding("r", "reload", "Reload"),
        Binding("tab", "add_child", "+ Child", priority=True),
        Binding("n", "add_sibling", "+ Sibling"),
        Binding("e", "edit_node", "Edit"),
        Binding("delete", "delete_node", "Delete"),
        Binding("ctrl+up", "move_up", "Move up", show=False),
        Binding("ctrl+down", "move_down", "Move down", show=False),
        Binding("ctrl+left", "select_parent", "Parent", show=False),
        Binding("ctrl+right", "select_first_child", "First child", show=False),
        Binding("x", "export_svg", "SVG"),
    ]

    def __init__(self, initial_markdown_path: str | Path | None = None) -> None:
        super().__init__()
        self._tree_widget: Optional[MindmapTree] = None
        self.mindmap_root = from_markdown("")
        self._active_path = Path(initial_markdown_path or "mindmap.md").expanduser()
        activity_log.reset_activity_log()

    def compose(self) -> ComposeResult:
        yield Header()
        tree = MindmapTree("Mind Map", id="mindmap-tree")
        tree.show_root = True
        self._tree_widget = tree
        yield tree
        yield Footer()

    def on_mount(self) -> None:
        self.rebuild_tree()
        self._load_mindmap(self._active_path)

    def require_tree(self) -> MindmapTree:
        if self._tree_widget is None:
            raise RuntimeError("Tree widget not initialised")
        return self._tree_widget

    def rebuild_tree(self, select_id: Optional[str] = None) -> None:
        tree = self.require_tree()
        tree.clear()
        root_node = tree.root
        self.populate_tree(root_node, self.mindmap_root)
        target = self._find_tree_node(select_id) if select_id else None
        tree.select_node(target or root_node)
        tree.focus()
        tree.refresh(layout=True)
        self.show_status()

    def populate_tree(self, tree_node: TreeNode[MindmapNode], mindmap_node: MindmapNode) -> None:
        tree_node.set_label(self._format_node_label(mindmap_node))
        tree_node.data = mindmap_node
        tree_node.allow_expand = bool(mindmap_node.children)
        for child in mindmap_node.children:
            if child.children:
                child_tree_node = tree_node.add(self._format_node_label(child), data=child)
                self.populate_tree(child_tree_node, child)
            else:
                tree_node.add_leaf(self._format_node_label(child), data=child)
        if mindmap_node.children and not mindmap_node.collapsed:
            tree_node.expand()
        else:
            tree_node.collapse()

    @staticmethod
    def _format_node_label(node: MindmapNode) -> Text:
        label = Text()
        if node.heading_level >= 1:
            label.append("#" * node.heading_level + " ", style="dim")
            label.append(node.text, style="bold")
        else:
            label.append(node.text)
        if node.image:
            label.append(f"  [{node.image}]", style="dim italic")
        if node.collapsed and node.children:
            hidden = tree_ops.count_nodes(node) - 1
            label.append(f"  (+{hidden})", style="dim")
        return label

    def _find_tree_node(self, node_id: str) -> Optional[TreeNode[MindmapNode]]:
        stack = [self.require_tree().root]
        while stack:
            tree_node = stack.pop()
            if tree_node.data is not None and tree_node.data.id == node_id:
                return tree_node
            stack.extend(tree_node.children)
        return None

    def get_selected_model_node(self) -> Optional[MindmapNode]:
        selected = self.require_tree().cursor_node
        return selected.data if selected else None

    def on_tree_node_expanded(self, event: Tree.NodeExpanded[MindmapNode]) -> None:
        if event.node.data is not None:
            event.node.data.collapsed = False
            event.node.set_label(self._format_node_label(event.node.data))

    def on_tree_node_collapsed(self, event: Tree.NodeCollapsed[MindmapNode]) -> None:
        data = event.node.data
        if data is not None and data.children:
            data.collapsed = True
            event.node.set_label(self._format_node_label(data))

    def show_status(self, message: str | None = None) -> None:
        count = tree_ops.count_nodes(self.mindmap_root)
        summary = f"{self._active_path.name} · {count} nodes"
        self.sub_title = f"{summary} · {message}" if message else summary

    def _report_error(self, message: str) -> None:
        self.bell()
        self.show_status(message)
        activity_log.log_event("error", str(self._active_path), message)

    def _apply_edit(self, action: Callable[..., object], *args: object) -> Optional[object]:
        selected = self.get_selected_model_node()
        if selected is None:
            self._report_error("No node selected.")
            return None
        try:
            return action(self.mindmap_root, selected.id, *args)
        except ValueError as exc:
            self._report_error(str(exc))
            return None

    def _load_mindmap(self, path: Path) -> bool:
        target = path.expanduser()
        if not target.exists():
            self.show_status(f"{target} not found; starting a new map.")
            return False
        try:
            markdown = target.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            self._report_error(f"Failed to load {target}: {exc}")
            return False
        self.mindmap_root = from_markdown(markdown)
        self._active_path = target
        self.rebuild_tree()
        self.show_status(f"Loaded {target}")
        activity_log.log_event("load", str(target))
        return True

    def action_reload(self) -> None:
        target = self._active_path
        try:
            markdown = target.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            self._report_error(f"Failed to reload {target}: {exc}")
            return
        new_root = from_markdown(markdown)
        # Fresh ids: carry collapse and image state over by position.
        reconcile_attributes(self.mindmap_root, new_root)
        self.mindmap_root = new_root
        self.rebuild_tree()
        self.show_status(f"Reloaded {target}")
        activity_log.log_event("reload", str(target))

    def action_save(self) -> None:
        path = self._active_path
        markdown = to_markdown(self.mindmap_root)
        try:
            path.write_text(markdown, encoding="utf-8")
        except OSError as exc:
            self._report_error(f"Failed to save {path}: {exc}")
            return
        self.show_status(f"Saved to {path}")
        activity_log.log_event("save", str(path))

    def action_export_svg(self) -> None:
        path = svg_path_for(self._active_path)
        svg = to_svg(arrange(self.mindmap_root))
        try:
            path.write_text(svg, encoding="utf-8")
        except OSError as exc:
            self._report_error(f"Failed to export {path}: {exc}")
            return
        self.show_status(f"SVG exported to {path}")
        activity_log.log_event("export", str(path))

    def action_add_child(self) -> None:
        new_node = self._apply_edit(tree_ops.add_child)
        if isinstance(new_node, MindmapNode):
            self.rebuild_tree(select_id=new_node.id)
            self.action_edit_node()

    def action_add_sibling(self) -> None:
        new_node = self._apply_edit(tree_ops.add_sibling)
        if isinstance(new_node, MindmapNode):
            self.rebuild_tree(select_id=new_node.id)
            self.action_edit_node()

    def action_delete_node(self) -> None:
        next_id = self._apply_edit(tree_ops.delete_node)
        if isinstance(next_id, str):
            self.rebuild_tree(select_id=next_id)
            self.show_status("Node deleted.")

    def _move_beside(self, neighbour_id: Optional[str], position: tree_ops.DropPosition) -> None:
        selected = self.get_selected_model_node()
        if selected is None or neighbour_id is None:
            self.bell()
            return
        try:
            tree_ops.move_node(self.mindmap_root, selected.id, neighbour_id, position)
        except ValueError as exc:
            self._report_error(str(exc))
            return
        self.rebuild_tree(select_id=selected.id)

    def action_move_up(self) -> None:
        selected = self.get_selected_model_node()
        if selected is None:
            self.bell()
            return
        self._move_beside(tree_ops.previous_sibling_id(self.mindmap_root, selected.id), "before")

    def action_move_down(self) -> None:
        selected = self.get_selected_model_node()
        if selected is None:
            self.bell()
            return
        self._move_beside(tree_ops.next_sibling_id(self.mindmap_root, selected.id), "after")

    def _select_model_node(self, node_id: Optional[str]) -> None:
        target = self._find_tree_node(node_id) if node_id else None
        if target is None:
            self.bell()
            return
        self.require_tree().cursor_line = target.line

    def action_select_parent(self) -> None:
        selected = self.get_selected_model_node()
        if selected is None:
            self.bell()
            return
        self._select_model_node(tree_ops.parent_id(self.mindmap_root, selected.id))

    def action_select_first_child(self) -> None:
        selected = self.get_selected_model_node()
        if selected is None:
            self.bell()
            return
        self._select_model_node(tree_ops.first_child_id(self.mindmap_root, selected.id))

    def action_edit_node(self) -> None:
        selected = self.get_selected_model_node()
        if selected is None:
            self.bell()
            return

        def apply(result: Optional[str]) -> None:
            if result is None:
                return
            text = result.strip()
            if not text:
                self._report_error("Node text cannot be empty.")
                return
            selected.text = text
            self.rebuild_tree(select_id=selected.id)

        self.push_screen(EditTextScreen(selected.text), apply)


def main() -> None:
    initial_path = sys.argv[1] if len(sys.argv) > 1 else None
    MindmapApp(initial_path).run()


if __name__ == "__main__":
    main()
