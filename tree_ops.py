"""Edit operations applied to a mind map tree between serializations."""

from typing import List, Literal, Optional

from node_models import MindmapNode


DEFAULT_NODE_TEXT = "New Topic"

DropPosition = Literal["before", "after", "child"]


def find_node(root: MindmapNode, node_id: str) -> Optional[MindmapNode]:
    if root.id == node_id:
        return root
    for child in root.children:
        found = find_node(child, node_id)
        if found is not None:
            return found
    return None


def find_parent(root: MindmapNode, node_id: str) -> Optional[MindmapNode]:
    for child in root.children:
        if child.id == node_id:
            return root
        parent = find_parent(child, node_id)
        if parent is not None:
            return parent
    return None


def count_nodes(node: MindmapNode) -> int:
    return 1 + sum(count_nodes(child) for child in node.children)


def is_descendant(root: MindmapNode, ancestor_id: str, node_id: str) -> bool:
    """True when ``node_id`` is ``ancestor_id`` itself or lies beneath it."""
    ancestor = find_node(root, ancestor_id)
    if ancestor is None:
        return False
    return find_node(ancestor, node_id) is not None


def _require_node(root: MindmapNode, node_id: str) -> MindmapNode:
    node = find_node(root, node_id)
    if node is None:
        raise ValueError(f"No node with id {node_id!r}")
    return node


def _require_parent(root: MindmapNode, node_id: str, action: str) -> MindmapNode:
    if root.id == node_id:
        raise ValueError(f"Cannot {action} the root node.")
    parent = find_parent(root, node_id)
    if parent is None:
        raise ValueError(f"No node with id {node_id!r}")
    return parent


def _index_of(children: List[MindmapNode], node_id: str) -> int:
    for index, child in enumerate(children):
        if child.id == node_id:
            return index
    raise ValueError(f"No child with id {node_id!r}")


def add_child(root: MindmapNode, parent_id: str, text: str = DEFAULT_NODE_TEXT) -> MindmapNode:
    parent = _require_node(root, parent_id)
    parent.collapsed = False
    node = MindmapNode(text=text)
    parent.children.append(node)
    return node


def add_sibling(root: MindmapNode, node_id: str, text: str = DEFAULT_NODE_TEXT) -> MindmapNode:
    parent = _require_parent(root, node_id, "add a sibling to")
    index = _index_of(parent.children, node_id)
    node = MindmapNode(text=text)
    parent.children.insert(index + 1, node)
    return node


def delete_node(root: MindmapNode, node_id: str) -> str:
    """Remove a node and its subtree; return the id that should be selected next."""
    parent = _require_parent(root, node_id, "delete")
    index = _index_of(parent.children, node_id)
    del parent.children[index]
    if parent.children:
        return parent.children[min(index, len(parent.children) - 1)].id
    return parent.id


def toggle_collapse(root: MindmapNode, node_id: str) -> bool:
    node = _require_node(root, node_id)
    if not node.children:
        return False
    node.collapsed = not node.collapsed
    return node.collapsed


MAX_HEADING_LEVEL = 4


def _demote_headings(node: MindmapNode) -> None:
    node.heading_level = 0
    for child in node.children:
        _demote_headings(child)


def _relevel_headings(node: MindmapNode, parent_level: int) -> None:
    """Give a heading subtree levels that follow on from ``parent_level``.

    Headings only nest under shallower headings and stop at ``####``; past
    that, or below a list item, the subtree becomes list items.
    """
    if not node.is_heading:
        return
    level = parent_level + 1
    if parent_level == 0 or level > MAX_HEADING_LEVEL:
        _demote_headings(node)
        return
    node.heading_level = level
    for child in node.children:
        _relevel_headings(child, level)


def move_node(
    root: MindmapNode,
    node_id: str,
    target_id: str,
    position: DropPosition = "child",
) -> MindmapNode:
    """Detach ``node_id`` and re-insert it relative to ``target_id``.

    ``"child"`` appends it to the target (expanding the target);
    ``"before"``/``"after"`` make it the target's previous/next sibling.
    Dropping next to the root is treated as ``"child"``. A moved heading is
    re-levelled under its new parent so the tree still serializes to the
    same shape.
    """
    if position not in ("before", "after", "child"):
        raise ValueError(f"Unknown drop position {position!r}")
    source_parent = _require_parent(root, node_id, "move")
    _require_node(root, target_id)
    if is_descendant(root, node_id, target_id):
        raise ValueError("Cannot move a node into its own subtree.")

    if target_id == root.id:
        position = "child"

    moved = source_parent.children.pop(_index_of(source_parent.children, node_id))

    if position == "child":
        destination = _require_node(root, target_id)
        destination.collapsed = False
        destination.children.append(moved)
    else:
        destination = _require_parent(root, target_id, "drop beside")
        index = _index_of(destination.children, target_id)
        destination.children.insert(index if position == "before" else index + 1, moved)

    _relevel_headings(moved, destination.heading_level)
    return moved


def previous_sibling_id(root: MindmapNode, node_id: str) -> Optional[str]:
    parent = find_parent(root, node_id)
    if parent is None:
        return None
    index = _index_of(parent.children, node_id)
    return parent.children[index - 1].id if index > 0 else None


def next_sibling_id(root: MindmapNode, node_id: str) -> Optional[str]:
    parent = find_parent(root, node_id)
    if parent is None:
        return None
    index = _index_of(parent.children, node_id)
    if index < len(parent.children) - 1:
        return parent.children[index + 1].id
    return None


def parent_id(root: MindmapNode, node_id: str) -> Optional[str]:
    parent = find_parent(root, node_id)
    return parent.id if parent is not None else None


def first_child_id(root: MindmapNode, node_id: str) -> Optional[str]:
    node = find_node(root, node_id)
    if node is None or node.collapsed or not node.children:
        return None
    return node.children[0].id
