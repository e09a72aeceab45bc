import re
from typing import List, NamedTuple, Optional

from node_models import MindmapNode


DEFAULT_ROOT_TEXT = "Central Topic"

_HEADING_PATTERN = re.compile(r"^(#{1,4})\s+(.+)")
_IMAGE_PATTERN = re.compile(r"^\s*!\[([^\]]*)\]\(([^)\s]+)(?:\s*=(\d+)x(\d+))?\)")
_BULLET_PATTERN = re.compile(r"^(\s*)- (.+)")


class _Frame(NamedTuple):
    node: MindmapNode
    indent: int
    heading_level: int


def _split_lines(text: str) -> List[str]:
    return text.replace("\r\n", "\n").replace("\r", "\n").split("\n")


def _image_line(node: MindmapNode) -> str:
    size = ""
    if node.image_width and node.image_height:
        size = f" ={node.image_width}x{node.image_height}"
    return f"![]({node.image}{size})"


def to_markdown(root: MindmapNode) -> str:
    """Serialize the mind map to Markdown.

    - The root is always written as ``# text``.
    - Heading children (level >= 2) become ``##``..``####`` lines with their
      image at column 0; list numbering restarts beneath them.
    - List children become ``- text`` indented by two spaces per list depth,
      with their image indented one step further.
    - ``=WxH`` is only written when both image dimensions are set.
    """
    if root is None:
        raise ValueError("root node must not be None")

    lines: List[str] = [f"# {root.text}"]

    def write_children(children: List[MindmapNode], depth: int) -> None:
        for child in children:
            if child.heading_level >= 2:
                lines.append(f"{'#' * child.heading_level} {child.text}")
                if child.image:
                    lines.append(_image_line(child))
                write_children(child.children, 0)
            else:
                indent = "  " * depth
                lines.append(f"{indent}- {child.text}")
                if child.image:
                    lines.append(f"{indent}  {_image_line(child)}")
                write_children(child.children, depth + 1)

    write_children(root.children, 0)
    return "\n".join(lines) + "\n"


def from_markdown(md: str) -> MindmapNode:
    """Parse headings, ``-`` bullets and image lines into a mind map tree.

    Never raises: unrecognized lines are dropped and a document without an
    H1 yields a lone ``Central Topic`` root.
    """
    root: Optional[MindmapNode] = None
    stack: List[_Frame] = []
    # Only the node emitted on the previous line may receive an image.
    last_node: Optional[MindmapNode] = None

    for line in _split_lines(md):
        heading_match = _HEADING_PATTERN.match(line)
        if heading_match and heading_match.group(2).strip():
            level = len(heading_match.group(1))
            text = heading_match.group(2).strip()

            if level == 1:
                root = MindmapNode(text=text, heading_level=1)
                stack = [_Frame(root, -1, 1)]
                last_node = None
            elif root is not None:
                node = MindmapNode(text=text, heading_level=level)
                # List frames are popped too: headings only nest under headings.
                while len(stack) > 1:
                    top = stack[-1]
                    if 0 < top.heading_level < level:
                        break
                    stack.pop()
                stack[-1].node.children.append(node)
                stack.append(_Frame(node, -1, level))
                last_node = node
            continue

        image_match = _IMAGE_PATTERN.match(line)
        if image_match and last_node is not None:
            last_node.image = image_match.group(2)
            if image_match.group(3):
                last_node.image_width = int(image_match.group(3))
            if image_match.group(4):
                last_node.image_height = int(image_match.group(4))
            continue

        bullet_match = _BULLET_PATTERN.match(line)
        if bullet_match and root is not None and bullet_match.group(2).strip():
            indent = len(bullet_match.group(1))
            node = MindmapNode(text=bullet_match.group(2).strip())

            while len(stack) > 1:
                top = stack[-1]
                if top.heading_level > 0 or top.indent < indent:
                    break
                stack.pop()

            stack[-1].node.children.append(node)
            stack.append(_Frame(node, indent, 0))
            last_node = node
        else:
            last_node = None

    if root is None:
        return MindmapNode(text=DEFAULT_ROOT_TEXT, heading_level=1)
    return root


def reconcile_attributes(old: MindmapNode, new: MindmapNode) -> None:
    """Carry collapse and image state from a previous parse into a fresh one.

    Ids are regenerated on every parse, so nodes are matched by position:
    the same child index at every depth. Children beyond the shorter of the
    two child lists keep their freshly parsed state. Image fields set on the
    old node replace the parsed ones.
    """
    new.collapsed = old.collapsed
    if old.image:
        new.image = old.image
    if old.image_width:
        new.image_width = old.image_width
    if old.image_height:
        new.image_height = old.image_height

    for old_child, new_child in zip(old.children, new.children):
        reconcile_attributes(old_child, new_child)
