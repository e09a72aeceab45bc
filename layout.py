"""Deterministic left-to-right tree layout for mind map rendering.

Text is measured with a fixed per-character width instead of real font
metrics, so the same tree always yields the same geometry.
"""

import math
from dataclasses import dataclass, replace
from typing import List, NamedTuple, Optional, Tuple

from node_models import LayoutNode, MindmapNode


@dataclass(frozen=True)
class LayoutConfig:
    gap_x: float = 60
    gap_y: float = 16
    padding_x: float = 16
    padding_y: float = 8
    image_thumbnail_width: float = 120
    image_thumbnail_height: float = 80
    image_padding: float = 4
    max_node_width: float = 300
    min_node_width: float = 60
    line_height_ratio: float = 1.4
    char_width_ratio: float = 0.6
    # Font size by depth; the last entry applies to every deeper level.
    font_sizes: Tuple[int, ...] = (16, 14, 13)

    def with_overrides(self, **changes) -> "LayoutConfig":
        return replace(self, **changes)


DEFAULT_CONFIG = LayoutConfig()


class NodeMetrics(NamedTuple):
    width: float
    text_lines: List[str]
    height: float


class Bounds(NamedTuple):
    min_x: float
    min_y: float
    max_x: float
    max_y: float

    @property
    def width(self) -> float:
        return self.max_x - self.min_x

    @property
    def height(self) -> float:
        return self.max_y - self.min_y


def font_size(depth: int, config: LayoutConfig = DEFAULT_CONFIG) -> int:
    sizes = config.font_sizes
    return sizes[min(depth, len(sizes) - 1)]


def measure_text_width(text: str, size: float, config: LayoutConfig = DEFAULT_CONFIG) -> float:
    return len(text) * size * config.char_width_ratio + config.padding_x * 2


def wrap_text(
    text: str, size: float, max_width: float, config: LayoutConfig = DEFAULT_CONFIG
) -> List[str]:
    """Split ``text`` into fixed-length chunks that fit ``max_width``.

    Breaks may fall mid-word; joining the result gives back ``text``.
    """
    char_width = size * config.char_width_ratio
    available_width = max_width - config.padding_x * 2
    chars_per_line = max(1, math.floor(available_width / char_width))
    return [text[start : start + chars_per_line] for start in range(0, len(text), chars_per_line)]


def node_height(
    depth: int, image_height: float = 0, config: LayoutConfig = DEFAULT_CONFIG
) -> float:
    """Height of a single-line box, plus the image band when one is shown."""
    text_height = font_size(depth, config) + config.padding_y * 2
    if image_height > 0:
        return text_height + image_height + config.image_padding
    return text_height


def _image_size(node: MindmapNode, config: LayoutConfig) -> Tuple[float, float]:
    width = node.image_width or config.image_thumbnail_width
    height = node.image_height or config.image_thumbnail_height
    return width, height


def measure(node: MindmapNode, depth: int = 0, config: LayoutConfig = DEFAULT_CONFIG) -> NodeMetrics:
    size = font_size(depth, config)
    line_height = size * config.line_height_ratio
    has_image = bool(node.image)
    image_width, image_height = _image_size(node, config)

    raw_width = max(measure_text_width(node.text, size, config), config.min_node_width)
    width = min(raw_width, config.max_node_width)
    if has_image:
        width = max(width, image_width + config.padding_x * 2)

    if raw_width > config.max_node_width:
        text_lines = wrap_text(node.text, size, config.max_node_width, config)
    else:
        text_lines = [node.text]

    height = len(text_lines) * line_height + config.padding_y * 2
    if has_image:
        height += image_height + config.image_padding

    return NodeMetrics(width=width, text_lines=text_lines, height=height)


def layout_tree(
    node: MindmapNode,
    depth: int = 0,
    branch_index: int = 0,
    config: LayoutConfig = DEFAULT_CONFIG,
) -> LayoutNode:
    """Build the layout view of ``node`` and its visible descendants.

    Direct children of the root take their own index as ``branch_index``;
    everything below them inherits it.
    """
    metrics = measure(node, depth, config)
    layout_node = LayoutNode(
        id=node.id,
        text=node.text,
        text_lines=metrics.text_lines,
        width=metrics.width,
        height=metrics.height,
        depth=depth,
        branch_index=branch_index,
        heading_level=node.heading_level,
        collapsed=node.collapsed,
        has_children=bool(node.children),
        image=node.image,
        image_width=node.image_width,
        image_height=node.image_height,
    )

    if not node.collapsed:
        for index, child in enumerate(node.children):
            child_branch = index if depth == 0 else branch_index
            layout_node.children.append(layout_tree(child, depth + 1, child_branch, config))

    return layout_node


def subtree_height(layout_node: LayoutNode, config: LayoutConfig = DEFAULT_CONFIG) -> float:
    if not layout_node.children:
        return layout_node.height
    total = sum(subtree_height(child, config) for child in layout_node.children)
    total += (len(layout_node.children) - 1) * config.gap_y
    return max(layout_node.height, total)


def position_nodes(
    layout_node: LayoutNode,
    x: float = 0,
    y: float = 0,
    config: LayoutConfig = DEFAULT_CONFIG,
) -> None:
    """Assign top-left coordinates in place.

    Each node is centred vertically in the band its whole subtree occupies;
    children start one column to the right and are stacked from the top of
    that band with ``gap_y`` between sibling subtrees.
    """
    band = subtree_height(layout_node, config)
    layout_node.x = x
    layout_node.y = y + band / 2 - layout_node.height / 2

    child_x = x + layout_node.width + config.gap_x
    child_y = y
    for child in layout_node.children:
        child_band = subtree_height(child, config)
        position_nodes(child, child_x, child_y, config)
        child_y += child_band + config.gap_y


def arrange(
    node: MindmapNode,
    x: float = 0,
    y: float = 0,
    config: LayoutConfig = DEFAULT_CONFIG,
) -> LayoutNode:
    layout_root = layout_tree(node, 0, 0, config)
    position_nodes(layout_root, x, y, config)
    return layout_root


def flatten_layout(layout_node: LayoutNode, out: Optional[List[LayoutNode]] = None) -> List[LayoutNode]:
    if out is None:
        out = []
    out.append(layout_node)
    for child in layout_node.children:
        flatten_layout(child, out)
    return out


def layout_bounds(layout_node: LayoutNode) -> Bounds:
    nodes = flatten_layout(layout_node)
    return Bounds(
        min_x=min(n.x for n in nodes),
        min_y=min(n.y for n in nodes),
        max_x=max(n.x + n.width for n in nodes),
        max_y=max(n.y + n.height for n in nodes),
    )
