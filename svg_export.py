import html
from typing import List

from layout import DEFAULT_CONFIG, LayoutConfig, flatten_layout, font_size, layout_bounds
from node_models import LayoutNode


BRANCH_COLORS = [
    "#4fc3f7",
    "#81c784",
    "#ffb74d",
    "#e57373",
    "#ba68c8",
    "#4dd0e1",
    "#aed581",
    "#ff8a65",
]
ROOT_TEXT_COLOR = "#1e1e1e"
TEXT_COLOR = "#cccccc"
BACKGROUND_COLOR = "#1e1e1e"


def branch_color(index: int) -> str:
    return BRANCH_COLORS[index % len(BRANCH_COLORS)]


def _rgba(hex_color: str, alpha: float) -> str:
    red = int(hex_color[1:3], 16)
    green = int(hex_color[3:5], 16)
    blue = int(hex_color[5:7], 16)
    return f"rgba({red},{green},{blue},{alpha})"


def _num(value: float) -> str:
    return f"{round(value, 2):g}"


def _escape(text: str) -> str:
    return html.escape(text, quote=True)


def _connection(parent: LayoutNode, child: LayoutNode) -> str:
    x1 = parent.x + parent.width
    y1 = parent.y + parent.height / 2
    x2 = child.x
    y2 = child.y + child.height / 2
    cx = (x1 + x2) / 2
    path = (
        f"M{_num(x1)},{_num(y1)} "
        f"C{_num(cx)},{_num(y1)} {_num(cx)},{_num(y2)} {_num(x2)},{_num(y2)}"
    )
    return (
        f'<path class="mm-connection" d="{path}" fill="none" '
        f'stroke="{branch_color(child.branch_index)}" stroke-width="2" />'
    )


def _node_group(node: LayoutNode, config: LayoutConfig) -> List[str]:
    color = branch_color(0 if node.depth == 0 else node.branch_index)
    opacity = max(0.4, 1 - node.depth * 0.15)
    size = font_size(node.depth, config)
    line_height = size * config.line_height_ratio
    fill = color if node.depth == 0 else _rgba(color, 0.2)
    text_fill = ROOT_TEXT_COLOR if node.depth == 0 else TEXT_COLOR

    parts = [
        f'<g class="mm-node depth-{min(node.depth, 2)}" data-id="{_escape(node.id)}" '
        f'transform="translate({_num(node.x)},{_num(node.y)})">',
        f'<rect width="{_num(node.width)}" height="{_num(node.height)}" rx="6" '
        f'fill="{fill}" stroke="{color}" opacity="{_num(opacity)}" />',
        f'<text text-anchor="middle" font-size="{size}" fill="{text_fill}">',
    ]
    for index, line in enumerate(node.text_lines):
        baseline = config.padding_y + line_height * index + line_height / 2
        parts.append(
            f'<tspan x="{_num(node.width / 2)}" y="{_num(baseline)}" '
            f'dominant-baseline="central">{_escape(line)}</tspan>'
        )
    parts.append("</text>")

    if node.image:
        image_width = node.image_width or config.image_thumbnail_width
        image_height = node.image_height or config.image_thumbnail_height
        text_block = len(node.text_lines) * line_height + config.padding_y * 2
        image_x = (node.width - image_width) / 2
        image_y = text_block + config.image_padding / 2
        parts.append(
            f'<image class="mm-node-image" href="{_escape(node.image)}" '
            f'x="{_num(image_x)}" y="{_num(image_y)}" '
            f'width="{_num(image_width)}" height="{_num(image_height)}" '
            'preserveAspectRatio="xMidYMid meet" />'
        )

    if node.has_children:
        marker = "+" if node.collapsed else "−"
        parts.extend(
            [
                f'<g class="mm-collapse-indicator" '
                f'transform="translate({_num(node.width - 2)},{_num(node.height / 2)})">',
                f'<circle r="8" fill="{BACKGROUND_COLOR}" stroke="{color}" stroke-width="1.5" />',
                f'<text text-anchor="middle" dominant-baseline="central" font-size="11" '
                f'fill="{color}">{marker}</text>',
                "</g>",
            ]
        )

    parts.append("</g>")
    return parts


def to_svg(layout_root: LayoutNode, config: LayoutConfig = DEFAULT_CONFIG, padding: float = 20) -> str:
    """Render a positioned layout tree as a standalone SVG document.

    Connectors are drawn first so node boxes sit on top of them.
    """
    bounds = layout_bounds(layout_root)
    width = bounds.width + padding * 2
    height = bounds.height + padding * 2
    view_box = " ".join(
        _num(value) for value in (bounds.min_x - padding, bounds.min_y - padding, width, height)
    )
    nodes = flatten_layout(layout_root)

    lines: List[str] = [
        f'<svg xmlns="http://www.w3.org/2000/svg" viewBox="{view_box}" '
        f'width="{_num(width)}" height="{_num(height)}" '
        'font-family="system-ui, -apple-system, \'Segoe UI\', sans-serif">',
        f'<rect class="mm-background" x="{_num(bounds.min_x - padding)}" '
        f'y="{_num(bounds.min_y - padding)}" width="{_num(width)}" height="{_num(height)}" '
        f'fill="{BACKGROUND_COLOR}" />',
    ]
    for node in nodes:
        for child in node.children:
            lines.append(_connection(node, child))
    for node in nodes:
        lines.extend(_node_group(node, config))
    lines.append("</svg>")
    return "\n".join(lines) + "\n"
