import itertools
from dataclasses import dataclass, field
from typing import List, Optional


_id_counter = itertools.count(1)


def generate_id() -> str:
    # Unique for the life of the process; ids from two parses never collide.
    return f"n{next(_id_counter):x}"


@dataclass
class MindmapNode:
    text: str
    children: List["MindmapNode"] = field(default_factory=list)
    # 0 for list items, 1 for the root, 2-4 for nested section headings.
    heading_level: int = 0
    collapsed: bool = False
    image: Optional[str] = None
    image_width: Optional[int] = None
    image_height: Optional[int] = None
    id: str = field(default_factory=generate_id)

    @property
    def is_heading(self) -> bool:
        return self.heading_level >= 1


@dataclass
class LayoutNode:
    """Geometry for one visible node, rebuilt on every layout pass.

    ``x``/``y`` stay at 0 until ``layout.position_nodes`` runs. ``children``
    is empty for collapsed nodes while ``has_children`` still reports the
    model so a renderer can draw an expand marker.
    """

    id: str
    text: str
    text_lines: List[str]
    width: float
    height: float
    depth: int
    branch_index: int
    heading_level: int = 0
    collapsed: bool = False
    has_children: bool = False
    image: Optional[str] = None
    image_width: Optional[int] = None
    image_height: Optional[int] = None
    x: float = 0.0
    y: float = 0.0
    children: List["LayoutNode"] = field(default_factory=list)
