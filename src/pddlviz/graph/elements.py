"""
Diagram elements in the canvas schema: geometry nodes, bound arrow lines and
group wrappers. Every element serializes with `to_dict()`.
"""

from __future__ import annotations

import math
import re
from dataclasses import dataclass, field
from typing import Any, ClassVar, Dict, List, Optional, Tuple

from .config import LayoutConfig

Point = Tuple[float, float]

_UNSAFE_ID = re.compile(r"[^a-zA-Z0-9_-]")


def sanitize_id(raw: str) -> str:
    return _UNSAFE_ID.sub("_", str(raw))


def _rich_text(text: str, align: str = "center") -> Dict[str, Any]:
    return {
        "children": [
            {"type": "paragraph", "align": align, "children": [{"text": text}]}
        ]
    }


@dataclass
class NodeBox:
    """Placement of a node, used to route edges to its boundary."""
    id: str
    x: float
    y: float
    width: float
    height: float
    shape: str = "rectangle"

    @property
    def origin(self) -> Point:
        return (self.x, self.y)

    @property
    def center(self) -> Point:
        return (self.x + self.width / 2, self.y + self.height / 2)

    @property
    def bottom(self) -> float:
        return self.y + self.height

    def border_point_towards(self, target: Point) -> Point:
        cx, cy = self.center
        dx = target[0] - cx
        dy = target[1] - cy
        if dx == 0 and dy == 0:
            return (cx, cy)

        if self.shape == "ellipse":
            rx = self.width / 2
            ry = self.height / 2
            if rx == 0 or ry == 0:
                return (cx, cy)
            scale = 1 / math.sqrt((dx * dx) / (rx * rx) + (dy * dy) / (ry * ry))
            return (cx + dx * scale, cy + dy * scale)

        hw = self.width / 2
        hh = self.height / 2
        if hw == 0 or hh == 0:
            return (cx, cy)
        sx = hw / abs(dx) if dx else math.inf
        sy = hh / abs(dy) if dy else math.inf
        scale = min(sx, sy)
        return (cx + dx * scale, cy + dy * scale)

    def connection_point(self, point: Optional[Point] = None) -> Point:
        """`point` in coordinates normalized to this box (0..1 on each axis)."""
        px, py = point if point is not None else self.center
        cx = (px - self.x) / self.width if self.width else 0.5
        cy = (py - self.y) / self.height if self.height else 0.5
        return (cx, cy)


@dataclass
class GeometryElement:
    id: str
    shape: str
    x: float
    y: float
    width: float
    height: float
    text: str
    fill: str
    stroke_color: str
    stroke_width: float = 2
    align: str = "center"
    group_id: Optional[str] = None
    data: Dict[str, Any] = field(default_factory=dict)
    type: ClassVar[str] = "geometry"

    @property
    def points(self) -> List[Point]:
        return [(self.x, self.y), (self.x + self.width, self.y + self.height)]

    def box(self) -> NodeBox:
        return NodeBox(self.id, self.x, self.y, self.width, self.height, self.shape)

    def to_dict(self) -> Dict[str, Any]:
        d: Dict[str, Any] = {
            "id": self.id,
            "type": self.type,
            "shape": self.shape,
            "points": [list(p) for p in self.points],
            "angle": 0,
            "opacity": 1,
            "fill": self.fill,
            "strokeColor": self.stroke_color,
            "strokeWidth": self.stroke_width,
            "text": _rich_text(self.text, self.align),
        }
        if self.group_id:
            d["groupId"] = self.group_id
        if self.data:
            d["data"] = dict(self.data)
        return d


@dataclass
class ArrowLineElement:
    id: str
    source: NodeBox
    target: NodeBox
    stroke_color: str
    label: Optional[str] = None
    source_marker: str = "none"
    target_marker: str = "arrow"
    stroke_width: float = 2
    group_id: Optional[str] = None
    type: ClassVar[str] = "arrow-line"

    @property
    def points(self) -> List[Point]:
        return [
            self.source.border_point_towards(self.target.center),
            self.target.border_point_towards(self.source.center),
        ]

    def to_dict(self) -> Dict[str, Any]:
        start, end = self.points
        d: Dict[str, Any] = {
            "id": self.id,
            "type": self.type,
            "shape": "straight",
            "points": [list(start), list(end)],
            "source": {
                "boundId": self.source.id,
                "connection": list(self.source.connection_point(start)),
                "marker": self.source_marker,
            },
            "target": {
                "boundId": self.target.id,
                "connection": list(self.target.connection_point(end)),
                "marker": self.target_marker,
            },
            "strokeColor": self.stroke_color,
            "strokeWidth": self.stroke_width,
            "opacity": 1,
            "texts": [{"text": _rich_text(self.label), "position": 0.5}] if self.label else [],
        }
        if self.group_id:
            d["groupId"] = self.group_id
        return d


@dataclass
class GroupElement:
    id: str
    description: str
    element_ids: List[str] = field(default_factory=list)
    data: Dict[str, Any] = field(default_factory=dict)
    type: ClassVar[str] = "group"

    def to_dict(self) -> Dict[str, Any]:
        data = dict(self.data)
        data["elementIds"] = list(self.element_ids)
        return {"id": self.id, "type": self.type, "description": self.description, "data": data}


Element = Any  # GeometryElement | ArrowLineElement | GroupElement


class BlockBuilder:
    """
    Collects the elements of one action or problem block under a group id and
    tracks the lowest point drawn so far.
    """

    def __init__(self, group_id: str, config: LayoutConfig):
        self.group_id = group_id
        self.config = config
        self.elements: List[Element] = []
        self.element_ids: List[str] = []
        self.max_bottom = 0.0
        self._edge_pairs = set()

    def _register(self, element: Element) -> Element:
        element.group_id = self.group_id
        self.element_ids.append(element.id)
        self.elements.append(element)
        return element

    def rectangle(self, text: str, x: float, y: float, node_id: str,
                  width: Optional[float] = None, height: Optional[float] = None) -> NodeBox:
        cfg = self.config
        el = GeometryElement(
            id=sanitize_id(node_id),
            shape="rectangle",
            x=x,
            y=y,
            width=cfg.node_width if width is None else width,
            height=cfg.node_height if height is None else height,
            text=text,
            fill=cfg.color("rectangle-fill"),
            stroke_color=cfg.color("rectangle-stroke"),
        )
        self._register(el)
        self.max_bottom = max(self.max_bottom, el.y + el.height)
        return el.box()

    def ellipse(self, text: str, x: float, y: float, node_id: str, fill_role: str) -> NodeBox:
        cfg = self.config
        el = GeometryElement(
            id=sanitize_id(node_id),
            shape="ellipse",
            x=x,
            y=y,
            width=cfg.node_width,
            height=cfg.node_height,
            text=text,
            fill=cfg.color(fill_role),
            stroke_color=cfg.color("ellipse-stroke"),
        )
        self._register(el)
        self.max_bottom = max(self.max_bottom, el.y + el.height)
        return el.box()

    def description(self, text: str, x: float, y: float, node_id: str,
                    width: float, height: float, role: str) -> NodeBox:
        """role: action | problem-init | problem-goal"""
        cfg = self.config
        el = GeometryElement(
            id=sanitize_id(node_id),
            shape="rectangle",
            x=x,
            y=y,
            width=width,
            height=height,
            text=text,
            fill=cfg.color(f"{role}-description-fill"),
            stroke_color=cfg.color(f"{role}-description-stroke"),
            align="left" if role == "problem-init" else "center",
            data={"role": f"{role}-description", "showOnHover": True, "editable": True},
        )
        self._register(el)
        self.max_bottom = max(self.max_bottom, el.y + el.height)
        return el.box()

    def edge(self, source: NodeBox, target: NodeBox, edge_id: str,
             label: Optional[str] = None) -> Optional[ArrowLineElement]:
        """Connect two placed nodes; a repeated source/target pair is drawn once."""
        pair = (source.id, target.id)
        if pair in self._edge_pairs:
            return None
        self._edge_pairs.add(pair)
        return self._register(
            ArrowLineElement(
                id=sanitize_id(edge_id),
                source=source,
                target=target,
                label=label,
                stroke_color=self.config.color("edge"),
            )
        )

    def finish(self, description: str, data: Dict[str, Any]) -> List[Element]:
        """Prepend the group wrapper and return the block's elements."""
        group = GroupElement(self.group_id, description, list(self.element_ids), dict(data))
        return [group] + self.elements
