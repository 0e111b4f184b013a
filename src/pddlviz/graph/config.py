from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Union

import yaml

DEFAULT_COLORS: Dict[str, str] = {
    "precondition": "#f28b82",
    "effect": "#81c995",
    "function": "#b39ddb",
    "operator": "#4a90e2",
    "literal": "#ffcc80",
    "rectangle-fill": "#e8f4fd",
    "rectangle-stroke": "#1e88e5",
    "ellipse-stroke": "#444444",
    "edge": "#666666",
    "action-description-fill": "#fff7e6",
    "action-description-stroke": "#d48806",
    "problem-init-description-fill": "#fdecea",
    "problem-init-description-stroke": "#d93025",
    "problem-goal-description-fill": "#ecf8f1",
    "problem-goal-description-stroke": "#0f9d58",
}


_CASTS = {
    "node_width": float,
    "node_height": float,
    "parameter_scale": float,
    "spacing_x": float,
    "spacing_y": float,
    "start_x": float,
    "start_y": float,
    "action_columns": int,
    "problem_max_columns": int,
}


@dataclass
class LayoutConfig:
    node_width: float = 120.0
    node_height: float = 60.0
    parameter_scale: float = 0.7
    spacing_x: float = 200.0
    spacing_y: float = 110.0
    start_x: float = 100.0
    start_y: float = 100.0
    action_columns: int = 3
    problem_max_columns: int = 8
    colors: Dict[str, str] = field(default_factory=lambda: dict(DEFAULT_COLORS))

    def __post_init__(self):
        self.validate()

    def validate(self) -> None:
        for name in _CASTS:
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, (int, float)):
                raise ValueError(f"{name} must be a number, got {value!r}")
        for name in ("node_width", "node_height", "parameter_scale", "spacing_x", "spacing_y"):
            if getattr(self, name) <= 0:
                raise ValueError(f"{name} must be positive, got {getattr(self, name)!r}")
        if self.action_columns < 1 or self.problem_max_columns < 1:
            raise ValueError("Column counts must be at least 1.")

    # derived sizes
    @property
    def parameter_width(self) -> float:
        return self.node_width * self.parameter_scale

    @property
    def parameter_height(self) -> float:
        return self.node_height * self.parameter_scale

    @property
    def section_gap(self) -> float:
        return self.spacing_y / 2

    @property
    def action_width(self) -> float:
        return self.node_width + self.spacing_x * (self.action_columns - 1)

    def color(self, role: str) -> str:
        return self.colors.get(role) or DEFAULT_COLORS[role]

    @classmethod
    def from_meta(cls, meta: Dict[str, Any]) -> "LayoutConfig":
        meta = meta or {}
        colors = dict(DEFAULT_COLORS)
        colors.update({str(k): str(v) for k, v in (meta.get("colors") or {}).items()})
        kwargs = {k: cast(meta[k]) for k, cast in _CASTS.items() if k in meta}
        return cls(colors=colors, **kwargs)

    @classmethod
    def from_yaml(cls, path: Union[str, Path]) -> "LayoutConfig":
        with open(path, "r", encoding="utf-8") as f:
            y = yaml.safe_load(f) or {}
        if not isinstance(y, dict):
            raise ValueError(f"Layout config {path} must be a mapping.")
        # allow the settings either at top level or under a 'layout' key
        return cls.from_meta(y.get("layout", y))

    def apply_overrides(self, overrides: Dict[str, Any]) -> Dict[str, Any]:
        extras: Dict[str, Any] = {}
        for k, v in (overrides or {}).items():
            if k == "colors":
                self.colors.update({str(ck): str(cv) for ck, cv in (v or {}).items()})
            elif k in _CASTS:
                setattr(self, k, _CASTS[k](v))
            else:
                extras[k] = v
        self.validate()
        return extras
