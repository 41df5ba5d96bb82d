"""Configuration models for plotgen."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List, Optional


@dataclass(frozen=True)
class Workspace:
    """Physical dimensions of a paper profile."""

    name: str
    width_mm: float
    height_mm: float

    def as_tuple(self) -> tuple[float, float]:
        return self.width_mm, self.height_mm


PAPER_PROFILES: Dict[str, Workspace] = {
    "a0": Workspace("A0", 841, 1189),
    "a1": Workspace("A1", 594, 841),
    "a2": Workspace("A2", 420, 594),
    "a3": Workspace("A3", 297, 420),
    "a4": Workspace("A4", 210, 297),
    "a5": Workspace("A5", 148, 210),
    "a6": Workspace("A6", 105, 148),
    "a7": Workspace("A7", 74, 105),
    "a8": Workspace("A8", 52, 74),
    "a9": Workspace("A9", 37, 52),
    "a10": Workspace("A10", 26, 37),
    "b4": Workspace("B4", 250, 353),
    "b5": Workspace("B5", 176, 250),
    "letter": Workspace("US Letter", 216, 279),
    "legal": Workspace("US Legal", 216, 356),
    "tabloid": Workspace("US Tabloid", 279, 432),
    "ledger": Workspace("US Ledger", 432, 279),
    "executive": Workspace("US Executive", 184, 267),
    "statement": Workspace("US Statement", 140, 216),
    "folio": Workspace("US Folio", 216, 330),
    "custom": Workspace("Custom", 210, 297),
}
DEFAULT_PROFILE = "a3"


@dataclass(frozen=True)
class Bounds:
    """Paper size and margin handed to every generator."""

    width: float
    height: float
    margin: float = 0.0

    @property
    def drawable_width(self) -> float:
        return self.width - self.margin * 2

    @property
    def drawable_height(self) -> float:
        return self.height - self.margin * 2

    @classmethod
    def for_workspace(cls, workspace: Workspace, margin: float) -> "Bounds":
        return cls(width=float(workspace.width_mm), height=float(workspace.height_mm), margin=float(margin))


@dataclass
class PenConfig:
    """Configuration values for a single pen."""

    id: int
    name: str
    color: str
    width: float = 0.3
    enabled: bool = True


DEFAULT_PENS = [
    PenConfig(id=0, name="Pen 1", color="#111111"),
    PenConfig(id=1, name="Pen 2", color="#e41a1c"),
    PenConfig(id=2, name="Pen 3", color="#377eb8"),
    PenConfig(id=3, name="Pen 4", color="#4daf4a"),
]


@dataclass
class Settings:
    """Document wide settings shared by the engine and the SVG renderer."""

    margin: float = 20.0
    speed_down: float = 250.0  # mm/s while drawing, used for time estimates
    speed_up: float = 300.0
    precision: int = 3
    stroke_width: float = 0.3
    bg_color: str = "#121214"
    dedupe_tolerance: float = 0.01
    profile: str = DEFAULT_PROFILE
    history_limit: int = 50
    pens: List[PenConfig] = field(default_factory=lambda: [PenConfig(**asdict(p)) for p in DEFAULT_PENS])

    @property
    def workspace(self) -> Workspace:
        return PAPER_PROFILES.get(self.profile, PAPER_PROFILES[DEFAULT_PROFILE])

    @property
    def bounds(self) -> Bounds:
        return Bounds.for_workspace(self.workspace, self.margin)

    def pen(self, pen_id: int) -> Optional[PenConfig]:
        for pen in self.pens:
            if pen.id == pen_id:
                return pen
        return None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Settings":
        defaults = cls()
        pens_data = data.get("pens")
        pens = [PenConfig(**p) for p in pens_data] if isinstance(pens_data, list) else defaults.pens
        return cls(
            margin=float(data.get("margin", defaults.margin)),
            speed_down=float(data.get("speed_down", defaults.speed_down)),
            speed_up=float(data.get("speed_up", defaults.speed_up)),
            precision=int(data.get("precision", defaults.precision)),
            stroke_width=float(data.get("stroke_width", defaults.stroke_width)),
            bg_color=str(data.get("bg_color", defaults.bg_color)),
            dedupe_tolerance=float(data.get("dedupe_tolerance", defaults.dedupe_tolerance)),
            profile=str(data.get("profile", defaults.profile)),
            history_limit=int(data.get("history_limit", defaults.history_limit)),
            pens=pens,
        )


__all__ = [
    "Workspace",
    "PAPER_PROFILES",
    "DEFAULT_PROFILE",
    "Bounds",
    "PenConfig",
    "DEFAULT_PENS",
    "Settings",
]
