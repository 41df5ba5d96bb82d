"""SVG export and preview strokes.

Paths are grouped per pen and written at a caller-chosen decimal precision.
Export applies per-pen deduplication so that repeated geometry on one pen is
drawn once while identical geometry on different pens is kept.
"""
from __future__ import annotations

import math
from typing import TYPE_CHECKING, Any, Dict, Iterable, List, Optional, Tuple, Union

from .geometry import Circle, Path, Polyline
from .optimization import PenDeduper

if TYPE_CHECKING:  # pragma: no cover
    from .engine import VectorEngine

SVG_NS = "http://www.w3.org/2000/svg"

DEFAULT_PEN_COLORS = {
    0: "#111111",
    1: "#e41a1c",
    2: "#377eb8",
    3: "#4daf4a",
    4: "#984ea3",
    5: "#ff7f00",
    6: "#a65628",
    7: "#f781bf",
    8: "#999999",
}


def fmt(value: float, precision: int = 3) -> str:
    return f"{float(value):.{max(0, int(precision))}f}"


def shape_to_svg(path: Path, precision: int = 3) -> str:
    if isinstance(path, Circle):
        cx, cy = fmt(path.cx, precision), fmt(path.cy, precision)
        if path.is_round:
            return f'<circle cx="{cx}" cy="{cy}" r="{fmt(path.rx, precision)}" />'
        rotate = ""
        if path.rotation:
            rotate = f' transform="rotate({fmt(math.degrees(path.rotation), precision)} {cx} {cy})"'
        return f'<ellipse cx="{cx}" cy="{cy}" rx="{fmt(path.rx, precision)}" ry="{fmt(path.ry, precision)}"{rotate} />'
    if not isinstance(path, Polyline) or not path.points:
        return ""
    d = " ".join(
        f"{'M' if i == 0 else 'L'}{fmt(x, precision)} {fmt(y, precision)}" for i, (x, y) in enumerate(path.points)
    )
    return f'<path d="{d}" />'


def paths_to_svg(width: float, height: float, paths: Iterable[Path], precision: int = 3) -> str:
    """Bare SVG document for a flat path list."""
    body = "\n".join(s for s in (shape_to_svg(p, precision) for p in paths or []) if s)
    return "\n".join([f'<svg xmlns="{SVG_NS}" viewBox="0 0 {fmt(width, 0)} {fmt(height, 0)}">', body, "</svg>", ""])


def pen_groups(engine: "VectorEngine") -> List[Tuple[int, List[Path]]]:
    """Visible output paths grouped by pen, in first-seen layer order."""
    order: List[int] = []
    grouped: Dict[int, List[Path]] = {}
    for layer in engine.layers:
        if not layer.visible:
            continue
        if layer.pen_id not in grouped:
            order.append(layer.pen_id)
            grouped[layer.pen_id] = []
        grouped[layer.pen_id].extend(layer.output_paths)
    return [(pen_id, grouped[pen_id]) for pen_id in order]


def render_svg(engine: "VectorEngine", precision: Optional[int] = None, dedupe: bool = True) -> str:
    settings = engine.settings
    precision = settings.precision if precision is None else precision
    width, height = settings.workspace.as_tuple()
    deduper = PenDeduper(settings.dedupe_tolerance) if dedupe else None

    lines = [
        f'<svg xmlns="{SVG_NS}" width="{fmt(width, 0)}mm" height="{fmt(height, 0)}mm" '
        f'viewBox="0 0 {fmt(width, 0)} {fmt(height, 0)}">'
    ]
    for pen_id, paths in pen_groups(engine):
        pen = settings.pen(pen_id)
        color = pen.color if pen else DEFAULT_PEN_COLORS.get(pen_id, DEFAULT_PEN_COLORS[0])
        stroke_width = pen.width if pen else settings.stroke_width
        name = pen.name if pen else f"Pen {pen_id + 1}"
        if deduper is not None:
            paths = deduper.filter(pen_id, paths)
        lines.append(
            f'<g id="pen-{pen_id}" data-pen="{name}" fill="none" stroke="{color}" '
            f'stroke-width="{fmt(stroke_width, precision)}" stroke-linecap="round" stroke-linejoin="round">'
        )
        lines.extend(s for s in (shape_to_svg(p, precision) for p in paths) if s)
        lines.append("</g>")
    lines.append("</svg>")
    lines.append("")
    return "\n".join(lines)


def preview_strokes(
    engine: "VectorEngine", *, pens: Optional[Union[int, Iterable[int]]] = None, width: float = 1.5
) -> Dict[str, Any]:
    pens_set = None
    if pens is not None:
        pens_set = set([pens] if isinstance(pens, int) else list(pens))
    strokes = []
    for pen_id, paths in pen_groups(engine):
        if pens_set is not None and pen_id not in pens_set:
            continue
        pen = engine.settings.pen(pen_id)
        color = pen.color if pen else DEFAULT_PEN_COLORS.get(pen_id, DEFAULT_PEN_COLORS[0])
        for path in paths:
            if isinstance(path, Circle):
                path = path.to_polyline()
            if not isinstance(path, Polyline) or len(path.points) < 2:
                continue
            strokes.append(
                {
                    "pts": [list(p) for p in path.points],
                    "color": color,
                    "width": width,
                    "pen": f"pen{pen_id}",
                }
            )
    return {"strokes": strokes}


__all__ = [
    "DEFAULT_PEN_COLORS",
    "fmt",
    "shape_to_svg",
    "paths_to_svg",
    "pen_groups",
    "render_svg",
    "preview_strokes",
]
