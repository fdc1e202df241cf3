"""Fit-to-screen transform for a set of positions."""

from dataclasses import dataclass

from vargraph.config import Settings
from vargraph.layout.simulation import Positions


@dataclass(frozen=True)
class ViewTransform:
    """Translate to centre the content, then scale it to fit."""

    translate_x: float = 0.0
    translate_y: float = 0.0
    scale: float = 1.0

    def apply(self, x: float, y: float) -> tuple[float, float]:
        """Map a layout position to viewport coordinates around the screen centre."""
        return (x + self.translate_x) * self.scale, (y + self.translate_y) * self.scale

    def to_dict(self) -> dict:
        return {"translate_x": self.translate_x, "translate_y": self.translate_y, "scale": self.scale}


def fit_to_viewport(
    positions: Positions,
    width: float,
    height: float,
    settings: Settings | None = None,
) -> ViewTransform:
    """Transform that centres the positions and fits them inside width x height."""
    if not positions or width <= 0 or height <= 0:
        return ViewTransform()
    settings = settings or Settings()

    xs = [p[0] for p in positions.values()]
    ys = [p[1] for p in positions.values()]
    x0, x1 = min(xs), max(xs)
    y0, y1 = min(ys), max(ys)

    content_width = x1 - x0 + settings.viewport_padding
    content_height = y1 - y0 + settings.viewport_padding
    scale = settings.viewport_fill / max(content_width / width, content_height / height)

    return ViewTransform(
        translate_x=-(x0 + x1) / 2,
        translate_y=-(y0 + y1) / 2,
        scale=scale,
    )
