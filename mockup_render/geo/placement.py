"""
Placement geometry: where a design lands on a mockup.

Placements are stored in percent-of-image units (0-100) so they survive
any mockup resolution. A Transform (scale / offset / fill mode) is layered
on top per preview session. Everything here resolves to the 4 destination
points (tl, tr, br, bl) in canvas pixels that the warp renderer consumes.
"""
import math
from enum import Enum
from typing import NamedTuple, Optional, Tuple

import numpy as np

from mockup_render.geo.homography import as_quad, bbox_to_quad

Point = Tuple[float, float]


class QuadPlacement(NamedTuple):
    tl: Point
    tr: Point
    br: Point
    bl: Point


class RectPlacement(NamedTuple):
    x: float
    y: float
    width: float
    height: float


class Transform(NamedTuple):
    scale: float = 1.0
    offset_x: float = 0.0   # % of mockup width
    offset_y: float = 0.0   # % of mockup height
    fill_mode: str = "fit"  # "fit" | "fill"


class ProductType(str, Enum):
    WALL_ART = "wall-art"
    POSTER = "poster"
    CLOTHING = "clothing"
    ACCESSORIES = "accessories"

    @classmethod
    def parse(cls, value) -> Optional["ProductType"]:
        if isinstance(value, cls):
            return value
        if value is None:
            return None
        name = str(value).strip().lower()
        if name == "tshirt":
            return cls.CLOTHING
        try:
            return cls(name)
        except ValueError:
            return None


# ----------------------------- parsing -----------------------------
def _xy(d) -> Point:
    return float(d["x"]), float(d["y"])

def placement_from_dict(d: dict):
    """Stored JSON -> QuadPlacement | RectPlacement."""
    if not isinstance(d, dict):
        raise ValueError(f"placement must be a mapping, got {type(d).__name__}")
    try:
        if "tl" in d:
            return QuadPlacement(_xy(d["tl"]), _xy(d["tr"]), _xy(d["br"]), _xy(d["bl"]))
        return RectPlacement(float(d["x"]), float(d["y"]), float(d["width"]), float(d["height"]))
    except (KeyError, TypeError) as e:
        raise ValueError(f"malformed placement: {d!r}") from e

def placement_to_dict(p) -> dict:
    if isinstance(p, QuadPlacement):
        return {k: {"x": v[0], "y": v[1]} for k, v in p._asdict().items()}
    return dict(p._asdict())

def transform_from_dict(d: Optional[dict]) -> Transform:
    d = d or {}
    return Transform(
        scale=float(d.get("scale", 1.0)),
        offset_x=float(d.get("offsetX", 0.0)),
        offset_y=float(d.get("offsetY", 0.0)),
        fill_mode=str(d.get("fillMode", "fit")),
    )


# ----------------------------- helpers -----------------------------
def _edge_len(p, q):
    dx, dy = p[0] - q[0], p[1] - q[1]
    return float(np.hypot(dx, dy))

def _ratio(a: float, b: float) -> float:
    # float division with IEEE semantics: x/0 -> +-inf, 0/0 -> nan
    if b != 0:
        return a / b
    if a == 0:
        return math.nan
    return math.copysign(math.inf, a)

def _quad_size(quad):
    tl, tr, br, bl = quad
    width = 0.5 * (_edge_len(tl, tr) + _edge_len(bl, br))
    height = 0.5 * (_edge_len(tl, bl) + _edge_len(tr, br))
    return width, height

def quad_aspect(quad) -> float:
    """Width/height of a quad from its averaged opposite edges (robust to tilt)."""
    w, h = _quad_size(as_quad(quad))
    return _ratio(w, h)

def bounding_box(points):
    q = np.asarray(points, np.float64).reshape(-1, 2)
    x0, y0 = q.min(axis=0)
    x1, y1 = q.max(axis=0)
    return float(x0), float(y0), float(x1 - x0), float(y1 - y0)

def placement_polygon(placement, mockup_w, mockup_h) -> np.ndarray:
    """Raw placement polygon in pixels, no transform applied."""
    if isinstance(placement, QuadPlacement):
        return np.array([[x / 100.0 * mockup_w, y / 100.0 * mockup_h] for x, y in placement], np.float64)
    x = placement.x / 100.0 * mockup_w
    y = placement.y / 100.0 * mockup_h
    w = placement.width / 100.0 * mockup_w
    h = placement.height / 100.0 * mockup_h
    return bbox_to_quad(x, y, x + w, y + h)


# ----------------------------- fitting -----------------------------
def fit_quad_to_aspect(quad, design_aspect):
    """
    Shrink a quad symmetrically so its averaged aspect matches design_aspect.
    Wider designs pull the top/bottom edges toward the middle, taller designs
    pull left/right edges in. Edges move along the lines joining opposite
    edge midpoints, so the perspective shape is kept.
    """
    q = as_quad(quad)
    quad_w, quad_h = _quad_size(q)
    aspect = _ratio(quad_w, quad_h)
    tl, tr, br, bl = q

    if design_aspect > aspect:
        fit_h = quad_w / design_aspect
        t = fit_h / quad_h if quad_h > 0 else 1.0
        mid_a, mid_b = (tl + tr) / 2, (bl + br) / 2
        anchors = (mid_a, mid_a, mid_b, mid_b)
    elif design_aspect < aspect:
        fit_w = quad_h * design_aspect
        t = fit_w / quad_w if quad_w > 0 else 1.0
        mid_a, mid_b = (tl + bl) / 2, (tr + br) / 2
        anchors = (mid_a, mid_b, mid_b, mid_a)
    else:
        return q.copy()

    center = (mid_a + mid_b) / 2
    return np.array([p + (center - a) * (1.0 - t) for p, a in zip(q, anchors)], np.float64)

def _quad_points(placement, design_aspect, mockup_w, mockup_h, tf):
    raw = placement_polygon(placement, mockup_w, mockup_h)
    fitted = raw if tf.fill_mode == "fill" else fit_quad_to_aspect(raw, design_aspect)
    c = fitted.mean(axis=0)
    off = np.array([tf.offset_x / 100.0 * mockup_w, tf.offset_y / 100.0 * mockup_h])
    return c + (fitted - c) * tf.scale + off

def _rect_points(placement, design_aspect, mockup_w, mockup_h, tf):
    orig_x = placement.x / 100.0 * mockup_w
    orig_y = placement.y / 100.0 * mockup_h
    orig_w = placement.width / 100.0 * mockup_w
    orig_h = placement.height / 100.0 * mockup_h

    zone_w, zone_h = orig_w * tf.scale, orig_h * tf.scale
    zone_x = orig_x + (orig_w - zone_w) / 2
    zone_y = orig_y + (orig_h - zone_h) / 2

    if tf.fill_mode == "fill":
        draw_x, draw_y, draw_w, draw_h = zone_x, zone_y, zone_w, zone_h
    elif design_aspect > _ratio(zone_w, zone_h):
        draw_w, draw_h = zone_w, zone_w / design_aspect
        draw_x, draw_y = zone_x, zone_y + (zone_h - draw_h) / 2
    else:
        draw_w, draw_h = zone_h * design_aspect, zone_h
        draw_x, draw_y = zone_x + (zone_w - draw_w) / 2, zone_y

    ox = tf.offset_x / 100.0 * mockup_w
    oy = tf.offset_y / 100.0 * mockup_h
    return bbox_to_quad(draw_x + ox, draw_y + oy, draw_x + draw_w + ox, draw_y + draw_h + oy)

def compute_destination_points(placement, design_aspect, mockup_w, mockup_h, transform=None) -> np.ndarray:
    """
    4 x 2 destination points (tl, tr, br, bl) in mockup pixels.

    Quad placements are aspect-fitted (unless fill_mode == "fill"), then
    scaled about the fitted centroid and offset. Rect placements are scaled
    about the zone centre, then the design is letterboxed (fit) or stretched
    (fill) inside it and offset. Degenerate zones never raise; they come out
    as collapsed points which the renderer skips.
    """
    tf = transform or Transform()
    if isinstance(placement, QuadPlacement):
        return _quad_points(placement, design_aspect, mockup_w, mockup_h, tf)
    return _rect_points(placement, design_aspect, mockup_w, mockup_h, tf)

def compute_design_bounds(mockup_dims, design_dims, placement, transform=None) -> dict:
    """Axis-aligned design box in mockup pixels (used to place drag handles)."""
    mw, mh = mockup_dims
    dw, dh = design_dims
    pts = compute_destination_points(placement, dw / dh, mw, mh, transform)
    x, y, w, h = bounding_box(pts)
    return {"x": x, "y": y, "width": w, "height": h, "mockup_width": mw, "mockup_height": mh}

def as_placement(placement):
    return placement_from_dict(placement) if isinstance(placement, dict) else placement

def as_transform(transform) -> Transform:
    if transform is None:
        return Transform()
    return transform_from_dict(transform) if isinstance(transform, dict) else transform
