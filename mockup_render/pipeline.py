# mockup_render/pipeline.py
"""
Public entry points of the compositing engine.

Full renders upscale the mockup to a working resolution, perspective-warp the
design into its placement and blend it per product type. Fast previews skip
the warp and stretch the design into its bounding box with a canvas-native
blend, for use while the user is dragging.
"""
import asyncio
import logging
import math

import cv2
import numpy as np

from mockup_render.geo.placement import (
    as_placement, as_transform, bounding_box, compute_design_bounds, compute_destination_points,
    placement_polygon,
)
from mockup_render.render.blend import BlendModel, blend_model_for, fabric_mix, luminance
from mockup_render.render.compositor import alpha_over, placement_mask, preview_blend
from mockup_render.render.image_io import ImageSource, decode_image, to_bgr, to_bgra
from mockup_render.render.warper import destination_box, warp_design
from mockup_render.utils.config import load_render_config

__all__ = [
    "compute_destination_points",
    "compute_design_bounds",
    "render_full_composite",
    "render_fast_preview",
    "composite_design",
    "resolve_images",
    "working_size",
]

log = logging.getLogger(__name__)


def _interp_flag(name: str) -> int:
    name = (name or "linear").lower()
    return {
        "nearest": cv2.INTER_NEAREST,
        "linear":  cv2.INTER_LINEAR,
        "bilinear":cv2.INTER_LINEAR,
        "cubic":   cv2.INTER_CUBIC,
        "area":    cv2.INTER_AREA,
        "lanczos": cv2.INTER_LANCZOS4,
    }.get(name, cv2.INTER_LINEAR)

def working_size(width, height, min_resolution=2400):
    """Canvas size with the long side raised to at least min_resolution (never shrunk)."""
    scale = max(1.0, min_resolution / max(width, height))
    return int(math.floor(width * scale + 0.5)), int(math.floor(height * scale + 0.5))

# ----------------------------- full render -----------------------------
def composite_design(canvas, design, placement, transform=None, clip_to_placement=True,
                     product_type=None, cfg=None):
    """
    Warp + blend the design onto an already prepared BGR canvas (synchronous).
    Degenerate geometry leaves the canvas as it was.
    """
    cfg = cfg or {}
    placement = as_placement(placement)
    design = to_bgra(design)
    h, w = canvas.shape[:2]
    hd, wd = design.shape[:2]

    pts = compute_destination_points(placement, wd / hd, w, h, as_transform(transform))
    model = blend_model_for(product_type)
    layer = warp_design(design, pts, canvas, model, cfg)
    if layer is None:
        return canvas

    mask = placement_mask(placement_polygon(placement, w, h), canvas.shape) if clip_to_placement else None
    return alpha_over(canvas, layer, mask)

async def _load(src, convert):
    if isinstance(src, np.ndarray):
        return convert(src)
    return convert(await asyncio.to_thread(decode_image, src.data))

async def resolve_images(mockup, design, cache=None):
    """(mockup BGR, design BGRA). Byte sources go through `cache` only when both sides are ImageSource."""
    if cache is not None and isinstance(mockup, ImageSource) and isinstance(design, ImageSource):
        return await cache.get_or_load(mockup, design)
    return await asyncio.gather(_load(mockup, to_bgr), _load(design, to_bgra))

async def render_full_composite(mockup, design, placement, transform=None, clip_to_placement=True,
                                product_type=None, cache=None, cfg=None):
    """
    Full-fidelity render. `mockup` / `design` are decoded arrays or ImageSource
    byte sources (decoded through `cache` when one is given). Returns a new
    BGR canvas at working resolution. ImageDecodeError propagates.
    """
    cfg = cfg or load_render_config()
    mockup_img, design_img = await resolve_images(mockup, design, cache)

    mh, mw = mockup_img.shape[:2]
    cw, ch = working_size(mw, mh, float(cfg.get("min_resolution", 2400)))
    if (cw, ch) != (mw, mh):
        canvas = cv2.resize(mockup_img, (cw, ch), interpolation=cv2.INTER_CUBIC)
    else:
        canvas = mockup_img.copy()
    log.debug("full render %dx%d -> %dx%d, product=%s", mw, mh, cw, ch, product_type)

    return await asyncio.to_thread(
        composite_design, canvas, design_img, placement, transform, clip_to_placement, product_type, cfg
    )

# ----------------------------- fast preview -----------------------------
def preview_mode(model, canvas, box, cfg=None) -> str:
    """Canvas-native stand-in for a blend model."""
    cfg = cfg or {}
    if model is BlendModel.SHADOW_MULTIPLY:
        return "multiply"
    if model is BlendModel.ADAPTIVE_FABRIC:
        x0, y0, x1, y1 = box
        avg = float(luminance(canvas[y0:y1, x0:x1]).mean())
        t = fabric_mix(avg, float(cfg.get("fabric_low", 0.2)), float(cfg.get("fabric_span", 0.5)))
        return "screen" if t < 0.5 else "multiply"
    return "normal"

def _stretch_into_box(design, rect, box, shape, interp):
    """
    Design scaled (no skew) into the float rect (x, y, w, h) on a transparent
    layer. Pixel centres map onto pixel centres; edge samples replicate the
    design border and everything outside the integer box stays transparent.
    """
    x, y, bw, bh = rect
    hd, wd = design.shape[:2]
    sx, sy = bw / wd, bh / hd
    M = np.array([[sx, 0.0, x + 0.5 * sx - 0.5], [0.0, sy, y + 0.5 * sy - 0.5]], np.float64)
    stretched = cv2.warpAffine(design, M, (shape[1], shape[0]), flags=interp,
                               borderMode=cv2.BORDER_REPLICATE)
    x0, y0, x1, y1 = box
    layer = np.zeros_like(stretched)
    layer[y0:y1, x0:x1] = stretched[y0:y1, x0:x1]
    return layer

def render_fast_preview(canvas, mockup_img, design_img, placement, transform=None,
                        clip_to_placement=True, product_type=None, cfg=None):
    """
    Coarse, synchronous preview drawn in place on `canvas` (its size is kept):
    mockup background + design stretched into its destination bounding box.
    """
    cfg = cfg or {}
    placement = as_placement(placement)
    h, w = canvas.shape[:2]
    interp = _interp_flag(cfg.get("preview_interp", "linear"))
    canvas[:] = cv2.resize(to_bgr(mockup_img), (w, h), interpolation=interp)

    design = to_bgra(design_img)
    hd, wd = design.shape[:2]
    pts = compute_destination_points(placement, wd / hd, w, h, as_transform(transform))
    box = destination_box(pts, w, h)
    if box is None:
        return canvas

    mode = preview_mode(blend_model_for(product_type), canvas, box, cfg)
    overlay = _stretch_into_box(design, bounding_box(pts), box, canvas.shape, interp)
    mask = placement_mask(placement_polygon(placement, w, h), canvas.shape) if clip_to_placement else None
    canvas[:] = preview_blend(canvas, overlay, mode, mask)
    return canvas
