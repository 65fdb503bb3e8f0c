"""
Photometric blend models for printing a flat design onto a photographed surface.

All functions work on float arrays shaped (..., 3) in BGR order with values in
[0, 255] and return arrays of the same shape, clamped to [0, 255].
"""
from enum import Enum
from typing import NamedTuple, Optional

import cv2
import numpy as np

from mockup_render.geo.placement import ProductType

# BGR luma weights
_LUMA = np.array([0.114, 0.587, 0.299], np.float64)


class BlendModel(Enum):
    NORMAL = "normal"
    SHADOW_MULTIPLY = "shadow-multiply"
    ADAPTIVE_FABRIC = "adaptive-fabric"


class BlendContext(NamedTuple):
    avg_lum: float = 0.5
    fold_detail: Optional[np.ndarray] = None  # same leading shape as src/dst, or None
    shadow_ramp: float = 4.0
    fold_strength: float = 1.8
    fabric_low: float = 0.2
    fabric_span: float = 0.5


def luminance(bgr) -> np.ndarray:
    """Per-pixel luminance in [0, 1]."""
    return np.asarray(bgr, np.float64)[..., :3] @ _LUMA / 255.0

def blend_model_for(product_type) -> BlendModel:
    pt = ProductType.parse(product_type)
    if pt in (ProductType.WALL_ART, ProductType.POSTER):
        return BlendModel.SHADOW_MULTIPLY
    if pt in (ProductType.CLOTHING, ProductType.ACCESSORIES):
        return BlendModel.ADAPTIVE_FABRIC
    return BlendModel.NORMAL

def clips_to_placement(product_type) -> bool:
    return ProductType.parse(product_type) in (ProductType.WALL_ART, ProductType.POSTER)

def fabric_mix(avg_lum, low=0.2, span=0.5) -> float:
    """Screen -> multiply interpolation weight: 0 on dark fabric, 1 on light fabric."""
    return float(np.clip((avg_lum - low) / span, 0.0, 1.0))

# ----------------------------- models -----------------------------
def _shadow_multiply(src, dst, ctx):
    lum = luminance(dst)[..., None]
    mult = src * dst / 255.0
    shadow = src * lum
    mix = np.minimum(1.0, lum * lum * ctx.shadow_ramp)
    return mult * mix + shadow * (1.0 - mix)

def _adaptive_fabric(src, dst, ctx):
    if ctx.fold_detail is not None:
        fold = 1.0 + np.asarray(ctx.fold_detail, np.float64)[..., None] * ctx.fold_strength
        src = np.clip(src * fold, 0.0, 255.0)

    screen = 255.0 - (255.0 - src) * (255.0 - dst) / 255.0
    mult = src * dst / 255.0
    t = fabric_mix(ctx.avg_lum, ctx.fabric_low, ctx.fabric_span)
    out = screen * (1.0 - t) + mult * t
    # keep a little shadow even where screen dominates
    return out * (0.85 + 0.15 * luminance(dst)[..., None])

def blend(model, src, dst, context: Optional[BlendContext] = None) -> np.ndarray:
    """
    Combine sampled design colour `src` with the mockup colour `dst` underneath.
    Unknown models fall back to NORMAL (plain overwrite).
    """
    src = np.asarray(src, np.float64)
    dst = np.asarray(dst, np.float64)
    ctx = context or BlendContext()
    if model is BlendModel.SHADOW_MULTIPLY:
        out = _shadow_multiply(src, dst, ctx)
    elif model is BlendModel.ADAPTIVE_FABRIC:
        out = _adaptive_fabric(src, dst, ctx)
    else:
        out = src
    return np.clip(out, 0.0, 255.0)

# ----------------------------- fabric precompute -----------------------------
def _blur_radius(w, h, ratio):
    return max(2, int(np.floor(min(w, h) * ratio + 0.5)))

def fold_detail_map(lum: np.ndarray, radius: int) -> np.ndarray:
    """
    Raw minus box-blurred luminance. Positive = highlight ridge, negative = crease.
    The box window is [i-r, i+r] clipped to the region, averaged over the
    pixels it actually covers (no border padding).
    """
    lum = np.asarray(lum, np.float32)
    k = (2 * radius + 1, 2 * radius + 1)
    total = cv2.boxFilter(lum, -1, k, normalize=False, borderType=cv2.BORDER_CONSTANT)
    count = cv2.boxFilter(np.ones_like(lum), -1, k, normalize=False, borderType=cv2.BORDER_CONSTANT)
    return (lum - total / count).astype(np.float64)

def fabric_context(canvas, box, cfg=None) -> BlendContext:
    """Average luminance + fold map of the canvas region under box = (x0, y0, x1, y1)."""
    cfg = cfg or {}
    x0, y0, x1, y1 = box
    lum = luminance(canvas[y0:y1, x0:x1])
    avg = float(lum.mean()) if lum.size else 0.5
    radius = _blur_radius(x1 - x0, y1 - y0, float(cfg.get("fold_blur_ratio", 0.015)))
    return BlendContext(
        avg_lum=avg,
        fold_detail=fold_detail_map(lum, radius),
        shadow_ramp=float(cfg.get("shadow_ramp", 4.0)),
        fold_strength=float(cfg.get("fold_strength", 1.8)),
        fabric_low=float(cfg.get("fabric_low", 0.2)),
        fabric_span=float(cfg.get("fabric_span", 0.5)),
    )

def blend_context(model, canvas, box, cfg=None) -> BlendContext:
    cfg = cfg or {}
    if model is BlendModel.ADAPTIVE_FABRIC:
        return fabric_context(canvas, box, cfg)
    return BlendContext(shadow_ramp=float(cfg.get("shadow_ramp", 4.0)))
