# mockup_render/render/warper.py
import logging
import math

import numpy as np

from mockup_render.geo.homography import (
    homography_from_points, invert_homography, is_collinear, source_corners,
)
from mockup_render.render.blend import BlendModel, blend, blend_context
from mockup_render.render.image_io import to_bgra

log = logging.getLogger(__name__)

W_EPS = 1e-10

def destination_box(dst_points, canvas_w: int, canvas_h: int):
    """Integer bbox (x0, y0, x1, y1) of the points clamped to the canvas, or None if empty."""
    q = np.asarray(dst_points, np.float64).reshape(-1, 2)
    if not np.isfinite(q).all():
        return None
    x0 = max(0, math.floor(q[:, 0].min()))
    x1 = min(int(canvas_w), math.ceil(q[:, 0].max()))
    y0 = max(0, math.floor(q[:, 1].min()))
    y1 = min(int(canvas_h), math.ceil(q[:, 1].max()))
    if x1 <= x0 or y1 <= y0:
        return None
    return x0, y0, x1, y1

def _bilinear(img, sx, sy):
    """Sample img (H x W x C) at float coords; neighbours clamp to the last row/column."""
    h, w = img.shape[:2]
    x0 = np.floor(sx).astype(np.intp)
    y0 = np.floor(sy).astype(np.intp)
    x1 = np.minimum(x0 + 1, w - 1)
    y1 = np.minimum(y0 + 1, h - 1)
    fx = (sx - x0)[:, None]
    fy = (sy - y0)[:, None]
    return (img[y0, x0] * ((1 - fx) * (1 - fy)) +
            img[y0, x1] * (fx * (1 - fy)) +
            img[y1, x0] * ((1 - fx) * fy) +
            img[y1, x1] * (fx * fy))

def warp_design(design_bgra: np.ndarray,
                dst_points,
                canvas: np.ndarray,
                model: BlendModel = BlendModel.NORMAL,
                cfg=None):
    """
    Inverse-map every canvas pixel inside the destination bbox back into the
    design, sample bilinearly and blend against the canvas pixel underneath.

    Returns an off-screen straight-alpha BGRA layer with the canvas' size, or
    None when the geometry is degenerate (singular homography / empty bbox).
    The canvas itself is only read.
    """
    if design_bgra is None or design_bgra.size == 0:
        return None

    hc, wc = canvas.shape[:2]
    design_bgra = to_bgra(design_bgra)
    hd, wd = design_bgra.shape[:2]

    if is_collinear(dst_points):
        log.debug("collinear destination points; skipping design layer")
        return None

    H = homography_from_points(source_corners(wd, hd), dst_points)
    inv = invert_homography(H)
    if inv is None:
        log.debug("degenerate homography; skipping design layer")
        return None

    box = destination_box(dst_points, wc, hc)
    if box is None:
        log.debug("empty destination box; skipping design layer")
        return None
    x0, y0, x1, y1 = box

    xs, ys = np.meshgrid(np.arange(x0, x1, dtype=np.float64), np.arange(y0, y1, dtype=np.float64))
    u = inv[0, 0] * xs + inv[0, 1] * ys + inv[0, 2]
    v = inv[1, 0] * xs + inv[1, 1] * ys + inv[1, 2]
    w = inv[2, 0] * xs + inv[2, 1] * ys + inv[2, 2]

    ok = np.abs(w) >= W_EPS
    with np.errstate(divide="ignore", invalid="ignore"):
        sx = np.where(ok, u / np.where(ok, w, 1.0), -1.0)
        sy = np.where(ok, v / np.where(ok, w, 1.0), -1.0)
    ok &= (sx >= 0) & (sx < wd) & (sy >= 0) & (sy < hd)

    layer = np.zeros((hc, wc, 4), np.uint8)
    if not ok.any():
        return layer

    sample = _bilinear(design_bgra.astype(np.float64), sx[ok], sy[ok])

    region = canvas[y0:y1, x0:x1, :3]
    ctx = blend_context(model, canvas, box, cfg)
    if ctx.fold_detail is not None:
        ctx = ctx._replace(fold_detail=ctx.fold_detail[ok])
    color = blend(model, sample[:, :3], region[ok].astype(np.float64), ctx)

    out = np.empty((color.shape[0], 4), np.float64)
    out[:, :3] = color
    out[:, 3] = sample[:, 3]
    layer[y0:y1, x0:x1][ok] = np.clip(np.rint(out), 0, 255).astype(np.uint8)
    return layer
