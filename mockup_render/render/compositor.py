import cv2
import numpy as np

_MASK_SHIFT = 4  # sub-pixel bits for polygon rasterization


def placement_mask(polygon, shape):
    """Anti-aliased uint8 mask (0..255) of a polygon; any simple or non-convex quad."""
    h, w = shape[:2]
    mask = np.zeros((h, w), np.uint8)
    q = np.asarray(polygon, np.float64).reshape(-1, 2)
    if not np.isfinite(q).all():
        return mask
    pts = np.round(q * (1 << _MASK_SHIFT)).astype(np.int32).reshape(-1, 1, 2)
    cv2.fillPoly(mask, [pts], 255, lineType=cv2.LINE_AA, shift=_MASK_SHIFT)
    return mask

def _coverage(alpha, mask):
    a = alpha.astype(np.float32) / 255.0
    if mask is not None:
        a = a * (mask.astype(np.float32) / 255.0)
    return a[..., None]

def alpha_over(canvas, layer, mask=None):
    """
    Normal (source-over) draw of a straight-alpha BGRA layer onto an opaque
    BGR canvas, optionally clipped by a 0..255 mask.
    """
    a = _coverage(layer[..., 3], mask)
    out = layer[..., :3].astype(np.float32) * a + canvas.astype(np.float32) * (1.0 - a)
    return np.clip(np.rint(out), 0, 255).astype(np.uint8)

def _multiply(src, dst):
    return src * dst / 255.0

def _screen(src, dst):
    return 255.0 - (255.0 - src) * (255.0 - dst) / 255.0

_PREVIEW_OPS = {"multiply": _multiply, "screen": _screen}

def preview_blend(canvas, overlay, mode="normal", mask=None):
    """
    Canvas-native composite of a BGRA overlay (same size as canvas, alpha 0
    outside the design): the blend op result is drawn source-over.
    Unknown modes draw normally.
    """
    op = _PREVIEW_OPS.get(mode)
    src = overlay[..., :3].astype(np.float32)
    dst = canvas.astype(np.float32)
    mixed = op(src, dst) if op else src
    a = _coverage(overlay[..., 3], mask)
    out = mixed * a + dst * (1.0 - a)
    return np.clip(np.rint(out), 0, 255).astype(np.uint8)
