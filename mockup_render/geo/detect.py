# mockup_render/geo/detect.py
from typing import Optional

import cv2
import numpy as np

from mockup_render.geo.placement import QuadPlacement


def _region_bbox(bgr: np.ndarray, x: int, y: int, threshold: int):
    """
    Bbox (x1, y1, x2, y2), inclusive, of the 4-connected region around (x, y)
    whose pixels differ from the seed colour by less than `threshold`
    (sum of absolute B, G, R differences).
    """
    seed = bgr[y, x, :3].astype(np.int32)
    diff = np.abs(bgr[..., :3].astype(np.int32) - seed).sum(axis=2)
    similar = (diff < threshold).astype(np.uint8)
    _, labels = cv2.connectedComponents(similar, connectivity=4)
    ys, xs = np.nonzero(labels == labels[y, x])
    return int(xs.min()), int(ys.min()), int(xs.max()), int(ys.max())


def detect_placement(image: np.ndarray, click_x: float, click_y: float,
                     threshold: int = 40, display_size=None) -> Optional[QuadPlacement]:
    """
    Auto-detect a placement from a click on a flat-coloured area of a mockup
    (e.g. a blank frame insert). Returns an axis-aligned percent quad or None.

    display_size: (w, h) the image was shown at when clicked; the click is
    scaled back to image pixels.
    """
    if image is None or image.size == 0:
        return None
    h, w = image.shape[:2]
    if display_size:
        click_x = click_x * w / float(display_size[0])
        click_y = click_y * h / float(display_size[1])
    px, py = int(np.floor(click_x)), int(np.floor(click_y))
    if not (0 <= px < w and 0 <= py < h):
        return None

    bgr = image if image.ndim == 3 else cv2.cvtColor(image, cv2.COLOR_GRAY2BGR)
    x1, y1, x2, y2 = _region_bbox(bgr, px, py, max(1, int(threshold)))
    sx, sy = 100.0 / w, 100.0 / h
    return QuadPlacement(
        tl=(x1 * sx, y1 * sy),
        tr=(x2 * sx, y1 * sy),
        br=(x2 * sx, y2 * sy),
        bl=(x1 * sx, y2 * sy),
    )
