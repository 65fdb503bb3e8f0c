"""
Interactive preview session.

Two render tiers share one canvas:
  - fast previews, one per display frame, of the latest transform only
    (FrameCoalescer, last-write-wins);
  - full-fidelity renders, debounced after non-drag edits and fired right
    away when a drag ends (Debouncer).
The session owns its decoded-image cache; close() tears everything down.
"""
import logging

import numpy as np

from mockup_render.geo.placement import (
    ProductType, Transform, as_placement, as_transform, compute_design_bounds,
)
from mockup_render.pipeline import render_fast_preview, render_full_composite, resolve_images, working_size
from mockup_render.render.blend import clips_to_placement
from mockup_render.render.image_io import encode_image
from mockup_render.session.image_cache import ImageCache
from mockup_render.utils.config import load_render_config
from mockup_render.utils.scheduling import Debouncer, FrameCoalescer

log = logging.getLogger(__name__)


class PreviewSession:
    def __init__(self, mockup, design, placement, product_type=ProductType.WALL_ART,
                 transform=None, cfg=None, clock=None):
        """
        mockup / design: ImageSource byte sources (decoded lazily via the
        session cache) or already decoded arrays.
        """
        self.cfg = cfg or load_render_config()
        self.mockup = mockup
        self.design = design
        self.placement = as_placement(placement)
        self.product_type = ProductType.parse(product_type)
        self.clip = clips_to_placement(self.product_type)
        self.transform = as_transform(transform)

        self.cache = ImageCache(int(self.cfg.get("cache_entries", 8)))
        self._frames = FrameCoalescer()
        debounce_s = float(self.cfg.get("debounce_ms", 30)) / 1000.0
        self._full = Debouncer(debounce_s, clock) if clock else Debouncer(debounce_s)

        self.dragging = False
        self.canvas = None
        self._images = None
        self.closed = False

    # ------------------------- images -------------------------
    async def load(self):
        """Decode (or fetch from cache) the mockup/design pair."""
        self._images = tuple(await resolve_images(self.mockup, self.design, self.cache))
        return self._images

    @property
    def loaded(self):
        return self._images is not None

    # ------------------------- transform updates -------------------------
    def set_transform(self, transform):
        self.transform = as_transform(transform)
        self._frames.submit(self.transform)
        if not self.dragging:
            self._full.schedule(self.transform)

    def reset_transform(self):
        self.set_transform(Transform())

    def begin_drag(self):
        self.dragging = True
        self._full.cancel()

    def end_drag(self):
        self.dragging = False
        self._full.schedule(self.transform, delay=0)

    # ------------------------- rendering -------------------------
    def _ensure_canvas(self):
        if self.canvas is None:
            mockup = self._images[0]
            mh, mw = mockup.shape[:2]
            cw, ch = working_size(mw, mh, float(self.cfg.get("min_resolution", 2400)))
            self.canvas = np.zeros((ch, cw, 3), np.uint8)
        return self.canvas

    def on_frame(self):
        """Display-refresh tick: fast preview of the freshest transform, if any."""
        transform = self._frames.take()
        if transform is None or not self.loaded:
            return None
        mockup, design = self._images
        return render_fast_preview(self._ensure_canvas(), mockup, design, self.placement,
                                   transform, self.clip, self.product_type, self.cfg)

    async def render(self, transform=None):
        """Full-fidelity render now (cancels any pending debounced one)."""
        self._full.cancel()
        if not self.loaded:
            await self.load()
        mockup, design = self._images
        self.canvas = await render_full_composite(
            mockup, design, self.placement, transform or self.transform,
            self.clip, self.product_type, cfg=self.cfg,
        )
        return self.canvas

    async def tick(self):
        """Run the debounced full render if it is due; None otherwise."""
        transform = self._full.pop_due()
        if transform is None:
            return None
        log.debug("debounced full render: %s", transform)
        return await self.render(transform)

    # ------------------------- queries / export -------------------------
    def design_bounds(self):
        if not self.loaded:
            raise RuntimeError("images not loaded yet")
        mockup, design = self._images
        mh, mw = mockup.shape[:2]
        hd, wd = design.shape[:2]
        return compute_design_bounds((mw, mh), (wd, hd), self.placement, self.transform)

    def export(self, fmt="jpeg"):
        if self.canvas is None:
            raise RuntimeError("nothing rendered yet")
        quality = int(self.cfg.get("export", {}).get("jpeg_quality", 85))
        return encode_image(self.canvas, fmt, jpeg_quality=quality)

    # ------------------------- teardown -------------------------
    def close(self):
        self._full.cancel()
        self._frames.take()
        self.cache.clear()
        self._images = None
        self.closed = True

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.close()
        return False
