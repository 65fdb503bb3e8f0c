import asyncio
import logging
from collections import OrderedDict
from typing import Tuple

import numpy as np

from mockup_render.render.image_io import ImageSource, decode_image, to_bgr, to_bgra

log = logging.getLogger(__name__)

ImagePair = Tuple[np.ndarray, np.ndarray]  # (mockup BGR, design BGRA)


class ImageCache:
    """
    Decoded (mockup, design) pairs keyed by (mockup_source_id, design_source_id).
    Bounded LRU: once max_entries is reached the least recently used pair is
    evicted. An entry is written once and never mutated afterwards.
    """

    def __init__(self, max_entries: int = 8):
        self.max_entries = max(1, int(max_entries))
        self._pairs: "OrderedDict[tuple, ImagePair]" = OrderedDict()

    def __len__(self):
        return len(self._pairs)

    def __contains__(self, key):
        return key in self._pairs

    def get(self, key):
        pair = self._pairs.get(key)
        if pair is not None:
            self._pairs.move_to_end(key)
        return pair

    def put(self, key, pair: ImagePair):
        if key in self._pairs:
            self._pairs.move_to_end(key)
            return self._pairs[key]
        self._pairs[key] = pair
        while len(self._pairs) > self.max_entries:
            old, _ = self._pairs.popitem(last=False)
            log.debug("evicted %s from image cache", old)
        return pair

    async def get_or_load(self, mockup_src: ImageSource, design_src: ImageSource) -> ImagePair:
        """
        Cached pair for the two sources, decoding both in worker threads on a miss.
        ImageDecodeError propagates to the caller; nothing is cached then.
        """
        key = (mockup_src.source_id, design_src.source_id)
        pair = self.get(key)
        if pair is not None:
            return pair
        mockup, design = await asyncio.gather(
            asyncio.to_thread(lambda: to_bgr(decode_image(mockup_src.data))),
            asyncio.to_thread(lambda: to_bgra(decode_image(design_src.data))),
        )
        return self.put(key, (mockup, design))

    def clear(self):
        self._pairs.clear()
