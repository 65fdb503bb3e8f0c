"""
Shared test fixtures and configuration for mockup_render tests.
"""
import cv2
import numpy as np
import pytest

from mockup_render.geo.placement import QuadPlacement, RectPlacement
from mockup_render.utils.config import DEFAULT_RENDER_CFG


class FakeClock:
    """Manually advanced monotonic clock for scheduler tests."""

    def __init__(self, start: float = 100.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def render_cfg() -> dict:
    """Default render settings with a small working resolution for fast tests."""
    cfg = {k: (dict(v) if isinstance(v, dict) else v) for k, v in DEFAULT_RENDER_CFG.items()}
    cfg["min_resolution"] = 100
    return cfg


@pytest.fixture
def white_mockup() -> np.ndarray:
    """100x100 white BGR mockup."""
    return np.full((100, 100, 3), 255, np.uint8)


@pytest.fixture
def red_design() -> np.ndarray:
    """40x20 opaque red BGRA design (2:1)."""
    img = np.zeros((20, 40, 4), np.uint8)
    img[..., 2] = 255
    img[..., 3] = 255
    return img


@pytest.fixture
def gradient_design() -> np.ndarray:
    """12x8 opaque BGRA design with distinct pixel values."""
    rng = np.random.default_rng(7)
    img = rng.integers(0, 256, size=(8, 12, 4), dtype=np.uint8)
    img[..., 3] = 255
    return img


@pytest.fixture
def square_quad() -> QuadPlacement:
    """Axis-aligned quad covering 20%..80% of the mockup."""
    return QuadPlacement(tl=(20, 20), tr=(80, 20), br=(80, 80), bl=(20, 80))


@pytest.fixture
def center_rect() -> RectPlacement:
    return RectPlacement(x=25, y=25, width=50, height=50)


@pytest.fixture
def png_bytes():
    """Encode a BGR(A) array as PNG bytes."""
    def _encode(img: np.ndarray) -> bytes:
        ok, buf = cv2.imencode(".png", img)
        assert ok
        return buf.tobytes()
    return _encode
