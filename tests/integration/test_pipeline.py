"""
Integration tests for the full-render and fast-preview entry points.
"""
import asyncio

import numpy as np
import pytest

from mockup_render.geo.placement import QuadPlacement, RectPlacement, Transform
from mockup_render.pipeline import composite_design, render_fast_preview, render_full_composite, working_size
from mockup_render.render.image_io import ImageDecodeError, ImageSource
from mockup_render.session.image_cache import ImageCache


@pytest.fixture
def poster_design():
    """300x150 opaque red BGRA design."""
    img = np.zeros((150, 300, 4), np.uint8)
    img[..., 2] = 255
    img[..., 3] = 255
    return img


@pytest.mark.integration
class TestRenderFullComposite:
    """End-to-end full renders."""

    def test_poster_on_white_wall(self, square_quad, poster_design, render_cfg):
        """Test a 2:1 poster fitted into a square frame on a 1000x1000 white mockup."""
        mockup = np.full((1000, 1000, 3), 255, np.uint8)

        out = asyncio.run(render_full_composite(
            mockup, poster_design, square_quad, Transform(), True, "poster", cfg=render_cfg,
        ))

        assert out.shape == (1000, 1000, 3)
        assert out[500, 500].tolist() == [0, 0, 255]
        assert out[300, 500].tolist() == [255, 255, 255]
        assert out[100, 100].tolist() == [255, 255, 255]

    def test_small_mockup_is_upscaled(self, square_quad, red_design, render_cfg):
        """Test that the long side is raised to min_resolution."""
        render_cfg["min_resolution"] = 400
        mockup = np.full((50, 100, 3), 255, np.uint8)

        out = asyncio.run(render_full_composite(mockup, red_design, square_quad, cfg=render_cfg))

        assert out.shape == (200, 400, 3)

    def test_mockup_array_is_not_modified(self, square_quad, red_design, white_mockup, render_cfg):
        """Test that the caller's mockup stays untouched."""
        asyncio.run(render_full_composite(white_mockup, red_design, square_quad, cfg=render_cfg))

        assert (white_mockup == 255).all()

    def test_decode_error_propagates(self, square_quad, render_cfg, png_bytes):
        """Test that undecodable bytes surface as ImageDecodeError."""
        mockup = ImageSource("m", png_bytes(np.full((10, 10, 3), 255, np.uint8)))
        design = ImageSource("d", b"\x00\x01 not a png")

        with pytest.raises(ImageDecodeError):
            asyncio.run(render_full_composite(mockup, design, square_quad, cfg=render_cfg))

    def test_sources_go_through_cache(self, square_quad, red_design, white_mockup, render_cfg, png_bytes):
        """Test that byte sources are decoded once into the given cache."""
        cache = ImageCache()
        mockup = ImageSource("m", png_bytes(white_mockup))
        design = ImageSource("d", png_bytes(red_design))

        out = asyncio.run(render_full_composite(mockup, design, square_quad, cache=cache, cfg=render_cfg))

        assert ("m", "d") in cache
        assert out[50, 50].tolist() == [0, 0, 255]

    def test_degenerate_placement_leaves_mockup(self, red_design, white_mockup, render_cfg):
        """Test that a collapsed placement composites nothing and does not raise."""
        point = QuadPlacement(tl=(50, 50), tr=(50, 50), br=(50, 50), bl=(50, 50))

        out = asyncio.run(render_full_composite(white_mockup, red_design, point, cfg=render_cfg))

        np.testing.assert_array_equal(out, white_mockup)

    def test_unclipped_fabric_render(self, red_design, white_mockup, render_cfg):
        """Test that clothing renders blend onto white fabric without clipping."""
        quad = QuadPlacement(tl=(10, 10), tr=(90, 10), br=(90, 90), bl=(10, 90))

        out = asyncio.run(render_full_composite(
            white_mockup, red_design, quad, Transform(scale=1.1), False, "clothing", cfg=render_cfg,
        ))

        r = out[50, 50].astype(int)
        assert r[2] >= 250 and r[0] <= 5 and r[1] <= 5


@pytest.mark.integration
class TestCompositeDesign:
    """Tests for the synchronous compositing core."""

    def test_dict_placement_and_transform(self, red_design, white_mockup):
        """Test that stored dict placements / transforms are accepted."""
        placement = {"x": 25, "y": 25, "width": 50, "height": 50}

        out = composite_design(white_mockup.copy(), red_design, placement,
                               {"scale": 1.0, "fillMode": "fill"}, True, "wall-art")

        assert out[30, 30].tolist() == [0, 0, 255]
        assert out[10, 10].tolist() == [255, 255, 255]

    @pytest.mark.parametrize("size,expected", [
        ((100, 50), (2400, 1200)),
        ((3000, 2000), (3000, 2000)),
        ((1000, 1500), (1600, 2400)),
    ])
    def test_working_size(self, size, expected):
        """Test the minimum working resolution policy."""
        assert working_size(*size) == expected


@pytest.mark.integration
class TestRenderFastPreview:
    """Tests for the coarse drag preview."""

    def test_draws_in_place(self, white_mockup, red_design, square_quad):
        """Test that the preview paints the given canvas and returns it."""
        canvas = np.zeros((100, 100, 3), np.uint8)

        out = render_fast_preview(canvas, white_mockup, red_design, square_quad, product_type="poster")

        assert out is canvas
        assert canvas[50, 50].tolist() == [0, 0, 255]
        assert canvas[5, 5].tolist() == [255, 255, 255]

    def test_canvas_size_is_kept(self, white_mockup, red_design, square_quad):
        """Test that the mockup is resized to the canvas, not the other way round."""
        canvas = np.zeros((60, 80, 3), np.uint8)

        render_fast_preview(canvas, white_mockup, red_design, square_quad)

        assert canvas.shape == (60, 80, 3)
        assert canvas[2, 2].tolist() == [255, 255, 255]

    def test_stretch_maps_pixel_centres(self):
        """Test that a two-colour design stretches symmetrically and fills its box edge to edge."""
        mockup = np.full((80, 80, 3), 255, np.uint8)
        design = np.zeros((2, 2, 4), np.uint8)
        design[:, 0] = (255, 0, 0, 255)
        design[:, 1] = (0, 0, 255, 255)
        canvas = np.zeros((80, 80, 3), np.uint8)
        zone = RectPlacement(x=10, y=10, width=80, height=80)

        render_fast_preview(canvas, mockup, design, zone, Transform(fill_mode="fill"),
                            clip_to_placement=False)

        row = canvas[40].astype(int)
        assert row[8].tolist() == [255, 0, 0]
        assert row[71].tolist() == [0, 0, 255]
        assert row[7].tolist() == [255, 255, 255]
        assert row[72].tolist() == [255, 255, 255]
        for k in range(64):
            # fixed-point interpolation weights are 1/32 steps
            assert abs(row[8 + k, 0] - row[71 - k, 2]) <= 9
        assert (canvas[8:72, 8:72, 1] == 0).all()

    def test_offscreen_design_draws_background_only(self, white_mockup, red_design, square_quad):
        """Test that a design pushed off the canvas leaves just the mockup."""
        canvas = np.zeros((100, 100, 3), np.uint8)

        render_fast_preview(canvas, white_mockup, red_design, square_quad,
                            Transform(offset_x=500), clip_to_placement=False)

        assert (canvas == 255).all()
