"""
Render one mockup from a YAML job file.

    python tools/render_mockup.py jobs/poster.yaml

Job keys:
    mockup: path/to/mockup.jpg
    design: path/to/design.png
    product_type: wall-art | poster | clothing | accessories
    placement: {tl: {x, y}, tr: ..., br: ..., bl: ...}  or  {x, y, width, height}
    transform: {scale, offsetX, offsetY, fillMode}     (optional)
    clip: true|false                                   (optional, per product type)
    output: out/mockup.jpg
    outline: false                                     (draw the placement polygon)
"""
import asyncio
import os
import sys

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

from mockup_render.geo.homography import draw_quad
from mockup_render.geo.placement import placement_from_dict, placement_polygon, transform_from_dict
from mockup_render.pipeline import render_full_composite
from mockup_render.render.blend import clips_to_placement
from mockup_render.render.image_io import ImageDecodeError, ImageSource, encode_image, format_for_filename
from mockup_render.utils.config import load_render_config, load_yaml


def _source(path):
    with open(path, "rb") as f:
        return ImageSource(os.path.abspath(path), f.read())


def main(job_path):
    job = load_yaml(job_path)
    cfg = load_render_config(job.get("config"))

    product_type = job.get("product_type", "wall-art")
    placement = placement_from_dict(job["placement"])
    transform = transform_from_dict(job.get("transform"))
    clip = bool(job.get("clip", clips_to_placement(product_type)))
    out_path = job.get("output", "mockup.png")

    try:
        canvas = asyncio.run(render_full_composite(
            _source(job["mockup"]), _source(job["design"]), placement, transform,
            clip, product_type, cfg=cfg,
        ))
    except ImageDecodeError as e:
        print(f"[WARN] Failed to render mockup: {e}")
        return 1

    if job.get("outline"):
        h, w = canvas.shape[:2]
        draw_quad(canvas, placement_polygon(placement, w, h), (30, 255, 30), 2)

    data = encode_image(canvas, format_for_filename(out_path),
                        jpeg_quality=cfg.get("export", {}).get("jpeg_quality", 85))
    os.makedirs(os.path.dirname(os.path.abspath(out_path)), exist_ok=True)
    with open(out_path, "wb") as f:
        f.write(data)
    print(f"[INFO] {canvas.shape[1]}x{canvas.shape[0]} -> {out_path}")
    return 0


if __name__ == "__main__":
    if len(sys.argv) != 2:
        print(__doc__)
        sys.exit(2)
    sys.exit(main(sys.argv[1]))
