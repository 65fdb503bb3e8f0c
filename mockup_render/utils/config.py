# mockup_render/utils/config.py
import os
import yaml

ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), "..", ".."))
CFG_RENDER = os.path.join(ROOT, "config", "render.yaml")

DEFAULT_RENDER_CFG = {
    "min_resolution": 2400,
    "shadow_ramp": 4.0,
    "fold_strength": 1.8,
    "fold_blur_ratio": 0.015,
    "fabric_low": 0.2,
    "fabric_span": 0.5,
    "preview_interp": "linear",
    "debounce_ms": 30,
    "cache_entries": 8,
    "export": {"jpeg_quality": 85},
}


def load_yaml(path):
    with open(path, "r", encoding="utf-8") as f:
        return yaml.safe_load(f) or {}


def load_render_config(path=None) -> dict:
    """
    Render settings: file values merged over DEFAULT_RENDER_CFG.
    Path lookup: explicit arg > $MOCKUP_RENDER_CONFIG > config/render.yaml.
    A missing file just yields the defaults.
    """
    path = path or os.getenv("MOCKUP_RENDER_CONFIG") or CFG_RENDER
    cfg = {k: (dict(v) if isinstance(v, dict) else v) for k, v in DEFAULT_RENDER_CFG.items()}
    if not os.path.exists(path):
        return cfg
    for k, v in load_yaml(path).items():
        if isinstance(v, dict) and isinstance(cfg.get(k), dict):
            cfg[k].update(v)
        else:
            cfg[k] = v
    return cfg
