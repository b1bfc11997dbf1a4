from typing import Any, Dict
from importlib import resources
import os
import yaml

ENV_PREFIX = "IDEATE__"


def deep_merge(a: Dict[str, Any], b: Dict[str, Any]) -> Dict[str, Any]:
    out = dict(a)
    for k, v in (b or {}).items():
        if isinstance(out.get(k), dict) and isinstance(v, dict):
            out[k] = deep_merge(out[k], v)
        else:
            out[k] = v
    return out


def _yaml_load_text(path) -> Dict[str, Any]:
    with path.open("r", encoding="utf-8") as f:
        data = yaml.safe_load(f)
    return data or {}


def apply_env_overrides(cfg: Dict[str, Any], environ=None, prefix: str = ENV_PREFIX) -> Dict[str, Any]:
    """IDEATE__A__B=val -> cfg['a']['b']=parsed(val)"""
    environ = os.environ if environ is None else environ
    for key, val in environ.items():
        if not key.startswith(prefix):
            continue
        parts = key[len(prefix) :].split("__")
        parts = [p.strip().lower() for p in parts if p.strip()]
        if not parts:
            continue
        sub = cfg
        for p in parts[:-1]:
            nxt = sub.get(p)
            if not isinstance(nxt, dict):
                nxt = {}
                sub[p] = nxt
            sub = nxt
        # parse value as YAML for numbers/bools/lists/dicts support
        try:
            parsed = yaml.safe_load(val)
        except yaml.YAMLError:
            parsed = val
        sub[parts[-1]] = parsed
    return cfg


def load_settings() -> Dict[str, Any]:
    """
    Load default.yml, overlay dev.yml if present, then apply env overrides.
    """
    pkg_root = resources.files("ideate_agent.config")
    cfg = _yaml_load_text(pkg_root / "default.yml")

    ignore_dev_config = os.environ.get("IDEATE_IGNORE_DEV_CONFIG", "false").lower() in (
        "true",
        "1",
        "yes",
    )

    dev_file = pkg_root / "dev.yml"
    if not ignore_dev_config and dev_file.is_file():
        dev_cfg = _yaml_load_text(dev_file)
        # `_replaces_default: true` swaps the base instead of merging over it
        if dev_cfg.pop("_replaces_default", False):
            cfg = dev_cfg
        else:
            cfg = deep_merge(cfg, dev_cfg)

    return apply_env_overrides(cfg)
