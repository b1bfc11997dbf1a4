import pytest

from ideate_agent.core.config import apply_env_overrides, deep_merge, load_settings


def test_deep_merge_overlays_nested_keys():
    base = {"limits": {"max_tool_iterations": 5, "history_limit": 20}, "system": {"prompt": "a"}}
    merged = deep_merge(base, {"limits": {"history_limit": 4}})
    assert merged == {"limits": {"max_tool_iterations": 5, "history_limit": 4}, "system": {"prompt": "a"}}
    assert base["limits"]["history_limit"] == 20


def test_env_overrides_are_yaml_parsed():
    cfg = {"limits": {"max_tool_iterations": 5}}
    environ = {
        "IDEATE__LIMITS__MAX_TOOL_ITERATIONS": "2",
        "IDEATE__LIMITS__TOOL_TIMEOUT_SEC": "1.5",
        "IDEATE__BLOCKS__ENABLED": "[open_questions]",
        "UNRELATED": "x",
    }
    out = apply_env_overrides(cfg, environ=environ)
    assert out["limits"] == {"max_tool_iterations": 2, "tool_timeout_sec": 1.5}
    assert out["blocks"] == {"enabled": ["open_questions"]}
    assert "unrelated" not in out


def test_defaults_load(monkeypatch):
    monkeypatch.setenv("IDEATE_IGNORE_DEV_CONFIG", "true")
    cfg = load_settings()
    assert cfg["limits"]["max_tool_iterations"] == 5
    assert cfg["providers"]["generation"]["impl"].endswith("EchoProvider")
    assert "open_questions" in cfg["blocks"]["enabled"]


def test_env_override_applies_on_load(monkeypatch):
    monkeypatch.setenv("IDEATE_IGNORE_DEV_CONFIG", "true")
    monkeypatch.setenv("IDEATE__SYSTEM__ACTING_IDENTITY", "carol")
    assert load_settings()["system"]["acting_identity"] == "carol"
