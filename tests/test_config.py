import json

import pytest

from guff.config import Provider, RunConfig, default_config, load_config, parse_model
from guff.errors import InputError
from guff.layout import FrameRequest


def test_load_config_writes_defaults_when_missing(tmp_path):
    path = tmp_path / "nested" / "config.json"

    config = load_config(path)

    assert config == default_config()
    assert json.loads(path.read_text()) == default_config()


def test_load_config_repairs_corrupt_file(tmp_path):
    path = tmp_path / "config.json"
    path.write_text("{not json")

    config = load_config(path)

    assert config["defaults"]["frames"] == 32
    assert json.loads(path.read_text()) == default_config()


def test_load_config_replaces_non_mapping(tmp_path):
    path = tmp_path / "config.json"
    path.write_text("[1, 2]")

    assert load_config(path) == default_config()


def test_load_config_merges_user_values(tmp_path):
    path = tmp_path / "config.json"
    path.write_text(json.dumps({"defaults": {"frames": 8}, "encoder": {"binary": "/opt/gifsicle"}}))

    config = load_config(path)

    assert config["defaults"]["frames"] == 8
    assert config["defaults"]["delay_ms"] == 100
    assert config["encoder"] == {"binary": "/opt/gifsicle", "optimize": 3}


def test_load_config_keeps_defaults_for_malformed_sections(tmp_path):
    path = tmp_path / "config.json"
    path.write_text(json.dumps({"defaults": 5, "slicing": ["x"], "script": {"timeout_seconds": 10}}))

    config = load_config(path)

    assert config["defaults"] == default_config()["defaults"]
    assert config["slicing"] == default_config()["slicing"]
    assert config["script"]["timeout_seconds"] == 10


def test_default_config_is_a_fresh_copy():
    first = default_config()
    first["defaults"]["frames"] = 1

    assert default_config()["defaults"]["frames"] == 32


def test_run_config_from_settings_reads_tunables():
    settings = default_config()
    settings["slicing"]["trim_threshold"] = 35
    settings["providers"]["request_timeout_seconds"] = 60

    config = RunConfig.from_settings(
        settings,
        prompt="p",
        request=FrameRequest(4, 64, 64, 1.0),
        provider=Provider.GEMINI,
        model="m",
    )

    assert config.trim_threshold == 35
    assert config.request_timeout == 60.0
    assert config.inset_ratio == 0.03
    assert config.encoder_binary == "gifsicle"


def test_run_config_explicit_values_win():
    config = RunConfig.from_settings(
        default_config(),
        prompt="p",
        request=FrameRequest(4, 64, 64, 1.0),
        provider=Provider.GEMINI,
        model="m",
        inset_ratio=0.1,
    )

    assert config.inset_ratio == 0.1


@pytest.mark.parametrize(
    "value, expected",
    [
        ("claude/claude-sonnet-4-6", (Provider.CLAUDE, "claude-sonnet-4-6")),
        ("gemini/img", (Provider.GEMINI, "img")),
        ("img-model", (Provider.GEMINI, "img-model")),
        ("gemini/models/img", (Provider.GEMINI, "models/img")),
    ],
)
def test_parse_model(value, expected):
    assert parse_model(value) == expected


def test_parse_model_rejects_unknown_provider():
    with pytest.raises(InputError, match='unsupported provider "openai". Supported: claude, gemini'):
        parse_model("openai/gpt")


def test_parse_model_requires_model_name():
    with pytest.raises(InputError):
        parse_model("claude/")


@pytest.mark.parametrize(
    "section, key, value",
    [
        ("slicing", "inset_ratio", "three percent"),
        ("slicing", "trim_threshold", None),
        ("providers", "max_tokens", "lots"),
    ],
)
def test_run_config_rejects_unconvertible_settings(section, key, value):
    settings = default_config()
    settings[section][key] = value

    with pytest.raises(InputError, match=f"invalid setting {section}.{key}"):
        RunConfig.from_settings(
            settings,
            prompt="p",
            request=FrameRequest(4, 64, 64, 1.0),
            provider=Provider.GEMINI,
            model="m",
        )
