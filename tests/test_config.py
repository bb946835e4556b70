from __future__ import annotations

import json

import pytest

from mediaxfer.config import DEFAULT_CATEGORIES, Category, ServerConfig, load_config
from mediaxfer.errors import ConfigError


def write_config(tmp_path, raw) -> str:
    path = tmp_path / "config.json"
    path.write_text(raw if isinstance(raw, str) else json.dumps(raw))
    return str(path)


def test_missing_file_uses_defaults(tmp_path):
    cfg = load_config(str(tmp_path / "nope.json"))
    assert cfg == ServerConfig()
    assert cfg.host == "localhost"
    assert (cfg.tcp_port, cfg.udp_port, cfg.chunk_size) == (8080, 8000, 1024)
    assert cfg.categories == DEFAULT_CATEGORIES


def test_overrides(tmp_path):
    cfg = load_config(
        write_config(
            tmp_path,
            {
                "ip": "0.0.0.0",
                "tcpPort": 9090,
                "udpPort": 9000,
                "chunkSize": 8192,
                "textPath": "Docs/Texts",
                "textExtensions": [".txt", "MD"],
            },
        )
    )
    assert cfg.host == "0.0.0.0"
    assert (cfg.tcp_port, cfg.udp_port, cfg.chunk_size) == (9090, 9000, 8192)
    texts = next(c for c in cfg.categories if c.name == "Texts")
    assert texts == Category("Texts", "Docs/Texts", (".txt", ".md"))
    images = next(c for c in cfg.categories if c.name == "Images")
    assert images == DEFAULT_CATEGORIES[0]


def test_empty_values_keep_defaults(tmp_path):
    cfg = load_config(write_config(tmp_path, {"ip": "", "tcpPort": 0, "imagePath": ""}))
    assert cfg == ServerConfig()


def test_invalid_json(tmp_path):
    with pytest.raises(ConfigError):
        load_config(write_config(tmp_path, "{not json"))


def test_top_level_must_be_object(tmp_path):
    with pytest.raises(ConfigError):
        load_config(write_config(tmp_path, "[1, 2]"))


def test_duplicate_extension_is_rejected(tmp_path):
    with pytest.raises(ConfigError):
        load_config(write_config(tmp_path, {"audioExtensions": [".png"]}))


def test_bad_port(tmp_path):
    with pytest.raises(ConfigError):
        load_config(write_config(tmp_path, {"tcpPort": 70000}))


def test_bad_chunk_size(tmp_path):
    with pytest.raises(ConfigError):
        load_config(write_config(tmp_path, {"chunkSize": -5}))


def test_extensions_must_be_strings(tmp_path):
    with pytest.raises(ConfigError):
        load_config(write_config(tmp_path, {"videoExtensions": "mp4"}))


def test_ip_must_be_string(tmp_path):
    with pytest.raises(ConfigError):
        load_config(write_config(tmp_path, {"ip": 5}))
