from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field, replace
from typing import Any

from .constants import DEFAULT_CHUNK_SIZE, DEFAULT_CONFIG_PATH, DEFAULT_HOST, DEFAULT_TCP_PORT, DEFAULT_UDP_PORT
from .errors import ConfigError


@dataclass(frozen=True, slots=True)
class Category:
    name: str
    path: str
    extensions: tuple[str, ...]


DEFAULT_CATEGORIES = (
    Category("Images", "Multimedia/Images", (".jpg", ".jpeg", ".png")),
    Category("Audios", "Multimedia/Audios", (".mp3", ".wav", ".mid")),
    Category("Videos", "Multimedia/Videos", (".mp4", ".avi", ".flv")),
    Category("Texts", "Multimedia/Texts", (".txt",)),
)

# json key prefix -> category name
_CATEGORY_KEYS = {"image": "Images", "audio": "Audios", "video": "Videos", "text": "Texts"}


@dataclass(frozen=True, slots=True)
class ServerConfig:
    host: str = DEFAULT_HOST
    tcp_port: int = DEFAULT_TCP_PORT
    udp_port: int = DEFAULT_UDP_PORT
    chunk_size: int = DEFAULT_CHUNK_SIZE
    categories: tuple[Category, ...] = field(default=DEFAULT_CATEGORIES)

    def __post_init__(self) -> None:
        for name, port in (("tcpPort", self.tcp_port), ("udpPort", self.udp_port)):
            if not 0 <= port <= 65535:
                raise ConfigError(f"{name} out of range: {port}")
        if self.chunk_size <= 0:
            raise ConfigError(f"chunkSize must be positive, got {self.chunk_size}")
        seen: dict[str, str] = {}
        for cat in self.categories:
            for ext in cat.extensions:
                if ext in seen:
                    raise ConfigError(f"extension {ext} listed under both {seen[ext]} and {cat.name}")
                seen[ext] = cat.name


def _normalize_extensions(values: Any, key: str) -> tuple[str, ...]:
    if not isinstance(values, list) or not all(isinstance(v, str) for v in values):
        raise ConfigError(f"{key} must be a list of strings")
    return tuple(v.lower() if v.startswith(".") else "." + v.lower() for v in values)


def config_from_dict(raw: dict[str, Any]) -> ServerConfig:
    """Overlay the non-empty values of ``raw`` on top of the defaults."""
    cfg = ServerConfig()
    overrides: dict[str, Any] = {}
    if raw.get("ip"):
        if not isinstance(raw["ip"], str):
            raise ConfigError("ip must be a string")
        overrides["host"] = raw["ip"]
    for key, attr in (("tcpPort", "tcp_port"), ("udpPort", "udp_port"), ("chunkSize", "chunk_size")):
        value = raw.get(key)
        if value:
            if not isinstance(value, int) or isinstance(value, bool):
                raise ConfigError(f"{key} must be an integer")
            overrides[attr] = value

    categories = []
    for prefix, name in _CATEGORY_KEYS.items():
        cat = next(c for c in DEFAULT_CATEGORIES if c.name == name)
        path = raw.get(f"{prefix}Path")
        if path:
            cat = replace(cat, path=str(path))
        exts = raw.get(f"{prefix}Extensions")
        if exts is not None:
            cat = replace(cat, extensions=_normalize_extensions(exts, f"{prefix}Extensions"))
        categories.append(cat)
    overrides["categories"] = tuple(categories)

    return replace(cfg, **overrides)


def load_config(path: str = DEFAULT_CONFIG_PATH) -> ServerConfig:
    try:
        with open(path, "r", encoding="utf-8") as f:
            raw = json.load(f)
    except FileNotFoundError:
        logging.debug("no config file at %s; using defaults", path)
        return ServerConfig()
    except json.JSONDecodeError as e:
        raise ConfigError(f"invalid JSON in {path}: {e}") from e

    if not isinstance(raw, dict):
        raise ConfigError(f"{path}: top-level value must be an object")
    return config_from_dict(raw)
