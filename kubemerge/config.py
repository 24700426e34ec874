from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Tuple

import yaml

logger = logging.getLogger(__name__)

# (top-level list key, body key, KubeConfig attribute)
SECTIONS: Tuple[Tuple[str, str, str], ...] = (
    ("clusters", "cluster", "clusters"),
    ("users", "user", "auth_infos"),
    ("contexts", "context", "contexts"),
)

OUTPUT_MODE = 0o600


class DecodeError(ValueError):
    """Raised when a kubeconfig is not well-formed YAML or has the wrong shape."""


class EncodeError(ValueError):
    """Raised when a KubeConfig holds values the YAML codec cannot represent."""


@dataclass
class KubeConfig:
    api_version: str = "v1"
    kind: str = "Config"
    current_context: str = ""
    preferences: Dict[str, Any] = field(default_factory=dict)
    clusters: Dict[str, Dict[str, Any]] = field(default_factory=dict)
    auth_infos: Dict[str, Dict[str, Any]] = field(default_factory=dict)
    contexts: Dict[str, Dict[str, Any]] = field(default_factory=dict)
    extensions: List[Any] = field(default_factory=list)


def _expect(value: Any, kind: type, what: str) -> Any:
    if not isinstance(value, kind):
        raise DecodeError(f"{what} must be a {kind.__name__}, got {type(value).__name__}")
    return value


def _decode_entries(items: Any, list_key: str, body_key: str) -> Dict[str, Dict[str, Any]]:
    entries: Dict[str, Dict[str, Any]] = {}
    if items is None:
        return entries
    _expect(items, list, list_key)
    for index, item in enumerate(items):
        where = f"{list_key}[{index}]"
        _expect(item, dict, where)
        name = item.get("name")
        if not isinstance(name, str) or not name:
            raise DecodeError(f"{where} is missing a string 'name'")
        body = item.get(body_key)
        if body is None:
            body = {}
        entries[name] = _expect(body, dict, f"{where}.{body_key}")
    return entries


def decode_kubeconfig(text: str) -> KubeConfig:
    """Decode kubeconfig YAML text into a KubeConfig.

    An empty document yields an empty config. Anything that is not valid YAML,
    or whose top-level fields have the wrong types, raises DecodeError.
    """

    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise DecodeError(f"invalid YAML: {exc}") from exc
    cfg = KubeConfig()
    if data is None:
        return cfg
    _expect(data, dict, "kubeconfig document")

    kind = data.get("kind")
    if kind is not None:
        _expect(kind, str, "kind")
        if kind != "Config":
            raise DecodeError(f"unexpected kind {kind!r}, expected 'Config'")
        cfg.kind = kind
    api_version = data.get("apiVersion")
    if api_version is not None:
        cfg.api_version = _expect(api_version, str, "apiVersion")
    current = data.get("current-context")
    if current is not None:
        cfg.current_context = _expect(current, str, "current-context")
    preferences = data.get("preferences")
    if preferences is not None:
        cfg.preferences = _expect(preferences, dict, "preferences")
    extensions = data.get("extensions")
    if extensions is not None:
        cfg.extensions = _expect(extensions, list, "extensions")

    for list_key, body_key, attr in SECTIONS:
        setattr(cfg, attr, _decode_entries(data.get(list_key), list_key, body_key))
    return cfg


def load_kubeconfig(path) -> KubeConfig:
    path = Path(path)
    with path.open("rb") as handle:
        raw = handle.read()
    try:
        cfg = decode_kubeconfig(raw.decode("utf-8"))
    except UnicodeDecodeError as exc:
        raise DecodeError(f"{path}: not valid UTF-8: {exc}") from exc
    except DecodeError as exc:
        raise DecodeError(f"{path}: {exc}") from exc
    logger.debug(
        "Loaded %s: %d clusters, %d users, %d contexts",
        path,
        len(cfg.clusters),
        len(cfg.auth_infos),
        len(cfg.contexts),
    )
    return cfg


def encode_kubeconfig(cfg: KubeConfig) -> str:
    data: Dict[str, Any] = {
        "apiVersion": cfg.api_version,
        "kind": cfg.kind,
        "preferences": cfg.preferences,
    }
    for list_key, body_key, attr in SECTIONS:
        entries = getattr(cfg, attr)
        data[list_key] = [{"name": name, body_key: entries[name]} for name in sorted(entries)]
    data["current-context"] = cfg.current_context
    if cfg.extensions:
        data["extensions"] = cfg.extensions
    try:
        return yaml.safe_dump(data, sort_keys=False, default_flow_style=False)
    except yaml.YAMLError as exc:
        raise EncodeError(f"cannot encode kubeconfig: {exc}") from exc


def save_kubeconfig(cfg: KubeConfig, path) -> None:
    """Write ``cfg`` to ``path`` readable by the owner only.

    The document is encoded before the file is opened, so an EncodeError
    leaves any existing file untouched.
    """

    text = encode_kubeconfig(cfg)
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    fd = os.open(path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, OUTPUT_MODE)
    with os.fdopen(fd, "w", encoding="utf-8") as handle:
        # O_CREAT's mode is ignored for files that already exist.
        os.fchmod(handle.fileno(), OUTPUT_MODE)
        handle.write(text)
    logger.debug("Wrote %d bytes to %s", len(text.encode("utf-8")), path)
