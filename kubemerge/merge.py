from __future__ import annotations

import copy
from typing import Any, Dict

from kubemerge.config import SECTIONS, KubeConfig


def _union_into(target: Dict[str, Any], source: Dict[str, Any]) -> None:
    for name, entry in source.items():
        target[name] = copy.deepcopy(entry)


def merge_kubeconfigs(first: KubeConfig, second: KubeConfig) -> KubeConfig:
    """Union clusters, users and contexts by name; ``second`` wins on collision.

    Same-named entries are replaced whole, never merged field by field. The
    result's current-context is left at its default.
    """

    merged = KubeConfig()
    for cfg in (first, second):
        for _, _, attr in SECTIONS:
            _union_into(getattr(merged, attr), getattr(cfg, attr))
    return merged


def select_current_context(first: KubeConfig, second: KubeConfig) -> str:
    return second.current_context or first.current_context
