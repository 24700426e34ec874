import stat
from pathlib import Path

import pytest

from kubemerge.config import (
    DecodeError,
    EncodeError,
    KubeConfig,
    decode_kubeconfig,
    encode_kubeconfig,
    load_kubeconfig,
    save_kubeconfig,
)

KUBECONFIG = """apiVersion: v1
clusters:
- cluster:
    server: https://example.com
    certificate-authority-data: Y2VydA==
  name: test-cluster
contexts:
- context:
    cluster: test-cluster
    user: test-user
    namespace: default
  name: test-context
current-context: test-context
kind: Config
users:
- name: test-user
  user:
    token: test-token
"""


def test_load_kubeconfig(tmp_path: Path):
    path = tmp_path / "config"
    path.write_text(KUBECONFIG, encoding="utf-8")
    cfg = load_kubeconfig(path)
    assert cfg.contexts["test-context"] == {"cluster": "test-cluster", "user": "test-user", "namespace": "default"}
    assert cfg.clusters["test-cluster"]["server"] == "https://example.com"
    assert cfg.auth_infos["test-user"] == {"token": "test-token"}
    assert cfg.current_context == "test-context"


def test_load_empty_file_gives_empty_config(tmp_path: Path):
    path = tmp_path / "empty"
    path.write_text("", encoding="utf-8")
    assert load_kubeconfig(path) == KubeConfig()


def test_load_missing_file_raises_oserror(tmp_path: Path):
    with pytest.raises(OSError):
        load_kubeconfig(tmp_path / "missing")


def test_load_non_utf8_raises_decode_error(tmp_path: Path):
    path = tmp_path / "binary"
    path.write_bytes(b"apiVersion: v1\nkind: \xff\xfeConfig\n")
    with pytest.raises(DecodeError, match="not valid UTF-8"):
        load_kubeconfig(path)


def test_load_truncated_yaml_raises_decode_error(tmp_path: Path):
    path = tmp_path / "broken"
    path.write_text(KUBECONFIG[:40] + "\n  - [unclosed", encoding="utf-8")
    with pytest.raises(DecodeError):
        load_kubeconfig(path)


@pytest.mark.parametrize(
    "text",
    [
        "- just\n- a list\n",
        "kind: Pod\n",
        "clusters: {a: b}\n",
        "users:\n- user: {token: x}\n",
        "contexts:\n- name: c\n  context: not-a-mapping\n",
        "current-context: [a]\n",
    ],
)
def test_decode_rejects_wrong_shapes(text: str):
    with pytest.raises(DecodeError):
        decode_kubeconfig(text)


def test_decode_missing_body_is_empty_entry():
    cfg = decode_kubeconfig("users:\n- name: anonymous\n")
    assert cfg.auth_infos == {"anonymous": {}}


def test_save_round_trip(tmp_path: Path):
    cfg = KubeConfig(
        current_context="test-context",
        clusters={"test-cluster": {"server": "https://example.com"}},
        auth_infos={"test-user": {"exec": {"command": "aws", "args": ["eks", "get-token"]}}},
        contexts={"test-context": {"cluster": "test-cluster", "user": "test-user"}},
    )
    path = tmp_path / "out" / "config"
    save_kubeconfig(cfg, path)
    assert load_kubeconfig(path) == cfg


def test_save_restricts_mode(tmp_path: Path):
    path = tmp_path / "config"
    path.write_text("old", encoding="utf-8")
    path.chmod(0o644)
    save_kubeconfig(KubeConfig(), path)
    assert stat.S_IMODE(path.stat().st_mode) == 0o600


def test_encode_uses_kubeconfig_layout():
    cfg = KubeConfig(contexts={"b": {"cluster": "c"}, "a": {"cluster": "c"}})
    text = encode_kubeconfig(cfg)
    assert text.startswith("apiVersion: v1\nkind: Config\n")
    assert text.index("name: a") < text.index("name: b")
    assert "extensions" not in text


def test_encode_failure_leaves_file_untouched(tmp_path: Path):
    path = tmp_path / "config"
    path.write_text(KUBECONFIG, encoding="utf-8")
    cfg = KubeConfig(preferences={"bad": object()})
    with pytest.raises(EncodeError):
        save_kubeconfig(cfg, path)
    assert path.read_text(encoding="utf-8") == KUBECONFIG
