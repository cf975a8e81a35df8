from pathlib import Path

import pytest

from core.config import AppConfig, load_config
from services.imaging.policy import DEFAULT_POLICY

ROOT = Path(__file__).resolve().parents[1]


def _write(tmp_path, text: str) -> Path:
    p = tmp_path / "config.toml"
    p.write_text(text, encoding="utf-8")
    return p


def test_shipped_config_matches_default_policy():
    cfg = load_config(ROOT / "config.toml")
    assert cfg.upload.to_policy() == DEFAULT_POLICY
    assert cfg.processing.webp_quality == 85


def test_empty_file_uses_defaults(tmp_path):
    cfg = load_config(_write(tmp_path, ""))
    assert cfg == AppConfig()
    assert cfg.upload.max_file_size_bytes == 5 * 1024 * 1024


def test_values_are_coerced(tmp_path):
    cfg = load_config(_write(tmp_path, """
[server]
log_level = "debug"
threadpool_workers = "4"

[upload]
max_dimension = "4000"
allowed_extensions = ["PNG"]
strict_webp_signature = true
"""))
    assert cfg.server.log_level == "DEBUG"
    assert cfg.server.threadpool_workers == 4
    policy = cfg.upload.to_policy()
    assert policy.max_dimension == 4000
    assert policy.allowed_extensions == frozenset({"png"})
    assert policy.strict_webp_signature is True


@pytest.mark.parametrize("text", [
    "[server]\nthreadpool_workers = 0",
    "[server]\nprocess_concurrency = 0",
    "[server]\nlog_level = \"LOUD\"",
    "[upload]\nmax_file_size_mb = 0",
    "[upload]\nmin_dimension = 100\nmax_dimension = 50",
    "[upload]\nallowed_mime_types = []",
    "[processing]\nwebp_quality = 0",
    "[upload]\nstrict_webp_signature = \"false\"",
    "[processing]\npreserve_gif_animation = 1",
])
def test_invalid_values_raise(tmp_path, text):
    with pytest.raises(ValueError):
        load_config(_write(tmp_path, text))
