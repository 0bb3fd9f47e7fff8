"""
Unit Tests for Configuration
"""

from pathlib import Path

import pytest

from exam_atlas.config import DEFAULT_MODEL, AtlasConfig, load_config


class TestAtlasConfig:
    def test_defaults_when_created_then_documented_values(self):
        cfg = AtlasConfig()
        assert cfg.model_name == DEFAULT_MODEL
        assert cfg.enrich_delay_s == 0.5
        assert cfg.marking_retry_delays == (1.0, 2.0, 4.0, 8.0, 16.0)
        assert (cfg.default_topic, cfg.default_lines) == ("General", 4)
        assert cfg.strict_prefix_match is False
        assert cfg.api_key is None

    def test_init_when_negative_delay_then_raises(self):
        with pytest.raises(ValueError, match="enrich_delay_s"):
            AtlasConfig(enrich_delay_s=-1)

    def test_init_when_negative_lines_then_raises(self):
        with pytest.raises(ValueError, match="default_lines"):
            AtlasConfig(default_lines=-1)


class TestLoadConfig:
    def test_load_when_env_mapping_then_values_applied(self, tmp_path):
        cfg = load_config({
            "GOOGLE_API_KEY": "secret",
            "EXAM_ATLAS_MODEL": "gemini-test",
            "EXAM_ATLAS_DATA_DIR": str(tmp_path),
            "EXAM_ATLAS_ENRICH_DELAY": "0",
            "EXAM_ATLAS_STRICT_PREFIX": "yes",
        })
        assert cfg.api_key == "secret"
        assert cfg.model_name == "gemini-test"
        assert cfg.data_dir == Path(tmp_path)
        assert cfg.enrich_delay_s == 0.0
        assert cfg.strict_prefix_match is True

    def test_load_when_env_empty_then_defaults(self):
        cfg = load_config({})
        assert cfg == AtlasConfig(data_dir=cfg.data_dir)
        assert cfg.data_dir.name == "workspace"

    @pytest.mark.parametrize("value, expected", [("1", True), ("true", True), ("off", False), ("", False)])
    def test_load_when_strict_flag_then_parsed(self, value, expected):
        assert load_config({"EXAM_ATLAS_STRICT_PREFIX": value}).strict_prefix_match is expected

    def test_load_when_os_environ_then_dotenv_read(self, tmp_path, monkeypatch):
        (tmp_path / ".env").write_text("EXAM_ATLAS_MODEL=gemini-from-dotenv\n")
        monkeypatch.chdir(tmp_path)
        monkeypatch.delenv("EXAM_ATLAS_MODEL", raising=False)
        try:
            assert load_config().model_name == "gemini-from-dotenv"
        finally:
            monkeypatch.delenv("EXAM_ATLAS_MODEL", raising=False)
