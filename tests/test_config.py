"""
Tests for settings loading.

Covers the default settings file, YAML comment keys, overrides and
range validation.
"""

from dataclasses import FrozenInstanceError

import pytest

from healthscribe.config import (
    DEFAULT_CHUNK_CHARS,
    OLLAMA_CONTEXT_WINDOW,
    SETTINGS_FILE,
    PipelineSettings,
    load_settings,
)


class TestDefaults:
    """Built-in defaults and the shipped settings file."""

    def test_defaults(self):
        settings = PipelineSettings()
        assert settings.chunk_chars == DEFAULT_CHUNK_CHARS == 2000
        assert settings.context_window == OLLAMA_CONTEXT_WINDOW
        assert settings.temperature == 0.0
        assert settings.max_chunks_per_source is None
        assert settings.request_timeout_seconds is None

    def test_shipped_settings_file_loads(self):
        assert SETTINGS_FILE.is_file()
        settings = load_settings()
        assert settings.chunk_chars == 2000
        assert settings.oracle_timeout_seconds == 300

    def test_chunk_fits_context_window(self):
        """A default chunk plus instructions stays inside the context window."""
        # Rough estimate: 1 token ~ 4 chars, leave half the window for output
        assert DEFAULT_CHUNK_CHARS // 4 <= OLLAMA_CONTEXT_WINDOW // 2

    def test_settings_are_frozen(self):
        with pytest.raises(FrozenInstanceError):
            PipelineSettings().chunk_chars = 10


class TestLoadSettings:
    """load_settings() merging rules."""

    def test_file_values_and_comment_keys(self, tmp_path):
        path = tmp_path / "pipeline.yaml"
        path.write_text(
            "pipeline:\n"
            "  _note: comment keys are ignored\n"
            "  model_name: llama3.2:3b\n"
            "  chunk_chars: 500\n"
            "  max_chunks_per_source: 8\n",
            encoding="utf-8",
        )

        settings = load_settings(path)

        assert settings.model_name == "llama3.2:3b"
        assert settings.chunk_chars == 500
        assert settings.max_chunks_per_source == 8

    def test_unknown_file_keys_are_ignored(self, tmp_path):
        path = tmp_path / "pipeline.yaml"
        path.write_text("pipeline:\n  chunk_size_words: 300\n  chunk_chars: 900\n", encoding="utf-8")
        assert load_settings(path).chunk_chars == 900

    def test_overrides_win_and_none_is_ignored(self, tmp_path):
        path = tmp_path / "pipeline.yaml"
        path.write_text("pipeline:\n  chunk_chars: 500\n  model_name: from-file\n", encoding="utf-8")

        settings = load_settings(path, overrides={"chunk_chars": 750, "model_name": None})

        assert settings.chunk_chars == 750
        assert settings.model_name == "from-file"

    def test_unknown_override_rejected(self):
        with pytest.raises(ValueError, match="Unknown setting"):
            load_settings(overrides={"chunk_words": 10})

    def test_missing_file_uses_defaults(self, tmp_path):
        settings = load_settings(tmp_path / "absent.yaml")
        assert settings == PipelineSettings()

    def test_malformed_file_uses_defaults(self, tmp_path):
        path = tmp_path / "broken.yaml"
        path.write_text("pipeline: [unclosed\n", encoding="utf-8")
        assert load_settings(path) == PipelineSettings()

    def test_non_mapping_file_uses_defaults(self, tmp_path):
        path = tmp_path / "list.yaml"
        path.write_text("- just\n- a list\n", encoding="utf-8")
        assert load_settings(path) == PipelineSettings()


class TestValidation:
    """Out-of-range values fail loudly."""

    @pytest.mark.parametrize(
        "overrides",
        [
            {"chunk_chars": 0},
            {"max_chunks_per_source": 0},
            {"max_parallel_sources": -1},
            {"oracle_timeout_seconds": 0},
            {"request_timeout_seconds": -5},
            {"model_name": ""},
        ],
    )
    def test_rejects_invalid_values(self, tmp_path, overrides):
        with pytest.raises(ValueError):
            load_settings(tmp_path / "absent.yaml", overrides=overrides)
