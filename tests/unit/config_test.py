"""Unit tests for configuration models and environment loading."""

import pytest

from docs_precompute.config import (
    DIRECTIVE_TAGS,
    EmphasisConfig,
    ExtractorConfig,
    PrecomputeConfig,
    PrintOptions,
    load_config,
    resolve_print_options,
)
from docs_precompute.errors import ConfigurationError


class TestModels:
    """Tests for the configuration models."""

    def test_defaults(self) -> None:
        """Defaults cover the standard vocabulary and formatting."""
        config = PrecomputeConfig()
        assert config.extractor.directive_tags == DIRECTIVE_TAGS
        assert "@ts-ignore" in config.extractor.remove_comments_with_prefix
        assert config.emphasis.padding_frame_max_size is None
        assert config.format == "default"
        assert config.erase_types is True
        assert config.extra_files_max_depth == 2

    def test_negative_padding_raises(self) -> None:
        """Padding sizes must not be negative."""
        with pytest.raises(ConfigurationError):
            EmphasisConfig(padding_frame_max_size=-1)

    def test_negative_focus_length_raises(self) -> None:
        """The focus budget must not be negative."""
        with pytest.raises(ConfigurationError, match="focus_frames_max_length"):
            EmphasisConfig(focus_frames_max_length=-1)

    def test_unknown_format_raises(self) -> None:
        """Only the known format names are accepted."""
        with pytest.raises(ConfigurationError, match="Unknown format option"):
            PrecomputeConfig(format="fancy")

    def test_negative_depth_raises(self) -> None:
        """Extra-file depth must not be negative."""
        with pytest.raises(ConfigurationError):
            PrecomputeConfig(extra_files_max_depth=-1)

    def test_custom_print_options_are_accepted(self) -> None:
        """A PrintOptions instance can replace the format name."""
        options = PrintOptions(single_quote=False)
        assert PrecomputeConfig(format=options).format == options

    def test_empty_directive_tag_raises(self) -> None:
        """Tag vocabularies cannot contain empty entries."""
        with pytest.raises(ConfigurationError):
            ExtractorConfig(directive_tags=("@highlight", ""))


class TestResolvePrintOptions:
    """Tests for resolve_print_options."""

    def test_skip_disables_printer(self) -> None:
        """skip means no printer pass."""
        assert resolve_print_options("skip") is None

    def test_default_uses_default_options(self) -> None:
        """default maps to the default PrintOptions."""
        assert resolve_print_options("default") == PrintOptions()


class TestLoadConfig:
    """Tests for load_config."""

    def test_reads_environment(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Environment variables fill in the configuration."""
        monkeypatch.setenv("DOCS_PRECOMPUTE_PADDING_FRAME_MAX_SIZE", "3")
        monkeypatch.setenv("DOCS_PRECOMPUTE_FORMAT", "skip")
        monkeypatch.setenv("DOCS_PRECOMPUTE_EXTRA_FILES_MAX_DEPTH", "0")
        monkeypatch.setenv("DOCS_PRECOMPUTE_FOCUS_FRAMES_MAX_LENGTH", "7")
        config = load_config()
        assert config.emphasis.padding_frame_max_size == 3
        assert config.format == "skip"
        assert config.extra_files_max_depth == 0
        assert config.emphasis.focus_frames_max_length == 7

    def test_arguments_override_environment(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Explicit arguments win over the environment."""
        monkeypatch.setenv("DOCS_PRECOMPUTE_PADDING_FRAME_MAX_SIZE", "3")
        config = load_config(padding_frame_max_size=5, format="skip", padding_scope="focused")
        assert config.emphasis.padding_frame_max_size == 5
        assert config.emphasis.padding_scope == "focused"
        assert config.format == "skip"

    def test_defaults_without_environment(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Unset variables fall back to the defaults."""
        for name in (
            "DOCS_PRECOMPUTE_PADDING_FRAME_MAX_SIZE",
            "DOCS_PRECOMPUTE_FORMAT",
            "DOCS_PRECOMPUTE_EXTRA_FILES_MAX_DEPTH",
            "DOCS_PRECOMPUTE_FOCUS_FRAMES_MAX_LENGTH",
        ):
            monkeypatch.delenv(name, raising=False)
        assert load_config() == PrecomputeConfig()

    def test_non_integer_raises(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """A non-numeric size is reported with the variable name."""
        monkeypatch.setenv("DOCS_PRECOMPUTE_PADDING_FRAME_MAX_SIZE", "lots")
        with pytest.raises(ConfigurationError, match="DOCS_PRECOMPUTE_PADDING_FRAME_MAX_SIZE"):
            load_config()
