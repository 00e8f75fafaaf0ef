import os
from typing import Literal

from pydantic import BaseModel, ConfigDict, model_validator

from docs_precompute.errors import ConfigurationError

DIRECTIVE_TAGS = ("@highlight", "@highlight-start", "@highlight-end", "@highlight-text", "@focus")
EMPHASIS_PREFIXES = ("@highlight", "@focus")
IGNORE_COMMENT_PREFIXES = ("prettier-ignore", "eslint-disable", "@ts-ignore", "@ts-expect-error", "@ts-nocheck")

FORMAT_CHOICES = ("skip", "default")

_ENV_PADDING = "DOCS_PRECOMPUTE_PADDING_FRAME_MAX_SIZE"
_ENV_FOCUS_LENGTH = "DOCS_PRECOMPUTE_FOCUS_FRAMES_MAX_LENGTH"
_ENV_FORMAT = "DOCS_PRECOMPUTE_FORMAT"
_ENV_EXTRA_DEPTH = "DOCS_PRECOMPUTE_EXTRA_FILES_MAX_DEPTH"


class ExtractorConfig(BaseModel):
    model_config = ConfigDict(frozen=True)

    remove_comments_with_prefix: tuple[str, ...] = (*EMPHASIS_PREFIXES, *IGNORE_COMMENT_PREFIXES)
    notable_comments_prefix: tuple[str, ...] = EMPHASIS_PREFIXES
    directive_tags: tuple[str, ...] = DIRECTIVE_TAGS
    default_language: str | None = None

    @model_validator(mode="after")
    def _check_prefixes(self) -> "ExtractorConfig":
        for field_name in ("remove_comments_with_prefix", "notable_comments_prefix", "directive_tags"):
            for value in getattr(self, field_name):
                if not value.strip():
                    raise ConfigurationError(f"{field_name} must not contain empty entries")
                if any(ch.isspace() for ch in value):
                    raise ConfigurationError(f"{field_name} entry {value!r} must not contain whitespace")
        return self


class EmphasisConfig(BaseModel):
    """Frame segmentation settings.

    ``padding_scope`` picks which highlighted frames get padding: every one, or
    only the focused ones (the others are then ``highlighted-unfocused``).
    ``focus_frames_max_length`` caps padding plus highlight of a focused frame.
    """

    model_config = ConfigDict(frozen=True)

    padding_frame_max_size: int | None = None
    focus_frames_max_length: int | None = None
    padding_scope: Literal["all", "focused"] = "all"

    @model_validator(mode="after")
    def _check_padding(self) -> "EmphasisConfig":
        for field_name in ("padding_frame_max_size", "focus_frames_max_length"):
            value = getattr(self, field_name)
            if value is not None and value < 0:
                raise ConfigurationError(f"{field_name} must be zero or positive, got {value}")
        return self


class PrintOptions(BaseModel):
    """Formatting applied to a type-erased transcript."""

    model_config = ConfigDict(frozen=True)

    single_quote: bool = True
    trim_trailing_whitespace: bool = True
    remove_empty_lines: bool = True
    final_newline: bool = True


class PrecomputeConfig(BaseModel):
    model_config = ConfigDict(frozen=True)

    extractor: ExtractorConfig = ExtractorConfig()
    emphasis: EmphasisConfig = EmphasisConfig()
    format: str | PrintOptions = "default"
    erase_types: bool = True
    extra_files_max_depth: int = 2

    @model_validator(mode="after")
    def _check_options(self) -> "PrecomputeConfig":
        resolve_print_options(self.format)
        if self.extra_files_max_depth < 0:
            raise ConfigurationError(f"extra_files_max_depth must be zero or positive, got {self.extra_files_max_depth}")
        return self


def resolve_print_options(format: str | PrintOptions) -> PrintOptions | None:
    """Return the printer options for a format choice, ``None`` meaning no printer pass."""
    if isinstance(format, PrintOptions):
        return format
    if format == "skip":
        return None
    if format == "default":
        return PrintOptions()
    raise ConfigurationError(f"Unknown format option '{format}'. Supported: {list(FORMAT_CHOICES)}")


def _env_int(name: str) -> int | None:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return None
    try:
        return int(raw)
    except ValueError:
        raise ConfigurationError(f"{name} must be an integer, got {raw!r}") from None


def load_config(
    padding_frame_max_size: int | None = None,
    format: str | None = None,
    extra_files_max_depth: int | None = None,
    focus_frames_max_length: int | None = None,
    padding_scope: Literal["all", "focused"] = "all",
) -> PrecomputeConfig:
    """Build the configuration from the environment; explicit arguments take precedence."""
    padding = padding_frame_max_size if padding_frame_max_size is not None else _env_int(_ENV_PADDING)
    focus_length = focus_frames_max_length if focus_frames_max_length is not None else _env_int(_ENV_FOCUS_LENGTH)
    depth = extra_files_max_depth if extra_files_max_depth is not None else _env_int(_ENV_EXTRA_DEPTH)
    return PrecomputeConfig(
        emphasis=EmphasisConfig(
            padding_frame_max_size=padding,
            focus_frames_max_length=focus_length,
            padding_scope=padding_scope,
        ),
        format=format or os.getenv(_ENV_FORMAT, "default"),
        extra_files_max_depth=2 if depth is None else depth,
    )
