from typing import Literal

from docs_precompute.errors import ConfigurationError

CommentSyntax = Literal["javascript", "css", "mdx"]

_LANGUAGE_ALIASES = {
    "css": "css",
    "javascript": "javascript",
    "js": "javascript",
    "jsx": "javascript",
    "json": "json",
    "md": "markdown",
    "markdown": "markdown",
    "mdx": "mdx",
    "scss": "css",
    "ts": "typescript",
    "tsx": "tsx",
    "typescript": "typescript",
}

_EXTENSION_LANGUAGE_MAP = {
    ".cjs": "javascript",
    ".css": "css",
    ".cts": "typescript",
    ".js": "javascript",
    ".json": "json",
    ".jsx": "javascript",
    ".markdown": "markdown",
    ".md": "markdown",
    ".mdx": "mdx",
    ".mjs": "javascript",
    ".mts": "typescript",
    ".scss": "css",
    ".ts": "typescript",
    ".tsx": "tsx",
}

_LANGUAGE_COMMENT_SYNTAX: dict[str, CommentSyntax] = {
    "css": "css",
    "javascript": "javascript",
    "mdx": "mdx",
    "tsx": "javascript",
    "typescript": "javascript",
}

# TypeScript extension -> (tree-sitter grammar, JavaScript extension)
_TYPESCRIPT_EXTENSIONS = {
    ".cts": ("typescript", ".cjs"),
    ".mts": ("typescript", ".mjs"),
    ".ts": ("typescript", ".js"),
    ".tsx": ("tsx", ".jsx"),
}

_SUPPORTED_LANGUAGES = set(_EXTENSION_LANGUAGE_MAP.values())


def file_extension(path: str) -> str:
    """Return the lower-cased extension of the last segment of a path or URL."""
    name = path.replace("\\", "/").rsplit("/", 1)[-1]
    name = name.split("?", 1)[0].split("#", 1)[0]
    dot = name.rfind(".")
    if dot <= 0:
        return ""
    return name[dot:].lower()


def normalize_language(language: str) -> str:
    normalized = language.strip().lower()
    resolved = _LANGUAGE_ALIASES.get(normalized, normalized)
    if resolved not in _SUPPORTED_LANGUAGES:
        raise ConfigurationError(f"Unsupported language '{language}'. Supported: {sorted(_SUPPORTED_LANGUAGES)}")
    return resolved


def detect_language_from_path(path: str) -> str:
    suffix = file_extension(path)
    if suffix in _EXTENSION_LANGUAGE_MAP:
        return _EXTENSION_LANGUAGE_MAP[suffix]
    raise ConfigurationError(f"Unsupported file extension '{suffix}' for {path}")


def comment_syntax_for(path: str, default_language: str | None = None) -> CommentSyntax:
    """Pick the comment syntax for a file, falling back to ``default_language`` for unknown extensions."""
    suffix = file_extension(path)
    language = _EXTENSION_LANGUAGE_MAP.get(suffix)
    if language is None or language not in _LANGUAGE_COMMENT_SYNTAX:
        if default_language is None:
            raise ConfigurationError(f"No comment syntax known for '{path}' and no default language configured")
        language = normalize_language(default_language)
    if language not in _LANGUAGE_COMMENT_SYNTAX:
        raise ConfigurationError(f"Language '{language}' has no supported comment syntax")
    return _LANGUAGE_COMMENT_SYNTAX[language]


def is_typescript(path: str) -> bool:
    return file_extension(path) in _TYPESCRIPT_EXTENSIONS


def typescript_grammar(path: str) -> str:
    suffix = file_extension(path)
    if suffix not in _TYPESCRIPT_EXTENSIONS:
        raise ConfigurationError(f"Not a TypeScript file: {path}")
    return _TYPESCRIPT_EXTENSIONS[suffix][0]


def javascript_file_name(file_name: str) -> str:
    """Rewrite a TypeScript file name to the matching JavaScript one (``App.tsx`` -> ``App.jsx``)."""
    suffix = file_extension(file_name)
    if suffix not in _TYPESCRIPT_EXTENSIONS:
        raise ConfigurationError(f"Not a TypeScript file: {file_name}")
    return file_name[: len(file_name) - len(suffix)] + _TYPESCRIPT_EXTENSIONS[suffix][1]


def has_comment_syntax(path: str) -> bool:
    return _EXTENSION_LANGUAGE_MAP.get(file_extension(path)) in _LANGUAGE_COMMENT_SYNTAX
