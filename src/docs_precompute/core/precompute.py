"""Assemble precompute artifacts for demo modules and their variant files."""

import hashlib
import logging
from collections import deque
from collections.abc import Callable

from docs_precompute.config import PrecomputeConfig
from docs_precompute.core.directives import extract_directives
from docs_precompute.core.emphasis import emphasize
from docs_precompute.core.erasure import erase_types
from docs_precompute.core.factory import find_factory_calls
from docs_precompute.core.languages import (
    detect_language_from_path,
    has_comment_syntax,
    is_typescript,
    normalize_language,
)
from docs_precompute.core.paths import file_name_from_url, relative_path, to_file_url, to_portable_path
from docs_precompute.core.resolve import read_source, resolve_import_url
from docs_precompute.errors import ConfigurationError, MalformedInputError, UnresolvedPathError
from docs_precompute.models import FileArtifact, PrecomputeArtifact, SourceFile, VariantArtifact
from docs_precompute.store.memory import ArtifactCache, PathCache

logger = logging.getLogger(__name__)

SKIP_OPTION = "skipPrecompute"

SourceReader = Callable[[str], str]


def cache_key(text: str, config: PrecomputeConfig, url: str = "") -> str:
    """Content hash of a file and every setting that can change its artifact."""
    h = hashlib.sha256()
    h.update(b"T|" + text.encode("utf-8"))
    h.update(b"|U|" + url.encode("utf-8"))
    h.update(b"|C|" + config.model_dump_json().encode("utf-8"))
    return h.hexdigest()


def _language_for(file_name: str, config: PrecomputeConfig) -> str | None:
    try:
        return detect_language_from_path(file_name)
    except ConfigurationError:
        default = config.extractor.default_language
        return normalize_language(default) if default else None


def load_source_file(url: str, config: PrecomputeConfig | None = None, read: SourceReader = read_source) -> SourceFile:
    config = config or PrecomputeConfig()
    file_name, _ = file_name_from_url(url)
    return SourceFile(identity=to_portable_path(url), text=read(url), language=_language_for(file_name, config))


def _sibling_url(url: str, file_name: str) -> str:
    head, _, _ = url.rpartition("/")
    return f"{head}/{file_name}" if head else file_name


def _annotate(text: str, url: str, file_name: str, language: str | None, config: PrecomputeConfig) -> FileArtifact:
    annotated = extract_directives(text, url, config.extractor)
    emphasis = emphasize(annotated, config.emphasis)
    return FileArtifact(
        file_name=file_name,
        language=language,
        source=annotated.code,
        comments=annotated.comments or None,
        frames=emphasis.frames or None,
    )


def _build_file_artifact(text: str, url: str, config: PrecomputeConfig) -> FileArtifact:
    file_name, _ = file_name_from_url(url)
    artifact = _annotate(text, url, file_name, _language_for(file_name, config), config)
    if not (config.erase_types and is_typescript(file_name)):
        return artifact

    # directives survive erasure, so the JavaScript transcript is annotated on its own
    erased = erase_types(text, file_name, config.format)
    transcript = _annotate(
        erased.source,
        _sibling_url(url, erased.file_name),
        erased.file_name,
        detect_language_from_path(erased.file_name),
        config,
    )
    return artifact.model_copy(update={"transforms": {"js": transcript}})


def build_file_artifact(
    text: str,
    url: str,
    config: PrecomputeConfig | None = None,
    cache: ArtifactCache | None = None,
) -> FileArtifact:
    """Strip, segment and (for TypeScript) type-erase a single file."""
    config = config or PrecomputeConfig()
    if cache is None:
        return _build_file_artifact(text, url, config)
    return cache.get_or_compute(cache_key(text, config, url), lambda: _build_file_artifact(text, url, config))


def _companion_urls(text: str, url: str, config: PrecomputeConfig, path_cache: PathCache | None) -> list[str]:
    urls: list[str] = []
    for record in extract_directives(text, url, config.extractor).imports:
        if not record.is_relative or record.url is None:
            continue
        resolved = resolve_import_url(record.url, path_cache)
        if resolved is None:
            raise UnresolvedPathError(record.specifier, f"imported from {url} but no matching file exists")
        if not has_comment_syntax(resolved):
            logger.debug("Skipping non-source import %s in %s", record.specifier, url)
            continue
        urls.append(resolved)
    return urls


def build_variant_artifact(
    url: str,
    config: PrecomputeConfig | None = None,
    path_cache: PathCache | None = None,
    read: SourceReader = read_source,
    artifact_cache: ArtifactCache | None = None,
) -> VariantArtifact:
    """Build the artifact of a variant entry file together with its companion files.

    Companion files are found by following relative imports breadth-first, at most
    ``extra_files_max_depth`` levels deep, and are keyed by their posix path
    relative to the variant's directory.
    """
    config = config or PrecomputeConfig()
    url = to_file_url(url)
    entry = load_source_file(url, config, read)
    main = build_file_artifact(entry.text, url, config, artifact_cache)

    extra_files: dict[str, FileArtifact] = {}
    seen = {url}
    queue = deque([(url, entry.text, 0)])
    while queue:
        current_url, current_text, depth = queue.popleft()
        if depth >= config.extra_files_max_depth:
            continue
        for companion_url in _companion_urls(current_text, current_url, config, path_cache):
            if companion_url in seen:
                continue
            seen.add(companion_url)
            companion = load_source_file(companion_url, config, read)
            key = relative_path(url, companion_url)
            extra_files[key] = build_file_artifact(companion.text, companion_url, config, artifact_cache)
            queue.append((companion_url, companion.text, depth + 1))

    logger.debug("Built variant %s with %d extra file(s)", url, len(extra_files))
    return VariantArtifact(**main.model_dump(), url=url, extra_files=extra_files or None)


def build_precompute_artifact(
    source: str,
    url: str,
    config: PrecomputeConfig | None = None,
    path_cache: PathCache | None = None,
    read: SourceReader = read_source,
    artifact_cache: ArtifactCache | None = None,
) -> PrecomputeArtifact | None:
    """Precompute every variant of the demo module at ``url``.

    Returns ``None`` when the module has no factory call to precompute. Variant names
    must be unique across all factory calls of the module.
    """
    config = config or PrecomputeConfig()
    url = to_file_url(url)
    calls = find_factory_calls(source, url, config.extractor)

    variants: dict[str, VariantArtifact] = {}
    for call in calls:
        if call.options.get(SKIP_OPTION) is True:
            logger.info("Skipping %s() in %s: %s is set", call.function_name, url, SKIP_OPTION)
            continue
        for name, variant_url in call.variants.items():
            if name in variants:
                raise MalformedInputError(
                    f"Duplicate variant '{name}' in {url}: declared by more than one factory call",
                    path=url,
                    line=source.count("\n", 0, call.start) + 1,
                )
            resolved = resolve_import_url(variant_url, path_cache)
            if resolved is None:
                raise UnresolvedPathError(variant_url, f"variant '{name}' of {url} has no matching file")
            variants[name] = build_variant_artifact(resolved, config, path_cache, read, artifact_cache)

    if not variants:
        logger.debug("Nothing to precompute in %s", url)
        return None
    return PrecomputeArtifact(identity=to_portable_path(url), variants=variants)
