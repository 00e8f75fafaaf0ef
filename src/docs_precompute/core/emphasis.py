import logging
from collections.abc import Iterable, Sequence

from docs_precompute.config import EmphasisConfig
from docs_precompute.errors import ConfigurationError
from docs_precompute.models import AnnotatedSource, DirectiveComment, EmphasisResult, Frame

logger = logging.getLogger(__name__)

HIGHLIGHT_TAGS = ("@highlight", "@highlight-start", "@highlight-text")
FOCUS_TAG = "@focus"


def highlighted_lines(comments: Sequence[DirectiveComment], total_lines: int) -> tuple[set[int], set[int]]:
    """Expand directive entries into the sets of highlighted and focused display lines."""
    highlighted: set[int] = set()
    focused: set[int] = set()
    for comment in comments:
        lines = range(max(comment.display_line, 0), min(comment.display_end_line, total_lines - 1) + 1)
        if any(tag in comment.tags for tag in HIGHLIGHT_TAGS):
            highlighted.update(lines)
        if FOCUS_TAG in comment.tags:
            focused.update(lines)
    return highlighted, focused


def _runs(lines: Iterable[int]) -> list[tuple[int, int]]:
    runs: list[tuple[int, int]] = []
    for line in sorted(lines):
        if runs and line == runs[-1][1] + 1:
            runs[-1] = (runs[-1][0], line)
        else:
            runs.append((line, line))
    return runs


def _gap_frames(start: int, end: int, padding: int | None, top: int | None, bottom: int | None) -> list[Frame]:
    """Frames for the gap ``[start, end]``.

    ``top`` caps the padding under the highlight above, ``bottom`` the padding over
    the highlight below; ``None`` means that side is not padded.
    """
    length = end - start + 1
    if length <= 0:
        return []
    if padding is None or (top is None and bottom is None):
        return [Frame(kind="normal", start_line=start, end_line=end)]
    if length <= padding and all(cap is None or cap >= padding for cap in (top, bottom)):
        return [Frame(kind="normal", start_line=start, end_line=end)]

    top_size = min(top, length) if top is not None else 0
    bottom_size = min(bottom, length - top_size) if bottom is not None else 0
    frames: list[Frame] = []
    if top is not None:
        frames.append(Frame(kind="padding", start_line=start, end_line=start + top_size - 1))
    if end - bottom_size >= start + top_size:
        frames.append(Frame(kind="normal", start_line=start + top_size, end_line=end - bottom_size))
    if bottom is not None:
        frames.append(Frame(kind="padding", start_line=end - bottom_size + 1, end_line=end))
    return frames


def _padding_caps(
    size: int,
    padding: int | None,
    is_focused: bool,
    focus_frames_max_length: int | None,
    focused_only: bool,
) -> tuple[int | None, int | None]:
    """Padding allowed above and below one highlighted frame."""
    if padding is None or (focused_only and not is_focused):
        return None, None
    if not is_focused or focus_frames_max_length is None:
        return padding, padding
    remaining = max(focus_frames_max_length - size, 0)
    return min(padding, remaining // 2), min(padding, remaining - remaining // 2)


def compute_frames(
    total_lines: int,
    highlighted: Iterable[int],
    padding_frame_max_size: int | None = None,
    focused: Iterable[int] = (),
    focus_frames_max_length: int | None = None,
    padding_scope: str = "all",
) -> list[Frame]:
    """Partition ``[0, total_lines)`` into highlighted, normal and padding frames.

    Highlighted lines outside the file are ignored. A highlighted frame is
    ``focused`` when it contains a focused line; without any, the first one is.
    With ``padding_scope="focused"`` only focused frames get padding and the
    other highlighted frames are ``highlighted-unfocused``. A focused frame and
    its padding span at most ``focus_frames_max_length`` lines where the gaps
    allow it; the budget left after the highlight goes floor-half above, ceil-half
    below.
    """
    if total_lines < 0:
        raise ConfigurationError(f"total_lines must be zero or positive, got {total_lines}")
    if padding_frame_max_size is not None and padding_frame_max_size < 0:
        raise ConfigurationError(f"padding_frame_max_size must be zero or positive, got {padding_frame_max_size}")
    if focus_frames_max_length is not None and focus_frames_max_length < 0:
        raise ConfigurationError(f"focus_frames_max_length must be zero or positive, got {focus_frames_max_length}")
    if padding_scope not in ("all", "focused"):
        raise ConfigurationError(f"Unknown padding scope '{padding_scope}'. Supported: ['all', 'focused']")
    if total_lines == 0:
        return []

    runs = _runs(line for line in set(highlighted) if 0 <= line < total_lines)
    if not runs:
        return [Frame(kind="normal", start_line=0, end_line=total_lines - 1)]

    focus = set(focused)
    focused_runs = {index for index, (start, end) in enumerate(runs) if any(start <= line <= end for line in focus)}
    if not focused_runs:
        focused_runs = {0}
    focused_only = padding_scope == "focused"

    caps = [
        _padding_caps(end - start + 1, padding_frame_max_size, index in focused_runs, focus_frames_max_length, focused_only)
        for index, (start, end) in enumerate(runs)
    ]
    frames: list[Frame] = []
    cursor = 0
    below: int | None = None
    for index, (start, end) in enumerate(runs):
        above, next_below = caps[index]
        frames.extend(_gap_frames(cursor, start - 1, padding_frame_max_size, below, above))
        is_focused = index in focused_runs
        kind = "highlighted-unfocused" if focused_only and not is_focused else "highlighted"
        frames.append(Frame(kind=kind, start_line=start, end_line=end, focused=is_focused))
        cursor = end + 1
        below = next_below
    frames.extend(_gap_frames(cursor, total_lines - 1, padding_frame_max_size, below, None))
    return frames


def emphasize(annotated: AnnotatedSource, config: EmphasisConfig | None = None) -> EmphasisResult:
    config = config or EmphasisConfig()
    total_lines = annotated.total_lines
    highlighted, focused = highlighted_lines(annotated.comments, total_lines)
    frames = compute_frames(
        total_lines,
        highlighted,
        config.padding_frame_max_size,
        focused,
        config.focus_frames_max_length,
        config.padding_scope,
    )
    logger.debug("Split %d line(s) into %d frame(s)", total_lines, len(frames))
    return EmphasisResult(total_lines=total_lines, frames=frames)
