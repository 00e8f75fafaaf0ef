"""Shared fixtures and helpers for tests."""

from pathlib import Path

import pytest
from tree_sitter import Parser
from tree_sitter_language_pack import get_parser

from docs_precompute.config import PrecomputeConfig
from docs_precompute.store import ArtifactCache, PathCache

_REPO_ROOT = Path(__file__).parent.parent


# ---------------------------------------------------------------------------
# Auto-marker: tag tests as "unit" or "integration" based on directory
# ---------------------------------------------------------------------------


def pytest_collection_modifyitems(items: list[pytest.Item]) -> None:
    for item in items:
        test_path = Path(str(item.fspath))
        rel = test_path.relative_to(_REPO_ROOT / "tests")
        parts = rel.parts
        if parts and parts[0] == "integration":
            item.add_marker(pytest.mark.integration)
        else:
            item.add_marker(pytest.mark.unit)


# ---------------------------------------------------------------------------
# Demo project on disk
# ---------------------------------------------------------------------------

DEMO_INDEX = """\
import { createDemo } from '../createDemo';
import BasicJs from './BasicJs';
import { BasicTs } from './BasicTs';

export const DemoButton = createDemo(import.meta.url, { Js: BasicJs, Ts: BasicTs }, { name: 'Button', slug: 'button' });
"""

BASIC_JS = """\
import * as React from 'react';

export default function BasicJs() {
  // @highlight
  const [count, setCount] = React.useState(0);
  return <button onClick={() => setCount(count + 1)}>{count}</button>;
}
"""

BASIC_TS = """\
import * as React from 'react';
import { format } from './format';
import './styles.css';

interface Props {
  label: string;
}

export function BasicTs({ label }: Props) {
  // @highlight-start
  const [count, setCount] = React.useState<number>(0);
  const text: string = format(label, count);
  // @highlight-end
  return <button onClick={() => setCount(count + 1)}>{text}</button>;
}
"""

FORMAT_TS = """\
export function format(label: string, count: number): string {
  return `${label}: ${count}`;
}
"""

STYLES_CSS = """\
/* @highlight */
.button {
  color: red;
}
"""


@pytest.fixture
def demo_dir(tmp_path: Path) -> Path:
    """Write a demo module with a JavaScript and a TypeScript variant."""
    demo = tmp_path / "button"
    demo.mkdir()
    (demo / "index.ts").write_text(DEMO_INDEX, encoding="utf-8")
    (demo / "BasicJs.jsx").write_text(BASIC_JS, encoding="utf-8")
    (demo / "BasicTs.tsx").write_text(BASIC_TS, encoding="utf-8")
    (demo / "format.ts").write_text(FORMAT_TS, encoding="utf-8")
    (demo / "styles.css").write_text(STYLES_CSS, encoding="utf-8")
    return demo


# ---------------------------------------------------------------------------
# Shared unit-test fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def typescript_parser() -> Parser:
    """Return a tree-sitter parser for TypeScript."""
    return get_parser("typescript")


@pytest.fixture
def precompute_config() -> PrecomputeConfig:
    return PrecomputeConfig()


@pytest.fixture
def path_cache() -> PathCache:
    return PathCache()


@pytest.fixture
def artifact_cache() -> ArtifactCache:
    return ArtifactCache()
