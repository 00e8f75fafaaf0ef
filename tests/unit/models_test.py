"""Unit tests for Pydantic models."""

import json

import pytest
from pydantic import ValidationError

from docs_precompute.models import (
    AnnotatedSource,
    DirectiveComment,
    FileArtifact,
    Frame,
    PrecomputeArtifact,
    VariantArtifact,
)


def _artifact() -> PrecomputeArtifact:
    frame = Frame(kind="highlighted", start_line=0, end_line=0, focused=True)
    comment = DirectiveComment(
        tags=["@highlight"],
        kind="line",
        start=0,
        end=13,
        line=0,
        end_line=0,
        display_line=0,
        display_end_line=0,
    )
    transcript = FileArtifact(file_name="Demo.js", language="javascript", source="a();\n", frames=[frame])
    variant = VariantArtifact(
        file_name="Demo.ts",
        language="typescript",
        source="a();\n",
        comments=[comment],
        frames=[frame],
        transforms={"js": transcript},
        url="file:///demo/Demo.ts",
    )
    return PrecomputeArtifact(identity="/demo/index.ts", variants={"Ts": variant})


class TestAnnotatedSource:
    """Tests for the AnnotatedSource model."""

    @pytest.mark.parametrize(
        ("code", "expected"),
        [("", 0), ("a", 1), ("a\n", 1), ("a\nb", 2), ("a\n\n", 2)],
        ids=["empty", "no-newline", "trailing-newline", "two-lines", "blank-last-line"],
    )
    def test_total_lines(self, code: str, expected: int) -> None:
        """A trailing newline does not open an extra line."""
        assert AnnotatedSource(code=code).total_lines == expected


class TestFrameModel:
    """Tests for the Frame model."""

    def test_size(self) -> None:
        """size counts the inclusive line range."""
        assert Frame(kind="normal", start_line=3, end_line=5).size == 3
        assert Frame(kind="padding", start_line=3, end_line=2).size == 0

    def test_rejects_unknown_kind(self) -> None:
        """Only the three frame kinds are allowed."""
        with pytest.raises(ValidationError):
            Frame(kind="bold", start_line=0, end_line=0)  # type: ignore[arg-type]

    def test_is_immutable(self) -> None:
        """Models are frozen."""
        frame = Frame(kind="normal", start_line=0, end_line=1)
        with pytest.raises(ValidationError):
            frame.start_line = 4  # type: ignore[misc]


class TestPrecomputeArtifact:
    """Tests for the serialized artifact."""

    def test_json_uses_camel_case_and_omits_none(self) -> None:
        """Field names are camelCase and unset optional fields are left out."""
        data = json.loads(_artifact().to_json())
        variant = data["variants"]["Ts"]
        assert variant["fileName"] == "Demo.ts"
        assert variant["comments"][0]["displayEndLine"] == 0
        assert variant["transforms"]["js"]["frames"][0]["startLine"] == 0
        assert "extraFiles" not in variant
        assert "comments" not in variant["transforms"]["js"]
        assert "description" not in variant["comments"][0]

    def test_json_is_deterministic(self) -> None:
        """Serialization is compact and key-sorted, so equal artifacts give equal bytes."""
        payload = _artifact().to_json()
        assert payload == _artifact().to_json()
        assert ": " not in payload
        data = json.loads(payload)
        assert list(data) == sorted(data)
        assert list(data["variants"]["Ts"]) == sorted(data["variants"]["Ts"])

    def test_from_json_restores_artifact(self) -> None:
        """The JSON form loads back into an equal artifact."""
        artifact = _artifact()
        restored = PrecomputeArtifact.from_json(artifact.to_json())
        assert restored == artifact
        assert restored.variants["Ts"].transforms is not None
        assert restored.variants["Ts"].transforms["js"].file_name == "Demo.js"
