import json
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

CommentKind = Literal["line", "block"]
FrameKind = Literal["highlighted", "highlighted-unfocused", "normal", "padding"]
ImportKind = Literal["default", "named", "namespace"]


class _Model(BaseModel):
    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)


class SourceFile(_Model):
    identity: str
    text: str
    language: str | None = None


class ImportName(_Model):
    name: str
    alias: str | None = None
    kind: ImportKind = "named"
    is_type: bool = False


class ImportRecord(_Model):
    specifier: str
    start: int
    end: int
    names: list[ImportName] = []
    is_relative: bool = False
    url: str | None = None
    is_type_only: bool = False


class DirectiveComment(_Model):
    """A recognized directive comment.

    ``line``/``end_line`` point into the raw source, ``display_line``/``display_end_line``
    are the inclusive range of lines of the displayed code the directive applies to.
    A description ending in ``!`` marks the emphasis ``strong``; the ``!`` is dropped.
    """

    tags: list[str]
    body: list[str] = []
    description: str | None = None
    strong: bool = False
    highlight_text: str | None = None
    kind: CommentKind
    start: int
    end: int
    line: int
    end_line: int
    display_line: int
    display_end_line: int
    stripped: bool = True


class AnnotatedSource(_Model):
    code: str
    comments: list[DirectiveComment] = []
    imports: list[ImportRecord] = []

    @property
    def total_lines(self) -> int:
        """Number of display lines; a trailing newline does not open a new line."""
        if not self.code:
            return 0
        lines = self.code.split("\n")
        return len(lines) - 1 if lines[-1] == "" else len(lines)


class Frame(_Model):
    kind: FrameKind
    start_line: int
    end_line: int
    focused: bool = False

    @property
    def size(self) -> int:
        return self.end_line - self.start_line + 1


class EmphasisResult(_Model):
    total_lines: int
    frames: list[Frame] = []


class TransformResult(_Model):
    file_name: str
    source: str


class FactoryCall(_Model):
    function_name: str
    start: int
    end: int
    url_expression: str
    variants: dict[str, str]
    named_exports: dict[str, str | None] = {}
    options: dict[str, Any] = {}


class FileArtifact(_Model):
    file_name: str
    language: str | None = None
    source: str
    comments: list[DirectiveComment] | None = None
    frames: list[Frame] | None = None
    transforms: dict[str, "FileArtifact"] | None = None


# Necessary for the recursive transforms map
FileArtifact.model_rebuild()


class VariantArtifact(FileArtifact):
    url: str
    extra_files: dict[str, FileArtifact] | None = None


class PrecomputeArtifact(_Model):
    identity: str
    variants: dict[str, VariantArtifact]

    def to_json(self) -> str:
        data = self.model_dump(mode="json", by_alias=True, exclude_none=True)
        return json.dumps(data, sort_keys=True, separators=(",", ":"), ensure_ascii=False)

    @classmethod
    def from_json(cls, payload: str) -> "PrecomputeArtifact":
        return cls.model_validate_json(payload)
