"""Article content blocks.

An article body is an ordered list of typed blocks. Each block is a pydantic
model tagged by its ``type`` field; :data:`Block` is the discriminated union
over all of them.

Older articles were written by several editors that did not agree on a shape
(``heading-2`` instead of ``heading`` + ``level``, ``imageUrl`` instead of
``src``, ``list-ordered`` instead of ``list`` + ``ordered`` ...). Everything
read through :func:`parse_blocks` is normalized to the canonical shape first,
so rows converge as they are re-saved.
"""

import json
import re
from typing import Annotated, Any, Literal, Optional, Union
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError

BLOCK_TYPES = (
    "paragraph",
    "heading",
    "image",
    "video",
    "list",
    "quote",
    "code",
    "poll",
    "embed",
    "table",
    "columns",
    "toc",
    "divider",
)


class BlockValidationError(ValueError):
    """Raised when content cannot be turned into valid blocks."""

    def __init__(self, message: str, errors: Optional[list[dict[str, Any]]] = None):
        super().__init__(message)
        self.errors = errors or []


def _new_id() -> str:
    return str(uuid4())


class BaseBlock(BaseModel):
    """Fields shared by every block."""

    model_config = ConfigDict(extra="ignore")

    id: str = Field(default_factory=_new_id)
    align: Optional[str] = None


class ParagraphBlock(BaseBlock):
    type: Literal["paragraph"] = "paragraph"
    content: str = ""


class HeadingBlock(BaseBlock):
    type: Literal["heading"] = "heading"
    level: int = Field(default=2, ge=1, le=6)
    content: str = ""


class ImageBlock(BaseBlock):
    type: Literal["image"] = "image"
    src: str = ""
    alt: str = ""
    caption: Optional[str] = None


class VideoBlock(BaseBlock):
    type: Literal["video"] = "video"
    url: str = ""
    video_id: Optional[str] = None
    caption: Optional[str] = None


class ListBlock(BaseBlock):
    type: Literal["list"] = "list"
    ordered: bool = False
    items: list[str] = Field(default_factory=list)


class QuoteBlock(BaseBlock):
    type: Literal["quote"] = "quote"
    content: str = ""
    citation: Optional[str] = None


class CodeBlock(BaseBlock):
    type: Literal["code"] = "code"
    content: str = ""
    language: Optional[str] = None


class PollBlock(BaseBlock):
    type: Literal["poll"] = "poll"
    question: str = ""
    options: list[str] = Field(default_factory=list)
    multiple_choice: bool = False


class EmbedBlock(BaseBlock):
    type: Literal["embed"] = "embed"
    url: str = ""
    provider: Optional[str] = None
    html: Optional[str] = None


class TableBlock(BaseBlock):
    type: Literal["table"] = "table"
    headers: list[str] = Field(default_factory=list)
    rows: list[list[str]] = Field(default_factory=list)


class ColumnsBlock(BaseBlock):
    type: Literal["columns"] = "columns"
    columns: list[list["Block"]] = Field(default_factory=lambda: [[], []])


class TocBlock(BaseBlock):
    type: Literal["toc"] = "toc"
    title: str = "Contents"


class DividerBlock(BaseBlock):
    type: Literal["divider"] = "divider"


Block = Annotated[
    Union[
        ParagraphBlock,
        HeadingBlock,
        ImageBlock,
        VideoBlock,
        ListBlock,
        QuoteBlock,
        CodeBlock,
        PollBlock,
        EmbedBlock,
        TableBlock,
        ColumnsBlock,
        TocBlock,
        DividerBlock,
    ],
    Field(discriminator="type"),
]

ColumnsBlock.model_rebuild()

_block_adapter: TypeAdapter = TypeAdapter(Block)
_block_list_adapter: TypeAdapter = TypeAdapter(list[Block])


# ---------------------------------------------------------------------------
# Legacy shape normalization
# ---------------------------------------------------------------------------

_HEADING_TYPE = re.compile(r"^heading-?(\d)$")
_HEADING_TAG = re.compile(r"^h?(\d)$", re.IGNORECASE)
_LIST_MARKER = re.compile(r"^\s*(?:[-*•]|\d+[.)])\s+")

_RENAMED_KEYS = {
    "imageUrl": "src",
    "altText": "alt",
    "videoId": "video_id",
    "multipleChoice": "multiple_choice",
    "position": "align",
}


def rename_legacy_keys(block: dict[str, Any], overwrite: bool = False) -> dict[str, Any]:
    """Map camelCase keys from the older editors onto canonical field names, in place."""
    for old, new in _RENAMED_KEYS.items():
        if old in block:
            value = block.pop(old)
            if overwrite or block.get(new) in (None, ""):
                block[new] = value
    return block


def normalize_block(raw: dict[str, Any]) -> dict[str, Any]:
    """Rewrite a block dict written by any editor into the canonical shape."""
    if isinstance(raw, BaseBlock):
        raw = dump_block(raw)
    if not isinstance(raw, dict):
        raise BlockValidationError(f"Block must be an object, got {type(raw).__name__}")

    block = rename_legacy_keys(dict(raw))

    block_type = str(block.get("type") or "paragraph")

    match = _HEADING_TYPE.match(block_type)
    if match:
        block_type = "heading"
        block["level"] = int(match.group(1))
    elif block_type == "heading" and "level" not in block:
        tag = _HEADING_TAG.match(str(block.pop("heading", "") or ""))
        block["level"] = int(tag.group(1)) if tag else 2
    elif block_type in ("list-ordered", "list-unordered"):
        block["ordered"] = block_type == "list-ordered"
        block_type = "list"

    if block_type == "list" and not block.get("items") and block.get("content"):
        block["items"] = [
            _LIST_MARKER.sub("", line).strip()
            for line in str(block.pop("content")).splitlines()
            if line.strip()
        ]

    if block_type == "columns":
        block["columns"] = [
            [normalize_block(child) for child in column or []]
            for column in block.get("columns") or []
        ]

    block["type"] = block_type
    if not block.get("id"):
        block["id"] = _new_id()
    else:
        block["id"] = str(block["id"])
    return block


def _format_errors(exc: ValidationError) -> list[dict[str, Any]]:
    return [
        {
            "field": ".".join(str(part) for part in err["loc"]),
            "message": err["msg"],
        }
        for err in exc.errors()
    ]


def parse_blocks(raw: Any) -> list[Block]:
    """Validate and normalize stored or submitted content into typed blocks.

    Accepts a list of dicts, a JSON string holding one, or None (empty).
    Unknown block types raise :class:`BlockValidationError`.
    """
    if raw is None or raw == "":
        return []
    if isinstance(raw, str):
        try:
            raw = json.loads(raw)
        except json.JSONDecodeError as e:
            raise BlockValidationError(f"Content is not valid JSON: {e.msg}") from e
    if not isinstance(raw, list):
        raise BlockValidationError("Content must be a list of blocks")

    normalized = [normalize_block(item) for item in raw]
    try:
        return _block_list_adapter.validate_python(normalized)
    except ValidationError as e:
        raise BlockValidationError("Invalid content blocks", _format_errors(e)) from e


def parse_block(raw: dict[str, Any]) -> Block:
    """Validate a single block dict."""
    try:
        return _block_adapter.validate_python(normalize_block(raw))
    except ValidationError as e:
        raise BlockValidationError("Invalid content block", _format_errors(e)) from e


def dump_block(block: BaseBlock) -> dict[str, Any]:
    return block.model_dump(mode="json", exclude_none=True)


def dump_blocks(blocks: list[BaseBlock]) -> list[dict[str, Any]]:
    """Serialize blocks to JSON-ready dicts for storage."""
    return [dump_block(block) for block in blocks]


def normalize_content(raw: Any) -> list[dict[str, Any]]:
    """parse + dump in one step, the shape persisted on the article row."""
    return dump_blocks(parse_blocks(raw))


def new_block(block_type: str, **fields: Any) -> Block:
    """Create an empty block of ``block_type`` with a fresh id."""
    data = normalize_block({"type": block_type, **fields, "id": _new_id()})
    if data["type"] not in BLOCK_TYPES:
        raise BlockValidationError(f"Unknown block type: {block_type}")
    return parse_block(data)
