"""Block editor session.

:class:`BlockEditor` holds the ordered block list of one article plus the
index of the block the author is working in. Every mutation goes through the
same validation as stored content and reports the new JSON-ready list to an
optional ``on_change`` callback.

A session assumes a single editor: there is no merge or conflict handling.
"""

from typing import Any, Callable, Literal, Optional

from .blocks import (
    BaseBlock,
    Block,
    BlockValidationError,
    dump_block,
    dump_blocks,
    new_block,
    parse_block,
    parse_blocks,
    rename_legacy_keys,
)

ChangeCallback = Callable[[list[dict[str, Any]]], None]


class BlockEditor:
    """Editing operations over an ordered list of content blocks."""

    def __init__(
        self,
        blocks: Optional[list[Any]] = None,
        on_change: Optional[ChangeCallback] = None,
    ):
        parsed = parse_blocks(blocks) if blocks else []
        self._blocks: list[Block] = parsed or [new_block("paragraph")]
        self.active_index = 0
        self._on_change = on_change

    def __len__(self) -> int:
        return len(self._blocks)

    def __getitem__(self, index: int) -> Block:
        return self._blocks[index]

    @property
    def blocks(self) -> list[Block]:
        """A copy of the current block list."""
        return list(self._blocks)

    @property
    def active_block(self) -> Block:
        return self._blocks[self.active_index]

    def _check_index(self, index: int) -> None:
        if not 0 <= index < len(self._blocks):
            raise IndexError(f"Block index {index} out of range (0..{len(self._blocks) - 1})")

    def _changed(self) -> None:
        if self._on_change is not None:
            self._on_change(self.to_json())

    def set_active(self, index: int) -> None:
        self._check_index(index)
        self.active_index = index

    def add_block(self, block_type: str, index: Optional[int] = None, **fields: Any) -> Block:
        """Insert a new block after ``index`` (default: the active block).

        ``index=-1`` inserts at the top. The new block becomes active.
        """
        after = self.active_index if index is None else index
        if not -1 <= after < len(self._blocks):
            raise IndexError(f"Block index {after} out of range")

        block = new_block(block_type, **fields)
        position = after + 1
        self._blocks.insert(position, block)
        self.active_index = position
        self._changed()
        return block

    def update_block(self, index: int, patch: dict[str, Any]) -> Block:
        """Merge ``patch`` into the block at ``index``.

        The block id never changes. The type only changes when the patch
        names a different ``type``, in which case the merged data is
        validated as that type and fields it does not know are dropped.
        """
        self._check_index(index)
        current = self._blocks[index]
        changes = rename_legacy_keys(dict(patch), overwrite=True)
        changes.pop("id", None)
        merged = {**dump_block(current), **changes, "id": current.id}

        updated = parse_block(merged)
        self._blocks[index] = updated
        self._changed()
        return updated

    def remove_block(self, index: int) -> None:
        """Remove a block. Removing the last one leaves an empty paragraph."""
        self._check_index(index)
        if len(self._blocks) == 1:
            self._blocks = [new_block("paragraph")]
            self.active_index = 0
        else:
            del self._blocks[index]
            self.active_index = index - 1 if index > 0 else 0
        self._changed()

    def move_block(self, index: int, direction: Literal["up", "down"]) -> bool:
        """Swap a block with its neighbour. Returns False when already at the edge."""
        self._check_index(index)
        if direction not in ("up", "down"):
            raise ValueError(f"direction must be 'up' or 'down', got {direction!r}")

        target = index - 1 if direction == "up" else index + 1
        if not 0 <= target < len(self._blocks):
            return False

        self._blocks[index], self._blocks[target] = self._blocks[target], self._blocks[index]
        self.active_index = target
        self._changed()
        return True

    def reorder(self, source: int, destination: int) -> None:
        """Move the block at ``source`` so it ends up at ``destination`` (drag and drop)."""
        self._check_index(source)
        self._check_index(destination)
        if source == destination:
            return

        block = self._blocks.pop(source)
        self._blocks.insert(destination, block)
        self.active_index = destination
        self._changed()

    def validate_for_save(self) -> list[str]:
        """Required-field checks run before an explicit save.

        Returns human-readable problems; an empty list means the content can
        be saved.
        """
        problems: list[str] = []
        for position, block in enumerate(self._blocks, start=1):
            problems.extend(
                f"Block {position}: {message}" for message in _block_problems(block)
            )
        return problems

    def to_json(self) -> list[dict[str, Any]]:
        return dump_blocks(self._blocks)

    @classmethod
    def from_json(
        cls,
        data: Any,
        on_change: Optional[ChangeCallback] = None,
    ) -> "BlockEditor":
        return cls(data, on_change=on_change)


def _block_problems(block: BaseBlock) -> list[str]:
    if block.type == "image" and not block.src.strip():
        return ["image needs a source URL"]
    if block.type == "poll":
        problems = []
        if not block.question.strip():
            problems.append("poll needs a question")
        options = [option for option in block.options if option.strip()]
        if len(options) < 2:
            problems.append("poll needs at least two options")
        elif len(options) != len(block.options):
            problems.append("all poll options must have text")
        return problems
    if block.type == "embed" and not block.url.strip():
        return ["embed needs a URL"]
    if block.type == "video" and not (block.url.strip() or block.video_id):
        return ["video needs a URL"]
    if block.type == "columns":
        return [
            message
            for column in block.columns
            for child in column
            for message in _block_problems(child)
        ]
    return []


__all__ = ["BlockEditor", "BlockValidationError"]
