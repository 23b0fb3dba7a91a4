"""
Unit tests for the block editor session.
"""

import pytest

from core.domain.blocks import BlockValidationError
from core.domain.editor import BlockEditor


@pytest.fixture
def changes():
    return []


@pytest.fixture
def editor(changes):
    return BlockEditor(
        [
            {"id": "a", "type": "heading", "level": 2, "content": "Intro"},
            {"id": "b", "type": "paragraph", "content": "Body"},
            {"id": "c", "type": "divider"},
        ],
        on_change=changes.append,
    )


class TestBlockEditor:
    """Block list mutations."""

    def test_empty_editor_starts_with_paragraph(self):
        editor = BlockEditor()
        assert len(editor) == 1
        assert editor[0].type == "paragraph"

    def test_add_block_after_active(self, editor, changes):
        editor.set_active(0)
        block = editor.add_block("quote", content="One small step")

        assert [b.id for b in editor.blocks][:2] == ["a", block.id]
        assert editor.active_index == 1
        assert changes[-1][1]["type"] == "quote"

    def test_add_block_at_top(self, editor):
        block = editor.add_block("paragraph", index=-1)
        assert editor[0].id == block.id

    def test_update_keeps_id(self, editor):
        updated = editor.update_block(1, {"id": "hijack", "content": "Edited"})
        assert updated.id == "b"
        assert updated.content == "Edited"

    def test_update_can_change_type(self, editor):
        updated = editor.update_block(0, {"type": "paragraph"})
        assert updated.type == "paragraph"
        assert updated.content == "Intro"
        assert not hasattr(updated, "level")

    def test_update_accepts_legacy_keys(self, changes):
        editor = BlockEditor([{"id": "i", "type": "image", "src": "/old.png"}], on_change=changes.append)
        updated = editor.update_block(0, {"imageUrl": "/new.png"})
        assert updated.src == "/new.png"

    def test_update_rejects_invalid_data(self, editor):
        with pytest.raises(BlockValidationError):
            editor.update_block(0, {"level": 9})

    def test_update_out_of_range(self, editor):
        with pytest.raises(IndexError):
            editor.update_block(5, {"content": "x"})

    def test_remove_block_moves_focus_back(self, editor):
        editor.remove_block(2)
        assert len(editor) == 2
        assert editor.active_index == 1

    def test_remove_last_block_leaves_paragraph(self):
        editor = BlockEditor([{"id": "only", "type": "divider"}])
        editor.remove_block(0)
        assert len(editor) == 1
        assert editor[0].type == "paragraph"
        assert editor[0].id != "only"

    def test_move_block(self, editor):
        assert editor.move_block(1, "up") is True
        assert [b.id for b in editor.blocks] == ["b", "a", "c"]
        assert editor.active_index == 0

    def test_move_block_at_edge(self, editor, changes):
        assert editor.move_block(0, "up") is False
        assert editor.move_block(2, "down") is False
        assert changes == []

    def test_reorder(self, editor):
        editor.reorder(0, 2)
        assert [b.id for b in editor.blocks] == ["b", "c", "a"]
        assert editor.active_index == 2


class TestValidateForSave:
    def test_clean_content(self, editor):
        assert editor.validate_for_save() == []

    def test_required_fields(self):
        editor = BlockEditor(
            [
                {"type": "image", "src": ""},
                {"type": "poll", "question": "Best rocket?", "options": ["Falcon 9"]},
                {"type": "embed"},
            ]
        )
        problems = editor.validate_for_save()
        assert "Block 1: image needs a source URL" in problems
        assert "Block 2: poll needs at least two options" in problems
        assert "Block 3: embed needs a URL" in problems

    def test_blank_poll_option(self):
        editor = BlockEditor(
            [{"type": "poll", "question": "Q", "options": ["A", "B", " "]}]
        )
        assert editor.validate_for_save() == ["Block 1: all poll options must have text"]

    def test_nested_column_problems(self):
        editor = BlockEditor(
            [{"type": "columns", "columns": [[{"type": "image"}], []]}]
        )
        assert editor.validate_for_save() == ["Block 1: image needs a source URL"]
