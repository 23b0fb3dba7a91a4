"""
Unit tests for the content block model.

Covers:
- Legacy block shapes normalized to the canonical form
- Validation errors with field/message details
- Stable ids
"""

import json

import pytest

from core.domain.blocks import (
    BlockValidationError,
    new_block,
    normalize_content,
    parse_blocks,
)


class TestLegacyNormalization:
    """Blocks written by older editors converge on one shape."""

    def test_numbered_heading_type(self):
        blocks = normalize_content([{"id": "h1", "type": "heading-3", "content": "Orbit"}])
        assert blocks == [{"id": "h1", "type": "heading", "level": 3, "content": "Orbit"}]

    def test_heading_tag_field(self):
        blocks = normalize_content([{"type": "heading", "heading": "h4", "content": "Landing"}])
        assert blocks[0]["level"] == 4
        assert "heading" not in blocks[0]

    def test_heading_defaults_to_level_two(self):
        blocks = normalize_content([{"type": "heading", "content": "Launch"}])
        assert blocks[0]["level"] == 2

    def test_camel_case_image_keys(self):
        blocks = normalize_content(
            [{"type": "image", "imageUrl": "https://img/x.jpg", "altText": "Booster"}]
        )
        assert blocks[0]["src"] == "https://img/x.jpg"
        assert blocks[0]["alt"] == "Booster"
        assert "imageUrl" not in blocks[0]

    def test_list_from_text_content(self):
        blocks = normalize_content(
            [{"type": "list-ordered", "content": "1. Ignition\n2. Liftoff\n\n3. MECO"}]
        )
        assert blocks[0]["type"] == "list"
        assert blocks[0]["ordered"] is True
        assert blocks[0]["items"] == ["Ignition", "Liftoff", "MECO"]

    def test_unordered_list_markers(self):
        blocks = normalize_content([{"type": "list-unordered", "content": "- one\n* two\n• three"}])
        assert blocks[0]["ordered"] is False
        assert blocks[0]["items"] == ["one", "two", "three"]

    def test_missing_type_is_paragraph(self):
        blocks = normalize_content([{"content": "Plain text"}])
        assert blocks[0]["type"] == "paragraph"

    def test_nested_columns_are_normalized(self):
        blocks = normalize_content(
            [
                {
                    "type": "columns",
                    "columns": [
                        [{"type": "heading-2", "content": "Left"}],
                        [{"type": "image", "imageUrl": "/a.png"}],
                    ],
                }
            ]
        )
        left, right = blocks[0]["columns"]
        assert left[0]["type"] == "heading"
        assert right[0]["src"] == "/a.png"


class TestParsing:
    """Input forms accepted by parse_blocks."""

    def test_none_and_empty(self):
        assert parse_blocks(None) == []
        assert parse_blocks("") == []

    def test_json_string(self):
        raw = json.dumps([{"id": "p1", "type": "paragraph", "content": "Hi"}])
        blocks = parse_blocks(raw)
        assert len(blocks) == 1
        assert blocks[0].content == "Hi"

    def test_invalid_json_string(self):
        with pytest.raises(BlockValidationError):
            parse_blocks("[not json")

    def test_not_a_list(self):
        with pytest.raises(BlockValidationError, match="list of blocks"):
            parse_blocks({"type": "paragraph"})

    def test_unknown_type_reports_errors(self):
        with pytest.raises(BlockValidationError) as exc_info:
            parse_blocks([{"type": "marquee", "content": "nope"}])
        assert exc_info.value.errors
        assert all({"field", "message"} <= set(err) for err in exc_info.value.errors)

    def test_heading_level_out_of_range(self):
        with pytest.raises(BlockValidationError):
            parse_blocks([{"type": "heading", "level": 7, "content": "Too deep"}])

    def test_ids_assigned_and_preserved(self):
        blocks = normalize_content([{"type": "paragraph"}, {"id": 42, "type": "divider"}])
        assert blocks[0]["id"]
        assert blocks[1]["id"] == "42"


class TestNewBlock:
    def test_fresh_ids(self):
        assert new_block("paragraph").id != new_block("paragraph").id

    def test_unknown_type(self):
        with pytest.raises(BlockValidationError):
            new_block("carousel")
