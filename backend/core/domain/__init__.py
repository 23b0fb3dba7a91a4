# Domain objects
# Pure content and membership logic with no database or HTTP dependencies
from .blocks import (
    BLOCK_TYPES,
    Block,
    BlockValidationError,
    dump_blocks,
    new_block,
    normalize_content,
    parse_blocks,
)
from .editor import BlockEditor
from .rendering import build_table_of_contents, calculate_read_time, render_html, render_text
from .subscription import MembershipTier, SubscriptionStatus, tier_for_price

__all__ = [
    "BLOCK_TYPES",
    "Block",
    "BlockValidationError",
    "parse_blocks",
    "dump_blocks",
    "normalize_content",
    "new_block",
    "BlockEditor",
    "render_html",
    "render_text",
    "calculate_read_time",
    "build_table_of_contents",
    "MembershipTier",
    "SubscriptionStatus",
    "tier_for_price",
]
