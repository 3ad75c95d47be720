"""Content-block validation, filtering, statistics and JSON import/export.

Validators return lists of human-readable messages and never raise; the
admin routes turn a non-empty list into a 400 response.
"""

import json
import re
from collections import Counter
from typing import Any, Dict, List, Mapping, Sequence

from pydantic import ValidationError

from app.models.block import BLOCK_TYPES, BlockStatistics, ContentBlock

_BLOCK_ID_RE = re.compile(r"^[a-z0-9-]+$")

MAX_TITLE_LENGTH = 100
MAX_BODY_LENGTH = 1000
MIN_WEIGHT = 1
MAX_WEIGHT = 100

_CONSTRAINT_FIELDS = (
    ("slots", "Slots must be an array"),
    ("categories", "Categories must be an array"),
    ("mutually_exclusive", "Mutually exclusive must be an array"),
)


class BlockImportError(ValueError):
    """Raised when an exported block file cannot be parsed or fails validation."""


def _text(value: Any) -> str:
    return value if isinstance(value, str) else ""


def validate_block(data: Mapping[str, Any]) -> List[str]:
    """Return every shape problem of the block described by *data*."""
    errors: List[str] = []

    block_id = _text(data.get("id"))
    if not block_id.strip():
        errors.append("Block ID is required")
    elif not _BLOCK_ID_RE.match(block_id):
        errors.append("Block ID must contain only lowercase letters, numbers, and hyphens")

    if data.get("type") not in BLOCK_TYPES:
        errors.append(f"Block type must be one of: {', '.join(BLOCK_TYPES)}")

    title = _text(data.get("title"))
    if not title.strip():
        errors.append("Block title is required")
    elif len(title) > MAX_TITLE_LENGTH:
        errors.append(f"Block title must be {MAX_TITLE_LENGTH} characters or less")

    body = _text(data.get("body"))
    if not body.strip():
        errors.append("Block body is required")
    elif len(body) > MAX_BODY_LENGTH:
        errors.append(f"Block body must be {MAX_BODY_LENGTH} characters or less")

    weight = data.get("weight")
    if (
        isinstance(weight, bool)
        or not isinstance(weight, (int, float))
        or not MIN_WEIGHT <= weight <= MAX_WEIGHT
    ):
        errors.append(f"Block weight must be a number between {MIN_WEIGHT} and {MAX_WEIGHT}")

    if not _text(data.get("locale")).strip():
        errors.append("Block locale is required")

    constraints = data.get("constraints")
    if constraints is not None:
        if not isinstance(constraints, Mapping):
            errors.append("Constraints must be an object")
        else:
            for field, message in _CONSTRAINT_FIELDS:
                value = constraints.get(field)
                if value is not None and not isinstance(value, list):
                    errors.append(message)

    return errors


def validate_block_constraints(block: ContentBlock, all_blocks: Sequence[ContentBlock]) -> List[str]:
    """Report conflicts between *block* and the rest of the pool.

    Two kinds of conflict are reported: other blocks that declare *block*
    mutually exclusive while *block* itself declares exclusions, and slots
    already claimed by blocks sharing one of *block*'s categories.
    """
    errors: List[str] = []
    others = [b for b in all_blocks if b.id != block.id]

    if block.constraints.mutually_exclusive:
        conflicting = [b.id for b in others if block.id in b.constraints.mutually_exclusive]
        if conflicting:
            errors.append(
                f"Block conflicts with mutually exclusive blocks: {', '.join(conflicting)}"
            )

    categories = set(block.constraints.categories)
    if block.constraints.slots and categories:
        same_category = [b for b in others if categories & set(b.constraints.categories)]
        for slot in block.constraints.slots:
            users = [b.id for b in same_category if slot in b.constraints.slots]
            if users:
                errors.append(f'Slot "{slot}" already used by blocks: {", ".join(users)}')

    return errors


def blocks_by_type(blocks: Sequence[ContentBlock], block_type: str) -> List[ContentBlock]:
    return [b for b in blocks if b.type == block_type]


def blocks_by_locale(blocks: Sequence[ContentBlock], locale: str) -> List[ContentBlock]:
    return [b for b in blocks if b.locale == locale]


def blocks_by_category(blocks: Sequence[ContentBlock], category_id: str) -> List[ContentBlock]:
    return [b for b in blocks if category_id in b.constraints.categories]


def blocks_by_slot(blocks: Sequence[ContentBlock], slot: str) -> List[ContentBlock]:
    return [b for b in blocks if slot in b.constraints.slots]


def blocks_by_review(blocks: Sequence[ContentBlock], reviewed: bool) -> List[ContentBlock]:
    return [b for b in blocks if b.reviewed is reviewed]


def block_statistics(blocks: Sequence[ContentBlock]) -> BlockStatistics:
    by_category: Counter = Counter()
    for block in blocks:
        by_category.update(block.constraints.categories)

    reviewed = sum(1 for b in blocks if b.reviewed)
    return BlockStatistics(
        total=len(blocks),
        by_type=dict(Counter(b.type for b in blocks)),
        by_locale=dict(Counter(b.locale for b in blocks)),
        by_category=dict(by_category),
        reviewed=reviewed,
        unreviewed=len(blocks) - reviewed,
    )


def export_blocks(blocks: Sequence[ContentBlock]) -> str:
    return json.dumps([b.model_dump(exclude_none=True) for b in blocks], indent=2, ensure_ascii=False)


def import_blocks(json_text: str) -> List[ContentBlock]:
    """Parse and validate an exported block list.

    Raises:
        BlockImportError: if the text is not a JSON list or any block is invalid.
    """
    try:
        raw = json.loads(json_text)
    except json.JSONDecodeError as exc:
        raise BlockImportError(f"Failed to parse blocks: {exc}") from exc

    if not isinstance(raw, list):
        raise BlockImportError("Failed to parse blocks: expected a JSON array")

    errors: List[str] = []
    for index, item in enumerate(raw, start=1):
        item_dict: Dict[str, Any] = item if isinstance(item, dict) else {}
        block_errors = validate_block(item_dict)
        if block_errors:
            errors.append(f"Block {index} ({item_dict.get('id')}): {', '.join(block_errors)}")

    if errors:
        raise BlockImportError("Import validation failed:\n" + "\n".join(errors))

    try:
        return [ContentBlock.model_validate(item) for item in raw]
    except ValidationError as exc:
        raise BlockImportError(f"Failed to parse blocks: {exc}") from exc
