"""Deterministic content-block selection for page slots.

Given the full block pool and a page context, picks a bounded,
constraint-respecting subset of blocks per slot.  The result is a pure
function of ``(pool, context, slots, max_per_slot)``: the page key and build
salt seed the ordering, so rotation changes between builds but never within
one.
"""

import logging
from typing import Any, Dict, Iterable, List, Literal, Optional, Sequence, Set, Tuple, Union

from pydantic import ValidationError

from app.models.block import GLOBAL_LOCALE, ContentBlock, SelectionContext
from app.services.rng import SeededRandom, derive_seed

logger = logging.getLogger(__name__)

LocalePolicy = Literal["exact", "allow_global"]
Ordering = Literal["weight_first", "weighted_sample"]

PoolItem = Union[ContentBlock, Dict[str, Any]]


def _coerce(item: Any) -> Optional[ContentBlock]:
    """Return *item* as a :class:`ContentBlock`, or *None* when it is malformed."""
    if isinstance(item, ContentBlock):
        return item
    if not isinstance(item, dict):
        return None
    try:
        return ContentBlock.model_validate(item)
    except ValidationError:
        return None


def _is_eligible(block: ContentBlock, context: SelectionContext, locale_policy: LocalePolicy) -> bool:
    if not block.reviewed:
        return False
    if not block.id or not block.title.strip() or not block.body.strip():
        return False

    locale_ok = block.locale == context.locale
    if not locale_ok and locale_policy == "allow_global":
        locale_ok = block.locale == GLOBAL_LOCALE
    if not locale_ok:
        return False

    categories = block.constraints.categories
    return not categories or context.category_id in categories


def _fits_slot(block: ContentBlock, slot: str) -> bool:
    slots = block.constraints.slots
    return not slots or slot in slots


def _order(
    candidates: Iterable[ContentBlock], rng: SeededRandom, ordering: Ordering
) -> List[ContentBlock]:
    """Order *candidates* best-first.

    ``weight_first`` sorts by weight descending and uses the seeded draw only
    to break ties.  ``weighted_sample`` scores each block ``u ** (1 / weight)``
    (A-ES weighted sampling without replacement).
    """
    keyed: List[Tuple[Tuple, ContentBlock]] = []
    for block in candidates:
        weight = max(1, block.weight)
        draw = rng.fork(block.id).random()
        if ordering == "weighted_sample":
            key: Tuple = (-(draw ** (1.0 / weight)), block.id)
        else:
            key = (-weight, draw, block.id)
        keyed.append((key, block))
    keyed.sort(key=lambda pair: pair[0])
    return [block for _, block in keyed]


def _conflicts(block: ContentBlock, accepted: Dict[str, ContentBlock]) -> bool:
    """Return True when *block* is mutually exclusive with any accepted block.

    Exclusions are declared on one side but enforced in both directions.
    """
    if set(block.constraints.mutually_exclusive) & accepted.keys():
        return True
    return any(block.id in other.constraints.mutually_exclusive for other in accepted.values())


def select_blocks(
    pool: Sequence[PoolItem],
    context: SelectionContext,
    slots: Sequence[str],
    max_per_slot: int,
    *,
    locale_policy: LocalePolicy = "exact",
    ordering: Ordering = "weight_first",
) -> Dict[str, List[ContentBlock]]:
    """Select up to *max_per_slot* blocks for every slot in *slots*.

    Args:
        pool:          Every known block; raw dicts are accepted and any that
                       fail to parse are skipped.
        context:       Category, locale, page key and build salt of the page.
        slots:         Slot names to fill, in fill order.
        max_per_slot:  Cap on blocks returned for a single slot.
        locale_policy: ``"exact"`` or ``"allow_global"`` (blocks with locale
                       ``"*"`` also match).
        ordering:      ``"weight_first"`` or ``"weighted_sample"``.

    Returns:
        A mapping with one entry per slot, in *slots* order.  Slots without
        candidates map to an empty list.  A block is used at most once per
        page and mutual exclusions hold across all slots of the page.
    """
    eligible: List[ContentBlock] = []
    seen_ids: Set[str] = set()
    for item in pool:
        block = _coerce(item)
        if block is None or block.id in seen_ids:
            continue
        if _is_eligible(block, context, locale_policy):
            seen_ids.add(block.id)
            eligible.append(block)

    rng = SeededRandom(derive_seed(context.page_key, context.build_salt))
    accepted: Dict[str, ContentBlock] = {}
    result: Dict[str, List[ContentBlock]] = {}

    for slot in slots:
        if slot in result:
            continue
        chosen: List[ContentBlock] = []
        if max_per_slot > 0:
            candidates = [b for b in eligible if b.id not in accepted and _fits_slot(b, slot)]
            for block in _order(candidates, rng, ordering):
                if _conflicts(block, accepted):
                    continue
                accepted[block.id] = block
                chosen.append(block)
                if len(chosen) >= max_per_slot:
                    break
        result[slot] = chosen

    logger.debug(
        "Selected blocks for %s: %s",
        context.page_key,
        {slot: [b.id for b in blocks] for slot, blocks in result.items()},
    )
    return result
