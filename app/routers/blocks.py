import logging
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Body, Depends, HTTPException, Query, Request, Response
from pydantic import ValidationError

from app import config
from app.models.block import (
    BLOCK_TYPES,
    BlockImportResponse,
    BlockListResponse,
    BlockStatistics,
    ContentBlock,
)
from app.services.blocks import (
    BlockImportError,
    block_statistics,
    blocks_by_category,
    blocks_by_locale,
    blocks_by_review,
    blocks_by_type,
    export_blocks,
    import_blocks,
    validate_block,
    validate_block_constraints,
)
from app.services.repository import (
    DuplicateKeyError,
    InMemoryRepository,
    NotFoundError,
    get_block_repository,
)
from app.services.sanitizer import sanitize_block_body

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/admin/blocks", tags=["admin"])

EMPTY_BODY_MESSAGE = "Block body is empty after removing disallowed markup"

BlockRepository = InMemoryRepository[ContentBlock]


@router.get("", response_model=BlockListResponse, summary="List content blocks")
async def list_blocks(
    type: Optional[str] = None,
    locale: Optional[str] = None,
    category: Optional[str] = None,
    reviewed: Optional[bool] = None,
    repo: BlockRepository = Depends(get_block_repository),
) -> BlockListResponse:
    blocks = repo.list()
    if type:
        blocks = blocks_by_type(blocks, type)
    if locale:
        blocks = blocks_by_locale(blocks, locale)
    if category:
        blocks = blocks_by_category(blocks, category)
    if reviewed is not None:
        blocks = blocks_by_review(blocks, reviewed)

    return BlockListResponse(
        blocks=blocks,
        total=len(blocks),
        types=list(BLOCK_TYPES),
        slots=list(config.DEFAULT_SLOTS),
    )


@router.post("", status_code=201, summary="Create a content block")
async def create_block(
    body: Dict[str, Any] = Body(...),
    repo: BlockRepository = Depends(get_block_repository),
) -> dict:
    data = dict(body)
    data.setdefault("reviewed", False)
    block = _to_block(data)

    if repo.get(block.id) is not None:
        raise HTTPException(status_code=409, detail="Block with this ID already exists")

    _check_constraints(block, repo.list())
    try:
        repo.create(block)
    except DuplicateKeyError:
        raise HTTPException(status_code=409, detail="Block with this ID already exists")

    logger.info("Block created", extra={"block_id": block.id})
    return {"block": block.model_dump(), "message": "Block created successfully"}


@router.put("", summary="Update a content block")
async def update_block(
    body: Dict[str, Any] = Body(...),
    repo: BlockRepository = Depends(get_block_repository),
) -> dict:
    block_id = body.get("id")
    if not block_id:
        raise HTTPException(status_code=400, detail="Block ID is required")

    existing = repo.get(block_id)
    if existing is None:
        raise HTTPException(status_code=404, detail="Block not found")

    block = _to_block({**existing.model_dump(), **body})
    others = [b for b in repo.list() if b.id != block.id]
    _check_constraints(block, others)

    try:
        repo.update(block)
    except NotFoundError:
        raise HTTPException(status_code=404, detail="Block not found")

    logger.info("Block updated", extra={"block_id": block.id})
    return {"block": block.model_dump(), "message": "Block updated successfully"}


@router.delete("", summary="Delete a content block")
async def delete_block(
    id: str = Query(..., min_length=1),
    repo: BlockRepository = Depends(get_block_repository),
) -> dict:
    try:
        deleted = repo.delete(id)
    except NotFoundError:
        raise HTTPException(status_code=404, detail="Block not found")
    return {"message": "Block deleted successfully", "deleted_block": deleted.model_dump()}


@router.get("/stats", response_model=BlockStatistics, summary="Block pool statistics")
async def stats(repo: BlockRepository = Depends(get_block_repository)) -> BlockStatistics:
    return block_statistics(repo.list())


@router.get("/export", summary="Export every block as JSON")
async def export(repo: BlockRepository = Depends(get_block_repository)) -> Response:
    return Response(
        content=export_blocks(repo.list()),
        media_type="application/json",
        headers={"Content-Disposition": 'attachment; filename="blocks.json"'},
    )


@router.post("/import", response_model=BlockImportResponse, summary="Import exported blocks")
async def import_(request: Request, repo: BlockRepository = Depends(get_block_repository)) -> BlockImportResponse:
    """Create every block of an exported JSON list; ids that already exist are skipped."""
    raw = (await request.body()).decode("utf-8", errors="replace")
    try:
        blocks = import_blocks(raw)
    except BlockImportError as exc:
        logger.warning("Block import rejected: %s", exc)
        raise HTTPException(status_code=400, detail=str(exc))

    empty: List[str] = []
    for block in blocks:
        block.body = sanitize_block_body(block.body)
        if not block.body.strip():
            empty.append(f"Block {block.id}: {EMPTY_BODY_MESSAGE}")
    if empty:
        logger.warning("Block import rejected: %s", empty)
        raise HTTPException(status_code=400, detail={"error": "Validation failed", "details": empty})

    imported = 0
    skipped: List[str] = []
    for block in blocks:
        try:
            repo.create(block)
            imported += 1
        except DuplicateKeyError:
            skipped.append(block.id)

    logger.info("Blocks imported", extra={"imported": imported, "skipped": len(skipped)})
    return BlockImportResponse(imported=imported, skipped=skipped)


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------

def _to_block(data: Dict[str, Any]) -> ContentBlock:
    """Validate, sanitize and parse *data*, raising 400 with every problem found.

    Length limits apply to the submitted body; a body that sanitizes to
    nothing is rejected.
    """
    errors = validate_block(data)
    if errors:
        raise HTTPException(status_code=400, detail={"error": "Validation failed", "details": errors})

    data["body"] = sanitize_block_body(data["body"])
    if not data["body"].strip():
        raise HTTPException(
            status_code=400, detail={"error": "Validation failed", "details": [EMPTY_BODY_MESSAGE]}
        )

    try:
        return ContentBlock.model_validate(data)
    except ValidationError as exc:
        details = [f"{'.'.join(str(p) for p in e['loc'])}: {e['msg']}" for e in exc.errors()]
        raise HTTPException(status_code=400, detail={"error": "Validation failed", "details": details})


def _check_constraints(block: ContentBlock, pool: List[ContentBlock]) -> None:
    errors = validate_block_constraints(block, pool)
    if errors:
        logger.warning("Constraint conflict for block %s: %s", block.id, errors)
        raise HTTPException(
            status_code=400,
            detail={"error": "Constraint validation failed", "details": errors},
        )
