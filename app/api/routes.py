"""
Asset routes.

One router per AssetKind, built by build_asset_router():
- GET    /v1/{kind}s/{id}        by-id lookup (tombstones included)
- GET    /v1/{kind}s?tags=a,b    any-of tag search
- GET    /v1/{kind}s?page&limit&tag   paged listing
- POST   /v1/{kind}s/upload      multipart create
- DELETE /v1/{kind}s/{id}        soft delete
"""

from typing import Optional

from fastapi import APIRouter, Request
from starlette.datastructures import UploadFile

from app.common.logging import get_logger
from app.core.catalog import AssetKind, CatalogQueryService, IngestionService
from .schemas import AssetResponse, ErrorResponse, TagSearchResponse

logger = get_logger(__name__)


def _errors(*codes: int) -> dict:
    """OpenAPI entries for the {"error": ...} bodies rendered by app.api.errors."""
    return {code: {"model": ErrorResponse} for code in codes}


def get_query_service(request: Request) -> CatalogQueryService:
    return request.app.state.query_service


def get_ingestion_service(request: Request) -> IngestionService:
    return request.app.state.ingestion_service


def build_asset_router(kind: AssetKind) -> APIRouter:
    """Routes for one asset kind under /v1/<kind>s."""
    router = APIRouter(prefix=f"/v1/{kind.plural}", tags=[kind.plural])
    items_key = kind.plural
    total_key = f"total{kind.label}s"

    @router.get("", responses=_errors(400))
    async def list_assets(
        request: Request,
        tags: Optional[str] = None,
        page: Optional[str] = None,
        limit: Optional[str] = None,
        tag: Optional[str] = None,
    ):
        """Tag search when `tags` is given, paged listing otherwise."""
        service = get_query_service(request)

        if "tags" in request.query_params:
            result = await service.list_by_tags(kind, tags, page=page, page_size=limit)
            return TagSearchResponse(
                items=[AssetResponse(**asset.to_dict()) for asset in result.items],
                totalCount=result.total_count,
                totalPages=result.total_pages,
                currentPage=result.current_page,
            )

        result = await service.list_all(
            kind,
            page=page if page is not None else 1,
            page_size=limit if limit is not None else 10,
            tag=tag,
        )
        return {
            items_key: [asset.to_dict() for asset in result.items],
            total_key: result.total_count,
            "totalPages": result.total_pages,
            "currentPage": result.current_page,
            "hasNextPage": result.has_next_page,
            "hasPreviousPage": result.has_previous_page,
        }

    @router.get("/{asset_id}", response_model=AssetResponse, responses=_errors(400, 404))
    async def get_asset(asset_id: str, request: Request):
        asset = await get_query_service(request).get_by_id(kind, asset_id)
        return AssetResponse(**asset.to_dict())

    @router.post("/upload", response_model=AssetResponse, status_code=201, responses=_errors(400))
    async def upload_asset(request: Request):
        """
        Multipart upload.

        Fields: `photo`/`video` file, `tags` JSON array string,
        optional `imageId`/`videoId`, optional `title`.
        """
        form = await request.form()
        upload = form.get(kind.upload_field)

        filename = None
        content = None
        if isinstance(upload, UploadFile) and upload.filename:
            filename = upload.filename
            content = await upload.read()

        asset = await get_ingestion_service(request).upload(
            kind,
            filename=filename,
            content=content,
            tags_raw=form.get("tags"),
            asset_id=form.get(kind.id_field) or form.get("id"),
            title=form.get("title") or "",
        )
        return AssetResponse(**asset.to_dict())

    @router.delete("/{asset_id}", response_model=AssetResponse, responses=_errors(400, 404))
    async def delete_asset(asset_id: str, request: Request):
        asset = await get_ingestion_service(request).soft_delete(kind, asset_id)
        return AssetResponse(**asset.to_dict())

    return router
