"""
Category API endpoints
"""
from typing import Any, Dict, List

from fastapi import APIRouter, Body, Query, Response, status

from app.api.deps import CategoryServiceDep
from app.schemas.category import (
    AttributeValidationResult,
    CategoryCreate,
    CategoryDetail,
    CategoryRead,
    CategoryReorder,
    CategoryStats,
    CategorySuggestionRequest,
    CategoryTree,
    CategoryUpdate,
)
from app.schemas.common import MessageResponse

router = APIRouter()


@router.get("/tree", response_model=List[CategoryTree], summary="Get category tree")
async def get_tree(
    category_service: CategoryServiceDep,
    active_only: bool = Query(True, description="Hide inactive categories and their subtrees"),
) -> List[CategoryTree]:
    return await category_service.get_tree(active_only=active_only)


@router.get("/featured", response_model=List[CategoryRead], summary="Get featured categories")
async def get_featured(category_service: CategoryServiceDep) -> List[CategoryRead]:
    return await category_service.get_featured()


@router.get("/search", response_model=List[CategoryRead], summary="Search categories")
async def search_categories(
    category_service: CategoryServiceDep,
    q: str = Query(..., min_length=1, description="Search query"),
    limit: int = Query(20, ge=1, le=100),
) -> List[CategoryRead]:
    return await category_service.search(q, limit)


@router.post("/suggestions", response_model=List[CategoryRead], summary="Suggest categories for a listing")
async def suggest_categories(
    payload: CategorySuggestionRequest, category_service: CategoryServiceDep
) -> List[CategoryRead]:
    return await category_service.suggest_categories(payload.title, payload.description)


@router.post("/reorder", response_model=MessageResponse, summary="Reorder categories")
async def reorder_categories(payload: CategoryReorder, category_service: CategoryServiceDep) -> MessageResponse:
    """Apply all sort orders in one transaction"""
    await category_service.reorder(payload.categories)
    return MessageResponse(message="Categories reordered successfully")


@router.get("/slug/{slug}", response_model=CategoryDetail, summary="Get category by slug")
async def get_category_by_slug(slug: str, category_service: CategoryServiceDep) -> CategoryDetail:
    return await category_service.get_by_slug(slug)


@router.post("/", response_model=CategoryDetail, status_code=status.HTTP_201_CREATED, summary="Create category")
async def create_category(payload: CategoryCreate, category_service: CategoryServiceDep) -> CategoryDetail:
    return await category_service.create(payload)


@router.get("/{category_id}", response_model=CategoryDetail, summary="Get category")
async def get_category(category_id: int, category_service: CategoryServiceDep) -> CategoryDetail:
    return await category_service.get(category_id)


@router.put("/{category_id}", response_model=CategoryDetail, summary="Update category")
async def update_category(
    category_id: int, payload: CategoryUpdate, category_service: CategoryServiceDep
) -> CategoryDetail:
    """
    Partial update: omitted or null fields are left unchanged.

    - **parent_id**: 0 moves the category to the root
    """
    return await category_service.update(category_id, payload)


@router.delete("/{category_id}", status_code=status.HTTP_204_NO_CONTENT, summary="Delete category")
async def delete_category(category_id: int, category_service: CategoryServiceDep) -> Response:
    """Only leaf categories without listings can be deleted"""
    await category_service.delete(category_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/{category_id}/children", response_model=List[CategoryRead])
async def get_children(category_id: int, category_service: CategoryServiceDep) -> List[CategoryRead]:
    return await category_service.get_children(category_id)


@router.get("/{category_id}/path", response_model=List[CategoryRead], summary="Root-to-category path")
async def get_path(category_id: int, category_service: CategoryServiceDep) -> List[CategoryRead]:
    return await category_service.get_path(category_id)


@router.get("/{category_id}/breadcrumb", response_model=Dict[str, str])
async def get_breadcrumb(category_id: int, category_service: CategoryServiceDep) -> Dict[str, str]:
    return {"breadcrumb": await category_service.get_breadcrumb(category_id)}


@router.get("/{category_id}/form-fields", response_model=List[Dict[str, Any]])
async def get_form_fields(category_id: int, category_service: CategoryServiceDep) -> List[Dict[str, Any]]:
    return await category_service.get_form_fields(category_id)


@router.post("/{category_id}/validate-attributes", response_model=AttributeValidationResult)
async def validate_attributes(
    category_id: int,
    category_service: CategoryServiceDep,
    data: Dict[str, Any] = Body(...),
) -> AttributeValidationResult:
    """Check listing attribute values against the category schema"""
    errors = await category_service.validate_attributes(category_id, data)
    return AttributeValidationResult(valid=not errors, errors=errors)


@router.post("/{category_id}/toggle-status", response_model=CategoryRead)
async def toggle_status(category_id: int, category_service: CategoryServiceDep) -> CategoryRead:
    return await category_service.toggle_status(category_id)


@router.get("/{category_id}/stats", response_model=CategoryStats)
async def get_stats(category_id: int, category_service: CategoryServiceDep) -> CategoryStats:
    return await category_service.get_stats(category_id)
