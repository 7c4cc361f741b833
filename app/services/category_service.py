"""
Category tree engine: hierarchy maintenance, tree views and attribute validation
"""

from typing import Any, Dict, Iterable, List, Optional

from app.core.cache import CacheBackend, CacheKey, get_cache
from app.core.config import settings
from app.core.exceptions import ConflictError, InvalidOperationError, NotFoundError, ValidationError
from app.core.logging import log
from app.models.category import Category
from app.repositories.category import CategoryRepository
from app.schemas.attributes import ATTRIBUTE_TYPES
from app.schemas.category import (
    CategoryCreate,
    CategoryDetail,
    CategoryRead,
    CategoryReorderItem,
    CategoryStats,
    CategoryTree,
    CategoryUpdate,
)
from app.services.attribute_validation import validate_attributes
from app.utils.normalization import query_words, slugify

# Hops allowed when walking towards the root before the chain is treated as corrupt
MAX_TREE_DEPTH = 1000

SUGGESTION_LIMIT = 5


class CategoryService:
    """Service layer for category operations"""

    def __init__(self, category_repo: CategoryRepository, cache: Optional[CacheBackend] = None):
        self.category_repo = category_repo
        self.cache = cache or get_cache()

    def _key(self, *parts) -> CacheKey:
        return CacheKey("categories", *parts, backend=self.cache)

    async def _invalidate_cache(self, category_ids: Iterable[int] = ()) -> None:
        """Drop cached views; they are rebuilt lazily on the next read"""
        await self._key("tree", "active").delete()
        await self._key("tree", "all").delete()
        await self._key("featured").delete()
        for category_id in category_ids:
            await self._key("stats", category_id).delete()

    # Reads

    async def get_tree(self, active_only: bool = True) -> List[CategoryTree]:
        """
        Root categories with their descendants attached, ordered by
        (sort_order, name) at every level.

        With ``active_only`` an inactive category hides its whole subtree.
        """
        key = self._key("tree", "active" if active_only else "all")
        cached = await key.get()
        if cached is not None:
            log.debug("Category tree cache hit", key=key.build())
            return [CategoryTree.model_validate(node) for node in cached]

        rows = await self.category_repo.get_all_ordered(active_only=active_only)
        nodes = {row.id: CategoryTree.model_validate(row) for row in rows}

        roots: List[CategoryTree] = []
        for row in rows:
            node = nodes[row.id]
            if row.parent_id is None:
                roots.append(node)
            elif row.parent_id in nodes:
                nodes[row.parent_id].children.append(node)

        await key.set([root.model_dump(mode="json") for root in roots], ttl=settings.category_tree_cache_ttl)
        log.info("Category tree cached", active_only=active_only, roots=len(roots), total=len(rows))
        return roots

    async def get_featured(self) -> List[CategoryRead]:
        key = self._key("featured")
        cached = await key.get()
        if cached is not None:
            return [CategoryRead.model_validate(item) for item in cached]

        categories = [CategoryRead.model_validate(c) for c in await self.category_repo.get_featured()]
        await key.set([c.model_dump(mode="json") for c in categories], ttl=settings.category_featured_cache_ttl)
        return categories

    async def get(self, category_id: int) -> CategoryDetail:
        category = await self._get_or_404(category_id)
        return await self._hydrate(category)

    async def get_by_slug(self, slug: str) -> CategoryDetail:
        category = await self.category_repo.get_by_slug(slug)
        if not category:
            raise NotFoundError("Category not found", slug=slug)
        return await self._hydrate(category)

    async def get_children(self, category_id: int) -> List[CategoryRead]:
        await self._get_or_404(category_id)
        children = await self.category_repo.get_children(category_id)
        return [CategoryRead.model_validate(c) for c in children]

    async def search(self, query: str, limit: int = 20) -> List[CategoryRead]:
        categories = await self.category_repo.search(query, limit)
        return [CategoryRead.model_validate(c) for c in categories]

    async def get_path(self, category_id: int) -> List[CategoryRead]:
        """Ancestors of a category from the root down to the category itself"""
        category = await self._get_or_404(category_id)
        path = [category]
        while category.parent_id is not None:
            if len(path) > MAX_TREE_DEPTH:
                raise InvalidOperationError("Category hierarchy is too deep or circular", id=category_id)
            category = await self.category_repo.get(id=category.parent_id)
            if category is None:
                break
            path.append(category)
        return [CategoryRead.model_validate(c) for c in reversed(path)]

    async def get_breadcrumb(self, category_id: int) -> str:
        return " > ".join(c.name for c in await self.get_path(category_id))

    async def get_stats(self, category_id: int) -> CategoryStats:
        await self._get_or_404(category_id)

        key = self._key("stats", category_id)
        cached = await key.get()
        if cached is not None:
            return CategoryStats.model_validate(cached)

        stats = await self.category_repo.get_listing_stats(category_id)
        stats["total_children"] = await self.category_repo.count_children(category_id)
        stats["active_children"] = await self.category_repo.count_children(category_id, active_only=True)
        result = CategoryStats.model_validate(stats)

        await key.set(result.model_dump(mode="json"), ttl=settings.category_stats_cache_ttl)
        return result

    async def suggest_categories(self, title: str, description: str = "") -> List[CategoryRead]:
        """Active categories whose name or description mentions a word of the listing text"""
        words = query_words(f"{title} {description}")
        if not words:
            return []
        categories = await self.category_repo.search_any_word(words, limit=SUGGESTION_LIMIT)
        return [CategoryRead.model_validate(c) for c in categories]

    # Writes

    async def create(self, data: CategoryCreate) -> CategoryDetail:
        payload = data.model_dump(exclude_unset=True)
        parent_id = payload.pop("parent_id", None) or None

        if parent_id is not None and not await self.category_repo.exists(id=parent_id):
            raise NotFoundError("Parent category not found", parent_id=parent_id)

        slug = data.slug or slugify(data.name)
        if not slug:
            raise ValidationError("Category name must contain letters or digits", name=data.name)
        if await self.category_repo.get_by_slug(slug, active_only=False):
            raise ConflictError("Category slug already exists", slug=slug)

        payload.update(slug=slug, parent_id=parent_id)
        category = await self.category_repo.create(obj_in=payload)
        await self._invalidate_cache()

        log.info("Created category", category_id=category.id, slug=category.slug, parent_id=parent_id)
        return await self._hydrate(category)

    async def update(self, category_id: int, data: CategoryUpdate) -> CategoryDetail:
        """
        Apply the non-null fields of ``data``.

        A ``parent_id`` of 0 moves the category to the root. Renaming never
        regenerates a slug that is already set.
        """
        category = await self._get_or_404(category_id)
        update_data: Dict[str, Any] = {
            field: value for field, value in data.model_dump(exclude_unset=True).items() if value is not None
        }

        if "parent_id" in update_data:
            parent_id = update_data["parent_id"]
            if parent_id <= 0:
                update_data["parent_id"] = None
            elif parent_id != category.parent_id:
                await self._check_new_parent(category_id, parent_id)

        if "name" in update_data and update_data["name"] != category.name and not category.slug:
            update_data.setdefault("slug", slugify(update_data["name"]))

        if update_data.get("slug") and update_data["slug"] != category.slug:
            existing = await self.category_repo.get_by_slug(update_data["slug"], active_only=False)
            if existing and existing.id != category_id:
                raise ConflictError("Category slug already exists", slug=update_data["slug"])

        category = await self.category_repo.update(id=category_id, obj_in=update_data)
        await self._invalidate_cache([category_id])

        log.info("Updated category", category_id=category_id, fields=sorted(update_data))
        return await self._hydrate(category)

    async def delete(self, category_id: int) -> None:
        """Hard delete a category that has no children and no listings"""
        await self._get_or_404(category_id)

        children = await self.category_repo.count_children(category_id)
        if children:
            raise ConflictError("Cannot delete category with subcategories", children=children)

        listings = await self.category_repo.count_listings(category_id)
        if listings:
            raise ConflictError("Cannot delete category with existing listings", listings=listings)

        await self.category_repo.delete(id=category_id)
        await self._invalidate_cache([category_id])
        log.info("Deleted category", category_id=category_id)

    async def reorder(self, items: List[CategoryReorderItem]) -> None:
        """Apply sort_order changes atomically; unknown ids abort the whole batch"""
        ids = {item.id for item in items}
        missing = ids - await self.category_repo.existing_ids(ids)
        if missing:
            raise NotFoundError("Categories not found", ids=sorted(missing))

        await self.category_repo.bulk_update_sort_order(
            [{"id": item.id, "sort_order": item.sort_order} for item in items]
        )
        await self._invalidate_cache(ids)
        log.info("Reordered categories", count=len(items))

    async def toggle_status(self, category_id: int) -> CategoryRead:
        category = await self._get_or_404(category_id)
        category = await self.category_repo.update(id=category_id, obj_in={"is_active": not category.is_active})
        await self._invalidate_cache([category_id])

        log.info("Toggled category status", category_id=category_id, is_active=category.is_active)
        return CategoryRead.model_validate(category)

    # Dynamic attributes

    async def validate_attributes(self, category_id: int, data: Dict[str, Any]) -> Dict[str, str]:
        """Field errors for listing data submitted under this category; empty when valid"""
        category = await self._get_or_404(category_id)
        return validate_attributes(category.attributes, data)

    async def get_form_fields(self, category_id: int) -> List[Dict[str, Any]]:
        """Form field descriptors for the category's attributes; unknown category gives none"""
        category = await self.category_repo.get(id=category_id)
        if not category:
            return []

        fields = []
        for key, config in (category.attributes or {}).items():
            label = key.replace("_", " ")
            field_type = config.get("type") or "text"
            field: Dict[str, Any] = {
                "name": key,
                "label": config.get("label") or label[:1].upper() + label[1:],
                "type": field_type if field_type in ATTRIBUTE_TYPES else "text",
                "required": bool(config.get("required", False)),
                "placeholder": config.get("placeholder") or "",
                "help_text": config.get("help_text") or "",
            }

            if field_type == "select":
                field["options"] = config.get("options") or []
            elif field_type == "number":
                field["min"] = config.get("min")
                field["max"] = config.get("max")
                field["step"] = config.get("step", 1)
            elif field_type in ("text", "textarea"):
                field["min_length"] = config.get("min")
                field["max_length"] = config.get("max")

            fields.append(field)
        return fields

    # Helpers

    async def _get_or_404(self, category_id: int) -> Category:
        category = await self.category_repo.get(id=category_id)
        if not category:
            raise NotFoundError("Category not found", id=category_id)
        return category

    async def _check_new_parent(self, category_id: int, parent_id: int) -> None:
        if parent_id == category_id:
            raise InvalidOperationError("Category cannot be its own parent", id=category_id)
        if not await self.category_repo.exists(id=parent_id):
            raise NotFoundError("Parent category not found", parent_id=parent_id)
        if await self._is_descendant(parent_id, category_id):
            raise InvalidOperationError(
                "Moving the category under its own descendant would create a cycle",
                id=category_id,
                parent_id=parent_id,
            )

    async def _is_descendant(self, candidate_id: int, ancestor_id: int) -> bool:
        """Walk up from candidate_id; True if ancestor_id is reached"""
        current: Optional[int] = candidate_id
        hops = 0
        while current is not None:
            if current == ancestor_id:
                return True
            hops += 1
            if hops > MAX_TREE_DEPTH:
                raise InvalidOperationError("Category hierarchy is too deep or circular", id=candidate_id)
            current = await self.category_repo.get_parent_id(current)
        return False

    async def _hydrate(self, category: Category) -> CategoryDetail:
        parent = await self.category_repo.get(id=category.parent_id) if category.parent_id else None
        children = await self.category_repo.get_children(category.id, active_only=False)
        path = await self.get_path(category.id)

        detail = CategoryDetail.model_validate(category)
        detail.parent = CategoryRead.model_validate(parent) if parent else None
        detail.children = [CategoryRead.model_validate(c) for c in children]
        detail.depth = len(path) - 1
        detail.breadcrumb = " > ".join(c.name for c in path)
        return detail
