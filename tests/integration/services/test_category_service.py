"""
Integration tests for the category tree engine
"""

from decimal import Decimal

import pytest

from app.core.exceptions import ConflictError, InvalidOperationError, NotFoundError, ValidationError
from app.models.listing import Listing, ListingStatus
from app.schemas.category import CategoryCreate, CategoryReorderItem, CategoryUpdate


async def make(service, name, parent_id=None, **kwargs):
    return await service.create(CategoryCreate(name=name, parent_id=parent_id, **kwargs))


@pytest.mark.asyncio
async def test_create_derives_slug(category_service):
    category = await make(category_service, "Laptops & Computers")

    assert category.slug == "laptops-computers"
    assert category.depth == 0
    assert category.breadcrumb == "Laptops & Computers"


@pytest.mark.asyncio
async def test_create_under_missing_parent(category_service):
    with pytest.raises(NotFoundError):
        await make(category_service, "Orphan", parent_id=999)


@pytest.mark.asyncio
async def test_create_duplicate_slug_conflicts(category_service):
    await make(category_service, "Electronics")
    with pytest.raises(ConflictError):
        await make(category_service, "Electronics")


@pytest.mark.asyncio
async def test_create_name_without_slug_characters(category_service):
    with pytest.raises(ValidationError):
        await make(category_service, "!!!")


@pytest.mark.asyncio
async def test_tree_orders_by_sort_order_then_name(category_service):
    root = await make(category_service, "Electronics")
    await make(category_service, "Tablets", root.id, sort_order=2)
    await make(category_service, "Laptops", root.id, sort_order=1)
    await make(category_service, "Cameras", root.id, sort_order=2)
    await make(category_service, "Automotive", sort_order=5)

    tree = await category_service.get_tree()

    assert [node.name for node in tree] == ["Electronics", "Automotive"]
    assert [child.name for child in tree[0].children] == ["Laptops", "Cameras", "Tablets"]


@pytest.mark.asyncio
async def test_inactive_category_hides_subtree(category_service):
    root = await make(category_service, "Fashion")
    mens = await make(category_service, "Men", root.id)
    await make(category_service, "Shoes", mens.id)

    await category_service.toggle_status(mens.id)

    active = await category_service.get_tree()
    assert active[0].children == []

    everything = await category_service.get_tree(active_only=False)
    assert everything[0].children[0].name == "Men"
    assert everything[0].children[0].children[0].name == "Shoes"


@pytest.mark.asyncio
async def test_tree_cache_invalidated_on_write(category_service):
    await make(category_service, "Books")
    assert len(await category_service.get_tree()) == 1

    await make(category_service, "Sports")
    assert len(await category_service.get_tree()) == 2


@pytest.mark.asyncio
async def test_path_and_breadcrumb_five_levels(category_service):
    parent_id = None
    names = ["Home", "Furniture", "Living Room", "Sofas", "Corner Sofas"]
    for name in names:
        parent_id = (await make(category_service, name, parent_id)).id

    path = await category_service.get_path(parent_id)
    assert [c.name for c in path] == names
    assert await category_service.get_breadcrumb(parent_id) == " > ".join(names)

    detail = await category_service.get(parent_id)
    assert detail.depth == 4
    assert detail.parent.name == "Sofas"


@pytest.mark.asyncio
async def test_cannot_be_own_parent(category_service):
    category = await make(category_service, "Gaming")
    with pytest.raises(InvalidOperationError):
        await category_service.update(category.id, CategoryUpdate(parent_id=category.id))


@pytest.mark.asyncio
async def test_cannot_move_under_descendant(category_service):
    a = await make(category_service, "A")
    b = await make(category_service, "B", a.id)
    c = await make(category_service, "C", b.id)

    with pytest.raises(InvalidOperationError):
        await category_service.update(a.id, CategoryUpdate(parent_id=c.id))

    # Tree unchanged
    assert (await category_service.get(a.id)).parent is None


@pytest.mark.asyncio
async def test_move_to_root_and_reparent(category_service):
    a = await make(category_service, "Vehicles")
    b = await make(category_service, "Boats")
    child = await make(category_service, "Cars", a.id)

    moved = await category_service.update(child.id, CategoryUpdate(parent_id=b.id))
    assert moved.parent_id == b.id

    rooted = await category_service.update(child.id, CategoryUpdate(parent_id=0))
    assert rooted.parent_id is None
    assert rooted.depth == 0


@pytest.mark.asyncio
async def test_update_to_missing_parent(category_service):
    category = await make(category_service, "Toys")
    with pytest.raises(NotFoundError):
        await category_service.update(category.id, CategoryUpdate(parent_id=404))


@pytest.mark.asyncio
async def test_rename_keeps_slug(category_service):
    category = await make(category_service, "Phones")
    renamed = await category_service.update(category.id, CategoryUpdate(name="Mobile Phones"))

    assert renamed.name == "Mobile Phones"
    assert renamed.slug == "phones"


@pytest.mark.asyncio
async def test_update_slug_conflict(category_service):
    await make(category_service, "Phones")
    other = await make(category_service, "Tablets")
    with pytest.raises(ConflictError):
        await category_service.update(other.id, CategoryUpdate(slug="phones"))


@pytest.mark.asyncio
async def test_delete_with_children_conflicts(category_service):
    root = await make(category_service, "Garden")
    await make(category_service, "Tools", root.id)

    with pytest.raises(ConflictError, match="subcategories"):
        await category_service.delete(root.id)


@pytest.mark.asyncio
async def test_delete_with_listings_conflicts(category_service, db_session):
    category = await make(category_service, "Bikes")
    db_session.add(Listing(category_id=category.id, title="Road bike", status=ListingStatus.ACTIVE))
    await db_session.commit()

    with pytest.raises(ConflictError, match="listings"):
        await category_service.delete(category.id)


@pytest.mark.asyncio
async def test_delete_leaf(category_service):
    category = await make(category_service, "Vinyl")
    await category_service.delete(category.id)

    with pytest.raises(NotFoundError):
        await category_service.get(category.id)


@pytest.mark.asyncio
async def test_reorder(category_service):
    first = await make(category_service, "First", sort_order=1)
    second = await make(category_service, "Second", sort_order=2)

    await category_service.reorder(
        [CategoryReorderItem(id=first.id, sort_order=2), CategoryReorderItem(id=second.id, sort_order=1)]
    )

    assert [node.name for node in await category_service.get_tree()] == ["Second", "First"]


@pytest.mark.asyncio
async def test_reorder_unknown_id_changes_nothing(category_service):
    first = await make(category_service, "First", sort_order=1)

    with pytest.raises(NotFoundError):
        await category_service.reorder(
            [CategoryReorderItem(id=first.id, sort_order=9), CategoryReorderItem(id=999, sort_order=1)]
        )

    assert (await category_service.get(first.id)).sort_order == 1


@pytest.mark.asyncio
async def test_validate_attributes_for_category(category_service, sample_category_data):
    category = await category_service.create(CategoryCreate(**sample_category_data))

    assert await category_service.validate_attributes(category.id, {"brand": "Apple"}) == {}

    errors = await category_service.validate_attributes(category.id, {"brand": "Nokia", "storage": "12345"})
    assert errors == {
        "brand": "The selected brand is invalid.",
        "storage": "The storage must not exceed 4 characters.",
    }


@pytest.mark.asyncio
async def test_form_fields(category_service, sample_category_data):
    category = await category_service.create(CategoryCreate(**sample_category_data))

    fields = {field["name"]: field for field in await category_service.get_form_fields(category.id)}

    assert fields["brand"]["type"] == "select"
    assert fields["brand"]["options"] == ["Apple", "Samsung"]
    assert fields["brand"]["required"] is True
    assert fields["storage"]["step"] == 1
    assert fields["condition_notes"]["label"] == "Condition notes"
    assert fields["condition_notes"]["max_length"] == 50
    assert await category_service.get_form_fields(999) == []


@pytest.mark.asyncio
async def test_stats(category_service, db_session):
    category = await make(category_service, "Watches")
    await make(category_service, "Smartwatches", category.id)
    db_session.add_all(
        [
            Listing(category_id=category.id, title="A", status=ListingStatus.ACTIVE, price=Decimal("100")),
            Listing(category_id=category.id, title="B", status=ListingStatus.ACTIVE, price=Decimal("300")),
            Listing(category_id=category.id, title="C", status=ListingStatus.DRAFT),
            Listing(category_id=category.id, title="D", status=ListingStatus.SOLD, price=Decimal("50")),
        ]
    )
    await db_session.commit()

    stats = await category_service.get_stats(category.id)

    assert stats.total_listings == 4
    assert stats.active_listings == 2
    assert stats.sold_listings == 1
    assert stats.draft_listings == 1
    assert stats.total_children == 1
    assert stats.avg_price == pytest.approx(200)
    assert stats.price_range.min == pytest.approx(100)
    assert stats.price_range.max == pytest.approx(300)


@pytest.mark.asyncio
async def test_search_and_suggestions(category_service):
    await make(category_service, "Smartphones", description="Mobile phones and accessories")
    await make(category_service, "Bicycles")

    assert [c.name for c in await category_service.search("smart")] == ["Smartphones"]

    suggested = await category_service.suggest_categories("Selling my mobile", "barely used")
    assert [c.name for c in suggested] == ["Smartphones"]
    assert await category_service.suggest_categories("a b") == []


@pytest.mark.asyncio
async def test_get_by_slug(category_service):
    await make(category_service, "Board Games")
    category = await category_service.get_by_slug("board-games")
    assert category.name == "Board Games"

    with pytest.raises(NotFoundError):
        await category_service.get_by_slug("nope")
