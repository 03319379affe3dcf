import pytest
from app.core.exceptions import CycleDetected, NotFound, ValidationFailed
from app.models.category import CategoryStatus
from app.models.product import Product
from app.schemas.category import CategoryCreate, CategoryUpdate, DisplayOrderItem
from app.services.categories import slugify


def add_products(session, category, status, count):
    for i in range(count):
        session.add(Product(name=f"{category.title}-{status}-{i}", category_id=category.id, status=status))
    session.commit()


def test_slugify():
    assert slugify("  Power Tools & Drills ") == "power-tools-drills"
    assert slugify("---") == ""


class TestCreate:
    def test_slug_derived_from_title(self, service):
        category = service.create(CategoryCreate(title="  Garden Tools "), actor_id=5)
        assert category.title == "Garden Tools"
        assert category.slug == "garden-tools"
        assert category.status == CategoryStatus.ACTIVE
        assert category.is_deleted is False
        assert category.created_by == 5
        assert category.updated_by == 5

    def test_explicit_slug_lowercased(self, service):
        category = service.create(CategoryCreate(title="Paint", slug="PAINT-Supplies"))
        assert category.slug == "paint-supplies"

    def test_duplicate_slug_allowed(self, service):
        service.create(CategoryCreate(title="Paint", slug="paint"))
        other = service.create(CategoryCreate(title="Paints", slug="paint"))
        assert other.slug == "paint"

    def test_title_unique_even_when_soft_deleted(self, service, make_category):
        make_category("Archive", is_deleted=True)
        with pytest.raises(ValidationFailed):
            service.create(CategoryCreate(title="Archive"))

    def test_blank_title(self, service):
        with pytest.raises(ValidationFailed):
            service.create(CategoryCreate(title="   "))

    def test_non_latin_title_needs_slug(self, service):
        with pytest.raises(ValidationFailed) as exc:
            service.create(CategoryCreate(title="Инструменты"))
        assert exc.value.detail == "Slug is required: title has no latin letters or digits"

        category = service.create(CategoryCreate(title="Инструменты", slug="instrumenty"))
        assert category.slug == "instrumenty"

    def test_unknown_parent(self, service):
        with pytest.raises(ValidationFailed):
            service.create(CategoryCreate(title="Orphan", parent_id=123))

    def test_soft_deleted_parent_rejected(self, service, make_category):
        parent = make_category("Old", is_deleted=True)
        with pytest.raises(ValidationFailed):
            service.create(CategoryCreate(title="Child", parent_id=parent.id))


class TestUpdate:
    def test_merge_fields(self, service, make_category):
        category = make_category("Lamps")
        updated = service.update(category.id, CategoryUpdate(is_featured=True, display_order=3), actor_id=9)
        assert updated.title == "Lamps"
        assert updated.is_featured is True
        assert updated.display_order == 3
        assert updated.updated_by == 9

    def test_title_conflict(self, service, make_category):
        make_category("Taken")
        category = make_category("Free")
        with pytest.raises(ValidationFailed):
            service.update(category.id, CategoryUpdate(title="Taken"))

    def test_own_parent(self, service, make_category):
        category = make_category("Self")
        with pytest.raises(CycleDetected):
            service.update(category.id, CategoryUpdate(parent_id=category.id))

    def test_descendant_as_parent(self, service, chain):
        a, _, c = chain
        with pytest.raises(CycleDetected):
            service.update(a.id, CategoryUpdate(parent_id=c.id))

    def test_move_to_root(self, service, chain):
        _, b, _ = chain
        moved = service.update(b.id, CategoryUpdate(parent_id=None))
        assert moved.parent_id is None

    def test_null_for_required_fields(self, service, make_category):
        category = make_category("Lamps")
        with pytest.raises(ValidationFailed) as exc:
            service.update(category.id, CategoryUpdate(display_order=None, visibility=None))
        assert exc.value.retryable is False
        with pytest.raises(ValidationFailed):
            service.update(category.id, CategoryUpdate(status=None))

        unchanged = service.get(category.id)
        assert unchanged.display_order == 0
        assert unchanged.visibility is True
        assert unchanged.status == CategoryStatus.ACTIVE

    def test_missing(self, service):
        with pytest.raises(NotFound):
            service.update(404, CategoryUpdate(title="Nope"))


class TestListings:
    def test_paginated_list_with_product_counts(self, session, service, make_category):
        first = make_category("Alpha")
        make_category("Beta")
        make_category("Gamma")
        make_category("Hidden", is_deleted=True)
        add_products(session, first, "published", 2)
        add_products(session, first, "draft", 1)

        page = service.list(page=1, limit=2)
        assert page["total"] == 3
        assert page["pages"] == 2
        assert [c["title"] for c in page["results"]] == ["Alpha", "Beta"]
        assert page["results"][0]["product_count"] == 2

        last = service.list(page=2, limit=2, sort_order="asc")
        assert [c["title"] for c in last["results"]] == ["Gamma"]

    def test_list_filters(self, service, make_category):
        make_category("Draft One", status=CategoryStatus.DRAFT)
        make_category("Active One")
        make_category("Gone", is_deleted=True)

        drafts = service.list(status=CategoryStatus.DRAFT)
        assert [c["title"] for c in drafts["results"]] == ["Draft One"]

        everything = service.list(include_deleted=True, sort_by="title", sort_order="desc")
        assert [c["title"] for c in everything["results"]] == ["Gone", "Draft One", "Active One"]

    def test_list_rejects_bad_paging(self, service):
        with pytest.raises(ValidationFailed):
            service.list(limit=500)
        with pytest.raises(ValidationFailed):
            service.list(sort_by="slug")

    def test_active_counts_active_products(self, session, service, make_category):
        shown = make_category("Shown", display_order=1)
        make_category("First", display_order=0)
        make_category("Invisible", visibility=False)
        make_category("Inactive", status=CategoryStatus.INACTIVE)
        add_products(session, shown, "active", 3)
        add_products(session, shown, "published", 1)

        active = service.active()
        assert [c["title"] for c in active] == ["First", "Shown"]
        assert active[1]["product_count"] == 3

    def test_featured(self, service, make_category):
        make_category("Star", is_featured=True)
        make_category("Plain")
        make_category("Hidden Star", is_featured=True, visibility=False)
        assert [c.title for c in service.featured()] == ["Star"]

    def test_search_case_insensitive(self, service, make_category):
        make_category("Power Tools")
        make_category("Hand Tools")
        make_category("Paint")
        make_category("Old Tools", is_deleted=True)

        assert [c.title for c in service.search("TOOLS")] == ["Hand Tools", "Power Tools"]
        assert len(service.search("")) == 3


class TestStatistics:
    def test_statistics(self, service, make_category):
        make_category("One", is_featured=True)
        make_category("Two", status=CategoryStatus.INACTIVE)
        make_category("Three", status=CategoryStatus.DRAFT)
        make_category("Four", is_deleted=True)

        assert service.statistics() == {
            "total": 3, "active": 1, "inactive": 1, "featured": 1, "deleted": 1,
        }

    def test_aggregate_by_status(self, service, make_category):
        make_category("One")
        make_category("Two")
        make_category("Three", status=CategoryStatus.ARCHIVED)
        assert service.aggregate_by_status() == {"active": 2, "archived": 1}


class TestBulk:
    def test_batch_update_display_orders(self, service, make_category):
        one = make_category("One", display_order=1)
        two = make_category("Two", display_order=5)

        result = service.batch_update_display_orders([
            DisplayOrderItem(id=one.id, display_order=1),
            DisplayOrderItem(id=two.id, display_order=2),
            DisplayOrderItem(id=999, display_order=3),
        ])
        assert result == {"matched_count": 2, "modified_count": 1}
        assert service.get(two.id).display_order == 2

    def test_soft_delete_many_does_not_cascade(self, service, chain):
        a, b, _ = chain
        result = service.soft_delete_many([a.id])
        assert result == {"matched_count": 1, "modified_count": 1}
        assert service.get(a.id, include_deleted=True).is_deleted is True
        assert service.get(b.id).is_deleted is False

    def test_import_bulk_resolves_parent_titles(self, service, repo):
        created = service.import_bulk([
            CategoryCreate(title="Tools"),
            CategoryCreate(title="Drills", parent_title="Tools"),
        ], actor_id=1)
        tools, drills = created
        assert drills.parent_id == tools.id
        assert repo.count() == 2

    def test_import_bulk_all_or_nothing(self, service, repo):
        with pytest.raises(ValidationFailed):
            service.import_bulk([
                CategoryCreate(title="Tools"),
                CategoryCreate(title="Tools"),
            ])
        assert repo.count() == 0
