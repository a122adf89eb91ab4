"""
test_bom_engine.py — Unit tests for BOMEngine.

Tests cover:
  - Template initialization (all ten categories, standard flags, re-initialize appends)
  - Derived totals after every mutation (subtotals, grand total, VAT)
  - Item numbering per category prefix
  - Partial updates, deletes, unknown item ids
  - Merging extracted quotation lines and linking quotations

All tests are pure unit tests; no storage or external services required.
"""

import pytest

from app.models.schemas import BOM_CATEGORY_ORDER, BOMData, BOMItemCreate, BOMItemUpdate, ExtractedLineItem
from app.services.bom_engine import calculate_subtotals, next_item_number
from app.services.bom_templates import NHBRC_BOM_TEMPLATE
from app.services.exceptions import NotFoundError


def _assert_totals_consistent(bom: BOMData):
    assert set(bom.subtotals_by_category) == set(BOM_CATEGORY_ORDER)
    assert bom.grand_total == pytest.approx(sum(bom.subtotals_by_category.values()))
    assert bom.grand_total_incl_vat == pytest.approx(bom.grand_total * 1.15)
    assert bom.vat_rate == 0.15
    for item in bom.items:
        assert item.amount == pytest.approx(item.quantity * item.rate)


@pytest.fixture
def empty_bom(bom_engine):
    return bom_engine.recalculate(BOMData(project_id="p1"))


@pytest.fixture
def template_bom(bom_engine):
    return bom_engine.initialize("p1")


# ===========================================================================
# Class 1: Initialization
# ===========================================================================

class TestInitialize:

    def test_loads_every_template_row(self, template_bom):
        assert len(template_bom.items) == len(NHBRC_BOM_TEMPLATE)
        assert all(item.is_standard for item in template_bom.items)
        assert len({item.id for item in template_bom.items}) == len(template_bom.items)

    def test_template_covers_all_categories(self, template_bom):
        assert {item.category for item in template_bom.items} == set(BOM_CATEGORY_ORDER)
        _assert_totals_consistent(template_bom)

    def test_reinitialize_appends_second_copy(self, bom_engine, template_bom):
        again = bom_engine.initialize("p1", existing=template_bom)
        assert len(again.items) == 2 * len(NHBRC_BOM_TEMPLATE)
        assert again.grand_total == pytest.approx(2 * template_bom.grand_total)

    def test_custom_template(self, bom_engine):
        bom = bom_engine.initialize("p1", template=NHBRC_BOM_TEMPLATE[:2])
        assert [i.item_number for i in bom.items] == ["P-001", "P-002"]

    def test_empty_bom_has_all_zero_subtotals(self, empty_bom):
        assert empty_bom.subtotals_by_category == {c: 0.0 for c in BOM_CATEGORY_ORDER}
        assert empty_bom.grand_total == 0
        assert empty_bom.grand_total_incl_vat == 0


# ===========================================================================
# Class 2: Item mutations
# ===========================================================================

class TestItemMutations:

    def test_add_item_computes_amount(self, bom_engine, empty_bom):
        bom = bom_engine.add_item(empty_bom, BOMItemCreate(
            category="roofing", description="Roof trusses", unit="m2", quantity=150, rate=320,
        ))
        item = bom.items[0]
        assert item.amount == pytest.approx(48_000.0)
        assert item.item_number == "R-001"
        assert bom.subtotals_by_category["roofing"] == pytest.approx(48_000.0)
        assert bom.grand_total_incl_vat == pytest.approx(55_200.0)
        _assert_totals_consistent(bom)

    def test_explicit_item_number_kept(self, bom_engine, empty_bom):
        bom = bom_engine.add_item(empty_bom, BOMItemCreate(
            category="plumbing", item_number="PL-900", description="Geyser", quantity=1, rate=9500,
        ))
        assert bom.items[0].item_number == "PL-900"

    def test_update_item_recomputes(self, bom_engine, template_bom):
        target = template_bom.items[0]
        bom = bom_engine.update_item(template_bom, target.id, BOMItemUpdate(quantity=3, rate=1000))
        updated = next(i for i in bom.items if i.id == target.id)
        assert updated.amount == pytest.approx(3000.0)
        assert updated.description == target.description
        _assert_totals_consistent(bom)

    def test_update_ignores_nulls(self, bom_engine, template_bom):
        target = template_bom.items[0]
        bom = bom_engine.update_item(template_bom, target.id, BOMItemUpdate(description=None, notes="checked"))
        updated = next(i for i in bom.items if i.id == target.id)
        assert updated.description == target.description
        assert updated.notes == "checked"

    def test_update_unknown_item(self, bom_engine, template_bom):
        with pytest.raises(NotFoundError):
            bom_engine.update_item(template_bom, "missing", BOMItemUpdate(quantity=1))

    def test_delete_item(self, bom_engine, template_bom):
        target = template_bom.items[0]
        bom = bom_engine.delete_item(template_bom, target.id)
        assert len(bom.items) == len(template_bom.items) - 1
        assert bom.grand_total == pytest.approx(template_bom.grand_total - target.amount)
        _assert_totals_consistent(bom)

    def test_delete_unknown_item(self, bom_engine, empty_bom):
        with pytest.raises(NotFoundError):
            bom_engine.delete_item(empty_bom, "missing")


# ===========================================================================
# Class 3: Numbering and subtotals
# ===========================================================================

class TestNumbering:

    def test_next_number_after_template(self, template_bom):
        foundations = [i for i in template_bom.items if i.category == "foundations"]
        assert next_item_number(template_bom.items, "foundations") == f"F-{len(foundations) + 1:03d}"

    def test_next_number_empty_category(self):
        assert next_item_number([], "external_works") == "EW-001"

    def test_next_number_ignores_non_numeric(self, bom_engine, empty_bom):
        bom = bom_engine.add_item(empty_bom, BOMItemCreate(
            category="electrical", item_number="E-ALLOW", description="Allowance", quantity=1, rate=1,
        ))
        assert next_item_number(bom.items, "electrical") == "E-001"

    def test_calculate_subtotals_does_not_trust_stored_amount(self, template_bom):
        item = template_bom.items[0].model_copy(update={"amount": 999_999.0})
        subtotals = calculate_subtotals([item])
        assert subtotals[item.category] == pytest.approx(item.quantity * item.rate)


# ===========================================================================
# Class 4: Extraction merge and quotation links
# ===========================================================================

class TestMergeAndLink:

    def test_merge_line_items(self, bom_engine, empty_bom):
        lines = [
            ExtractedLineItem(description="Copper pipe 15mm", unit="M", quantity=60, unit_rate=85, amount=5100),
            ExtractedLineItem(description="Call-out", unit="visit", quantity=1, unit_rate=650, amount=650),
        ]
        bom = bom_engine.merge_line_items(empty_bom, "plumbing", lines)
        assert [i.item_number for i in bom.items] == ["PL-001", "PL-002"]
        assert [i.unit for i in bom.items] == ["m", "item"]
        assert not any(i.is_standard for i in bom.items)
        assert bom.subtotals_by_category["plumbing"] == pytest.approx(5750.0)
        _assert_totals_consistent(bom)

    def test_link_quotation_once(self, bom_engine, template_bom):
        target = template_bom.items[0]
        bom = bom_engine.link_quotation(template_bom, target.id, "q1")
        bom = bom_engine.link_quotation(bom, target.id, "q1")
        bom = bom_engine.link_quotation(bom, target.id, "q2")
        linked = next(i for i in bom.items if i.id == target.id).linked_quotation_ids
        assert linked == ["q1", "q2"]


class TestIdempotence:

    def test_recalculate_twice_identical(self, bom_engine, template_bom):
        once = bom_engine.recalculate(template_bom)
        twice = bom_engine.recalculate(once)
        assert once.subtotals_by_category == twice.subtotals_by_category
        assert once.grand_total == twice.grand_total
        assert once.grand_total_incl_vat == twice.grand_total_incl_vat
        assert [i.amount for i in once.items] == [i.amount for i in twice.items]
