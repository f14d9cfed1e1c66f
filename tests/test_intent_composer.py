from datetime import date

import pytest

from bom_catalog.models.bom_models import IntentLineItem, ValidationError, Vendor
from bom_catalog.services.form_state import IntentSelection
from bom_catalog.services.intent_composer import (
    MIN_TABLE_ROWS,
    build_line_items,
    grand_total,
    render_intent_document,
)
from tests.conftest import make_record


@pytest.fixture
def records():
    return [
        make_record(id="1", sku="SKU-1", price="10", vendors=[Vendor("Acme"), Vendor("Globex")]),
        make_record(id="2", sku="SKU-2", price="5", vendors=[Vendor("Initech")]),
        make_record(id="3", sku="SKU-3", price="", vendors=[]),
    ]


def test_line_items_and_grand_total(records):
    selection = IntentSelection().select(records[0]).set_quantity("1", 2)
    selection = selection.select(records[1]).set_quantity("2", 3)

    items = build_line_items(records, selection)

    assert [i.total for i in items] == [20, 15]
    assert grand_total(items) == 35
    assert items[0] == IntentLineItem(
        sno=1,
        part_number="IC-SKU-1",
        sku="SKU-1",
        product_description="Part SKU-1",
        quantity=2,
        vendor_name="Acme",
        price=10.0,
        total=20.0,
    )
    assert items[1].sno == 2


def test_chosen_vendor_and_fallbacks(records):
    selection = IntentSelection().select(records[0]).set_vendor("1", "Globex").select(records[2])
    items = build_line_items(records, selection)
    assert items[0].vendor_name == "Globex"
    assert items[1].vendor_name == "No Vendor"
    assert items[1].price == 0.0


def test_empty_selection_is_rejected(records):
    with pytest.raises(ValidationError, match="at least one product"):
        build_line_items(records, IntentSelection())


def test_products_gone_from_catalog_are_skipped(records):
    selection = IntentSelection().select(records[0]).select(make_record(id="99", sku="GONE"))
    items = build_line_items(records, selection)
    assert [i.sku for i in items] == ["SKU-1"]


def test_document_pads_to_fifteen_rows(records):
    selection = IntentSelection().select(records[0]).set_quantity("1", 2)
    selection = selection.select(records[1]).set_quantity("2", 3)
    html = render_intent_document(build_line_items(records, selection), issued_on=date(2026, 3, 14))

    assert html.count('class="line-item"') == 2
    assert html.count('class="blank-row"') == MIN_TABLE_ROWS - 2
    assert "RAW MATERIAL INDIAN NOTE" in html
    assert "14/03/2026" in html
    assert "20.00" in html
    assert "15.00" in html
    assert "35.00" in html
    for label in ("Prepared By", "Department", "Approved by", "Processed By"):
        assert label in html


def test_document_without_padding_when_long(records):
    items = [
        IntentLineItem(i, f"P{i}", f"S{i}", "", 1, "Acme", 1.0, 1.0)
        for i in range(1, MIN_TABLE_ROWS + 3)
    ]
    html = render_intent_document(items)
    assert html.count('class="line-item"') == MIN_TABLE_ROWS + 2
    assert 'class="blank-row"' not in html
    assert "17.00" in html


def test_document_escapes_fields():
    item = IntentLineItem(1, "<b>P</b>", "S", "", 1, "A & B", 2.5, 2.5)
    html = render_intent_document([item])
    assert "&lt;b&gt;P&lt;/b&gt;" in html
    assert "A &amp; B" in html
