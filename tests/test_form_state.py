import pytest

from bom_catalog.models.bom_models import ValidationError, Vendor
from bom_catalog.services.form_state import (
    EditSession,
    IntentChoice,
    IntentSelection,
    ProductDraft,
    VendorListDraft,
    parse_quantity,
)
from tests.conftest import always, make_record


# ================================================================
# Product draft
# ================================================================
def test_product_draft_update_and_reset():
    draft = ProductDraft()
    draft.update(sku="SKU-1", approx_price=12.5)
    assert draft.sku == "SKU-1"
    assert draft.approx_price == "12.5"

    draft.editing_id = "4"
    draft.reset()
    assert draft == ProductDraft()


def test_product_draft_rejects_unknown_field():
    with pytest.raises(ValidationError):
        ProductDraft().update(colour="red")


def test_load_from_is_a_copy():
    record = make_record(id="1", sku="SKU-1")
    draft = ProductDraft()
    draft.load_from(record)
    draft.sku = "changed"
    assert record.sku == "SKU-1"
    assert draft.item_code == "IC-SKU-1"
    assert draft.editing_id is None


# ================================================================
# Vendor draft
# ================================================================
def test_add_vendor_assigns_ids():
    draft = VendorListDraft()
    first = draft.add("Acme", "555", "Main St")
    second = draft.add("Globex")
    assert first.id != second.id
    assert [v.name for v in draft.vendors] == ["Acme", "Globex"]


@pytest.mark.parametrize("name", ["", "   ", None])
def test_add_vendor_requires_name(name):
    with pytest.raises(ValidationError, match="Please enter vendor name"):
        VendorListDraft().add(name)


def test_add_vendor_rejects_duplicate_name_case_insensitive():
    draft = VendorListDraft()
    draft.add("Acme")
    with pytest.raises(ValidationError, match="already exists"):
        draft.add("ACME")
    assert len(draft) == 1


def test_edit_vendor_in_place():
    draft = VendorListDraft()
    vendor = draft.add("Acme")
    draft.edit(vendor.id, "phone", "555-0000")
    draft.edit(vendor.id, "address", "Dock 4")
    assert draft.vendors[0] == Vendor("Acme", "555-0000", "Dock 4")


def test_edit_vendor_rejects_name_and_unknown_ids():
    draft = VendorListDraft()
    vendor = draft.add("Acme")
    with pytest.raises(ValidationError):
        draft.edit(vendor.id, "name", "Other")
    with pytest.raises(KeyError):
        draft.edit(999, "phone", "1")


def test_remove_vendor_needs_confirmation():
    draft = VendorListDraft()
    vendor = draft.add("Acme")

    declined = always(False)
    assert draft.remove(vendor.id, declined) is False
    assert declined.prompts == ["Are you sure you want to remove this vendor?"]
    assert len(draft) == 1

    assert draft.remove(vendor.id, always(True)) is True
    assert len(draft) == 0


# ================================================================
# Edit session
# ================================================================
def test_begin_edit_copies_record():
    record = make_record(id="2", sku="SKU-2", vendors=[Vendor("Acme"), Vendor("Globex")])
    session = EditSession()
    session.begin_edit(record)

    assert session.editing_id == "2"
    assert session.product.sku == "SKU-2"
    assert [v.name for v in session.vendors.vendors] == ["Acme", "Globex"]

    session.vendors.edit(session.vendors.vendors[0].id, "phone", "999")
    assert record.vendors[0].phone == ""


def test_cancel_discards_drafts():
    session = EditSession()
    session.begin_edit(make_record(id="2", sku="SKU-2"))
    session.cancel()
    assert session.editing_id is None
    assert session.product == ProductDraft()
    assert len(session.vendors) == 0


def test_save_creates_when_not_editing(service, client):
    session = EditSession()
    session.product.update(item_code="IC-9", sku="SKU-9", product_description="Bolt")
    session.vendors.add("Acme", "1", "x")

    result = session.save(service, always(True))

    assert result.ok
    assert client.methods_called() == ["create"]
    assert client.calls[0][1]["vendors"] == "Acme,1,x"
    assert session.product == ProductDraft()


def test_save_updates_when_editing(service, client):
    session = EditSession()
    session.begin_edit(service.get("1"))
    session.product.update(product_description="Longer bolt")

    result = session.save(service, always(True))

    assert result.ok
    assert client.calls[0][:2] == ("update", "1")
    assert session.editing_id is None


def test_failed_save_keeps_drafts(service, client):
    session = EditSession()
    session.product.update(item_code="IC-9", sku="SKU-9")

    result = session.save(service, always(True))

    assert not result.ok
    assert client.calls == []
    assert session.product.sku == "SKU-9"


# ================================================================
# Intent selection
# ================================================================
@pytest.mark.parametrize("value, expected", [
    (3, 3), ("4", 4), ("2.7", 2), ("0", 1), ("-5", 1), ("abc", 1), ("", 1), (None, 1),
])
def test_parse_quantity(value, expected):
    assert parse_quantity(value) == expected


def test_select_defaults_to_one_and_first_vendor():
    record = make_record(id="1", vendors=[Vendor("Acme"), Vendor("Globex")])
    selection = IntentSelection().select(record)
    assert selection.choices == {"1": IntentChoice(1, "Acme")}


def test_select_without_vendors():
    selection = IntentSelection().select(make_record(id="1", vendors=[]))
    assert selection.choices["1"].vendor_name is None


def test_transitions_do_not_mutate():
    empty = IntentSelection()
    selected = empty.select(make_record(id="1"))
    assert len(empty) == 0
    assert len(selected) == 1
    assert len(selected.deselect("1")) == 0
    assert len(selected) == 1


def test_set_quantity_and_vendor():
    selection = IntentSelection().select(make_record(id="1"))
    selection = selection.set_quantity("1", "5").set_vendor("1", "Globex")
    assert selection.choices["1"] == IntentChoice(5, "Globex")


def test_set_quantity_requires_selection():
    with pytest.raises(ValidationError):
        IntentSelection().set_quantity("1", 2)


def test_deselect_clears_choices():
    selection = IntentSelection().select(make_record(id="1")).set_quantity("1", 4)
    selection = selection.deselect("1").select(make_record(id="1"))
    assert selection.choices["1"].quantity == 1


def test_page_select_keeps_existing_choices():
    page = [make_record(id="1"), make_record(id="2", sku="SKU-2")]
    selection = IntentSelection().select(page[0]).set_quantity("1", 7)
    selection = selection.select_page(page)
    assert selection.selected_ids() == ["1", "2"]
    assert selection.choices["1"].quantity == 7
    assert selection.choices["2"].quantity == 1

    other = make_record(id="3", sku="SKU-3")
    selection = selection.select(other).deselect_page(page)
    assert selection.selected_ids() == ["3"]
    assert len(selection.clear()) == 0


def test_current_total():
    records = [make_record(id="1", price="10"), make_record(id="2", sku="SKU-2", price="5")]
    selection = IntentSelection().select(records[0]).set_quantity("1", 2)
    selection = selection.select(records[1]).set_quantity("2", 3)
    assert selection.current_total(records) == pytest.approx(35)
