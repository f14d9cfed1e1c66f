"""
Editable drafts behind the forms
ProductDraft and VendorListDraft are plain mutable structures with reset().
IntentSelection is immutable; every transition returns a new selection.
"""
import itertools
import logging
import re
from dataclasses import dataclass, field, fields, replace
from typing import Any, Callable, Dict, List, Optional, Sequence

from bom_catalog.models.bom_models import WIRE_FIELDS, BomRecord, ValidationError, Vendor

logger = logging.getLogger(__name__)

EDITABLE_VENDOR_FIELDS = ("phone", "address")


# ================================================================
# Product
# ================================================================
@dataclass
class ProductDraft:
    """The product being created (editing_id is None) or edited"""
    item_code: str = ""
    sku: str = ""
    product_description: str = ""
    category: str = ""
    approx_price: str = ""
    order_link: str = ""
    editing_id: Optional[str] = None

    def update(self, **values) -> None:
        for name, value in values.items():
            if name not in WIRE_FIELDS:
                raise ValidationError(f"Unknown product field: {name}")
            setattr(self, name, "" if value is None else str(value))

    def load_from(self, record: BomRecord) -> None:
        """Copy the scalar fields of a record; later edits do not touch it"""
        self.update(**{name: getattr(record, name) for name in WIRE_FIELDS})

    def reset(self) -> None:
        for f in fields(self):
            setattr(self, f.name, f.default)

    def to_dict(self):
        return {f.name: getattr(self, f.name) for f in fields(self)}


# ================================================================
# Vendors
# ================================================================
class VendorListDraft:
    """Vendors attached to the product draft"""

    def __init__(self):
        self.vendors: List[Vendor] = []
        self._ids = itertools.count(1)

    def _find(self, vendor_id: int) -> Vendor:
        for vendor in self.vendors:
            if vendor.id == vendor_id:
                return vendor
        raise KeyError(vendor_id)

    def add(self, name: str, phone: str = "", address: str = "") -> Vendor:
        name = name or ""
        if not name.strip():
            raise ValidationError("Please enter vendor name")
        if any(v.name.lower() == name.lower() for v in self.vendors):
            raise ValidationError("Vendor with this name already exists!")

        vendor = Vendor(name=name, phone=phone or "", address=address or "", id=next(self._ids))
        self.vendors.append(vendor)
        return vendor

    def edit(self, vendor_id: int, field_name: str, value: str) -> Vendor:
        if field_name not in EDITABLE_VENDOR_FIELDS:
            raise ValidationError(f"Vendor field '{field_name}' cannot be edited")
        vendor = self._find(vendor_id)
        setattr(vendor, field_name, value or "")
        return vendor

    def remove(self, vendor_id: int, confirm: Callable[[str], bool]) -> bool:
        """Remove after confirmation; returns False when the user declined"""
        vendor = self._find(vendor_id)
        if not confirm("Are you sure you want to remove this vendor?"):
            return False
        self.vendors.remove(vendor)
        return True

    def load(self, vendors: Sequence[Vendor]) -> None:
        """Take copies of a record's vendors, each with a fresh list id"""
        self.vendors = [replace(v, id=next(self._ids)) for v in vendors]

    def reset(self) -> None:
        self.vendors = []

    def __len__(self):
        return len(self.vendors)

    def to_list(self):
        return [v.to_dict() for v in self.vendors]


# ================================================================
# Edit session
# ================================================================
class EditSession:
    """Product and vendor drafts saved together as one record"""

    def __init__(self):
        self.product = ProductDraft()
        self.vendors = VendorListDraft()

    @property
    def editing_id(self) -> Optional[str]:
        return self.product.editing_id

    def begin_edit(self, record: BomRecord) -> None:
        self.product.load_from(record)
        self.product.editing_id = record.id
        self.vendors.load(record.vendors)
        logger.info(f"Editing record {record.id}")

    def cancel(self) -> None:
        """Drop both drafts and the remembered id"""
        self.product.reset()
        self.vendors.reset()

    def to_record(self) -> BomRecord:
        values = {name: getattr(self.product, name) for name in WIRE_FIELDS}
        return BomRecord(
            id=self.product.editing_id or "",
            vendors=[replace(v) for v in self.vendors.vendors],
            **values,
        )

    def save(self, service, confirm: Callable[[str], bool]):
        """Update when editing an existing record, otherwise create"""
        draft = self.to_record()
        if self.editing_id:
            result = service.update(self.editing_id, draft, confirm)
        else:
            result = service.create(draft, confirm)
        if result.ok:
            self.cancel()
        return result

    def to_dict(self):
        return {"product": self.product.to_dict(), "vendors": self.vendors.to_list()}


# ================================================================
# Purchase intent selection
# ================================================================
def parse_quantity(value: Any) -> int:
    """Integer prefix of the input, at least 1; junk gives 1"""
    if isinstance(value, bool):
        return 1
    if isinstance(value, (int, float)):
        number = int(value)
    else:
        match = re.match(r"\s*([-+]?\d+)", str(value or ""))
        number = int(match.group(1)) if match else 0
    return max(1, number or 1)


@dataclass(frozen=True)
class IntentChoice:
    quantity: int = 1
    vendor_name: Optional[str] = None


def _default_vendor(record: BomRecord) -> Optional[str]:
    return record.vendors[0].name if record.vendors else None


@dataclass(frozen=True)
class IntentSelection:
    """Selected product ids (in selection order) with quantity and vendor"""
    choices: Dict[str, IntentChoice] = field(default_factory=dict)

    def _with(self, choices: Dict[str, IntentChoice]) -> "IntentSelection":
        return IntentSelection(choices)

    def _require(self, record_id: str) -> IntentChoice:
        if record_id not in self.choices:
            raise ValidationError(f"Product {record_id} is not selected")
        return self.choices[record_id]

    def select(self, record: BomRecord) -> "IntentSelection":
        """Select with quantity 1 and the product's first vendor"""
        choices = dict(self.choices)
        choices[record.id] = IntentChoice(1, _default_vendor(record))
        return self._with(choices)

    def deselect(self, record_id: str) -> "IntentSelection":
        choices = dict(self.choices)
        choices.pop(record_id, None)
        return self._with(choices)

    def set_quantity(self, record_id: str, value: Any) -> "IntentSelection":
        choice = self._require(record_id)
        choices = dict(self.choices)
        choices[record_id] = replace(choice, quantity=parse_quantity(value))
        return self._with(choices)

    def set_vendor(self, record_id: str, vendor_name: str) -> "IntentSelection":
        choice = self._require(record_id)
        choices = dict(self.choices)
        choices[record_id] = replace(choice, vendor_name=vendor_name or None)
        return self._with(choices)

    def select_page(self, records: Sequence[BomRecord]) -> "IntentSelection":
        """Select every record shown; already selected ones keep their choices"""
        choices = dict(self.choices)
        for record in records:
            if record.id not in choices:
                choices[record.id] = IntentChoice(1, _default_vendor(record))
        return self._with(choices)

    def deselect_page(self, records: Sequence[BomRecord]) -> "IntentSelection":
        ids = {r.id for r in records}
        return self._with({k: v for k, v in self.choices.items() if k not in ids})

    def clear(self) -> "IntentSelection":
        return IntentSelection()

    def selected_ids(self) -> List[str]:
        return list(self.choices)

    def __len__(self):
        return len(self.choices)

    def current_total(self, records: Sequence[BomRecord]) -> float:
        """Running total of the selection before line items are generated"""
        by_id = {r.id: r for r in records}
        return sum(
            by_id[record_id].price_value() * choice.quantity
            for record_id, choice in self.choices.items()
            if record_id in by_id
        )

    def to_dict(self):
        return {
            record_id: {"quantity": c.quantity, "vendor_name": c.vendor_name}
            for record_id, c in self.choices.items()
        }
