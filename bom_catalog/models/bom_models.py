"""
Data models for the BOM catalog
Simple dataclasses for clean data handling
"""
import math
import re
import time
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional


# SheetDB column name for each scalar field
WIRE_FIELDS = {
    "item_code": "itemCode",
    "sku": "sku",
    "product_description": "productDescription",
    "category": "category",
    "approx_price": "approxPrice",
    "order_link": "orderLink",
}

REQUIRED_FIELDS = ("item_code", "sku", "product_description")

PRICE_PREFIX = re.compile(r"\s*([-+]?(?:\d+\.?\d*|\.\d+)(?:[eE][-+]?\d+)?)")


class ValidationError(ValueError):
    """Draft failed a required-field or uniqueness check"""


def parse_price(value: Any) -> float:
    """
    Numeric prefix of a price stored as text ("12abc" -> 12.0).
    No number, NaN or infinity counts as 0.
    """
    match = PRICE_PREFIX.match(str(value if value is not None else ""))
    if not match:
        return 0.0
    price = float(match.group(1))
    return price if math.isfinite(price) else 0.0


def _text(value: Any) -> str:
    if value is None:
        return ""
    return str(value)


@dataclass
class Vendor:
    """A supplier attached to one product"""
    name: str = ""
    phone: str = ""
    address: str = ""
    # Only identifies the entry inside a vendor draft; never sent to SheetDB
    id: Optional[int] = field(default=None, compare=False)

    def to_dict(self):
        return {
            "id": self.id,
            "name": self.name,
            "phone": self.phone,
            "address": self.address,
        }


@dataclass
class BomRecord:
    """One row of the BOM sheet"""
    id: str
    item_code: str = ""
    sku: str = ""
    product_description: str = ""
    category: str = ""
    approx_price: str = ""
    order_link: str = ""
    vendors: List[Vendor] = field(default_factory=list)

    @classmethod
    def from_wire(cls, row: Dict[str, Any]) -> "BomRecord":
        """
        Build a record from an untyped SheetDB row.
        Missing columns become empty strings and the vendors column is decoded.
        """
        from bom_catalog.services.vendor_codec import decode

        values = {attr: _text(row.get(column)) for attr, column in WIRE_FIELDS.items()}
        return cls(id=_text(row.get("id")), vendors=decode(row.get("vendors")), **values)

    def to_wire(self, include_id: bool = True) -> Dict[str, str]:
        """Flatten to the SheetDB column layout"""
        from bom_catalog.services.vendor_codec import encode

        data = {column: getattr(self, attr) for attr, column in WIRE_FIELDS.items()}
        data["vendors"] = encode(self.vendors)
        if include_id:
            data["id"] = self.id
        return data

    def price_value(self) -> float:
        return parse_price(self.approx_price)

    def to_dict(self):
        return {
            "id": self.id,
            "item_code": self.item_code,
            "sku": self.sku,
            "product_description": self.product_description,
            "category": self.category,
            "approx_price": self.approx_price,
            "order_link": self.order_link,
            "vendors": [v.to_dict() for v in self.vendors],
        }


@dataclass
class IntentLineItem:
    """A single row of the purchase intent document (never persisted)"""
    sno: int
    part_number: str
    sku: str
    product_description: str
    quantity: int
    vendor_name: str
    price: float
    total: float

    def to_dict(self):
        return {
            "sno": self.sno,
            "part_number": self.part_number,
            "sku": self.sku,
            "product_description": self.product_description,
            "quantity": self.quantity,
            "vendor_name": self.vendor_name,
            "price": self.price,
            "total": round(self.total, 2),
        }


@dataclass
class StatusMessage:
    """Transient user-facing status, dismissed after a fixed interval"""
    message: str
    type: str = "success"
    created_at: float = field(default_factory=time.monotonic)

    def is_expired(self, timeout: float, now: Optional[float] = None) -> bool:
        now = time.monotonic() if now is None else now
        return now - self.created_at >= timeout

    def to_dict(self):
        return {"message": self.message, "type": self.type}


@dataclass
class OperationResult:
    """Outcome of a store operation; failures are reported, never raised"""
    ok: bool
    message: str
    record: Optional[BomRecord] = None
    # "validation", "transport" or "cancelled" when ok is False
    error_type: Optional[str] = None

    def to_dict(self):
        return {
            "ok": self.ok,
            "message": self.message,
            "record": self.record.to_dict() if self.record else None,
            "error_type": self.error_type,
        }


@dataclass
class BomStatistics:
    """Summary numbers shown above the table"""
    total_records: int = 0
    category_count: int = 0
    total_value: float = 0.0

    def to_dict(self):
        return {
            "total_records": self.total_records,
            "category_count": self.category_count,
            "total_value": round(self.total_value, 2),
        }
