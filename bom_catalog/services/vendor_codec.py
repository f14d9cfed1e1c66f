"""
Vendor list <-> SheetDB text column

SheetDB stores every column as text, so a product's vendors travel as one
string: vendors joined with "|", each one "name,phone,address".
Commas and pipes inside a field are not escaped and will break the parse.
"""
import logging
from typing import Any, List

from bom_catalog.models.bom_models import Vendor

logger = logging.getLogger(__name__)

VENDOR_SEPARATOR = "|"
FIELD_SEPARATOR = ","


def _coerce(item: Any) -> Vendor:
    if isinstance(item, Vendor):
        return item
    return Vendor(
        name=item.get("name") or "",
        phone=item.get("phone") or "",
        address=item.get("address") or "",
    )


def decode(raw: Any) -> List[Vendor]:
    """Parse the vendors column. Never raises; bad input gives an empty list."""
    if not raw:
        return []

    try:
        if isinstance(raw, list):
            return [_coerce(item) for item in raw]

        vendors = []
        for segment in raw.split(VENDOR_SEPARATOR):
            parts = segment.split(FIELD_SEPARATOR)
            parts += [""] * (3 - len(parts))
            vendors.append(Vendor(name=parts[0], phone=parts[1], address=parts[2]))
        return vendors
    except Exception as e:
        logger.error(f"Error parsing vendors {raw!r}: {e}")
        return []


def encode(vendors: Any) -> str:
    """Flatten vendors into the SheetDB column, keeping their order"""
    if not vendors or not isinstance(vendors, list):
        return ""

    return VENDOR_SEPARATOR.join(
        FIELD_SEPARATOR.join([v.name or "", v.phone or "", v.address or ""])
        for v in map(_coerce, vendors)
    )
