"""
Purchase intent document
Turns the intent selection into line items and renders the printable page
"""
import logging
from datetime import date
from typing import List, Optional, Sequence

from jinja2 import Environment, PackageLoader, select_autoescape

from bom_catalog.config import Config
from bom_catalog.models.bom_models import BomRecord, IntentLineItem, ValidationError
from bom_catalog.services.form_state import IntentSelection

logger = logging.getLogger(__name__)

DOCUMENT_TITLE = "RAW MATERIAL INDIAN NOTE"
MIN_TABLE_ROWS = 15
NO_VENDOR = "No Vendor"

SIGNATURES = [
    ("Prepared By", "Name & Signature with date"),
    ("Department", None),
    ("Approved by", "Name & Signature with date"),
    ("Processed By", "Name & Signature with date"),
]

_env = Environment(
    loader=PackageLoader("bom_catalog", "templates"),
    autoescape=select_autoescape(["html"]),
)


def build_line_items(records: Sequence[BomRecord], selection: IntentSelection) -> List[IntentLineItem]:
    """One line per selected product, in selection order"""
    if not len(selection):
        raise ValidationError("Please select at least one product.")

    by_id = {r.id: r for r in records}
    items = []
    for record_id, choice in selection.choices.items():
        product = by_id.get(record_id)
        if product is None:
            logger.warning(f"Selected product {record_id} is no longer in the catalog, skipping")
            continue

        price = product.price_value()
        vendor_name = choice.vendor_name or (product.vendors[0].name if product.vendors else NO_VENDOR)
        items.append(IntentLineItem(
            sno=len(items) + 1,
            part_number=product.item_code or "-",
            sku=product.sku or "-",
            product_description=product.product_description or "-",
            quantity=choice.quantity,
            vendor_name=vendor_name,
            price=price,
            total=price * choice.quantity,
        ))

    logger.info(f"Generated intent with {len(items)} line items")
    return items


def grand_total(items: Sequence[IntentLineItem]) -> float:
    return sum(item.total for item in items)


def render_intent_document(items: Sequence[IntentLineItem], issued_on: Optional[date] = None) -> str:
    """Standalone HTML page; blank rows pad the table to MIN_TABLE_ROWS"""
    issued_on = issued_on or date.today()
    template = _env.get_template("intent.html")
    return template.render(
        title=DOCUMENT_TITLE,
        company_name=Config.COMPANY_NAME,
        doc_number=Config.DOC_NUMBER,
        issued_on=issued_on.strftime("%d/%m/%Y"),
        items=items,
        blank_rows=range(len(items) + 1, MIN_TABLE_ROWS + 1),
        grand_total=grand_total(items),
        signatures=SIGNATURES,
    )
