from typing import Optional, Union

from fastapi import Depends, FastAPI, HTTPException, Query
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import HTMLResponse
from pydantic import BaseModel
import logging

from bom_catalog.config import Config
from bom_catalog.models.bom_models import ValidationError
from bom_catalog.services.bom_service import BomService
from bom_catalog.services.form_state import EditSession, IntentSelection
from bom_catalog.services import intent_composer, view_engine

logger = logging.getLogger(__name__)

app = FastAPI(
    title="BOM Catalog API",
    description="Bill-of-Materials catalog backed by SheetDB",
    version="1.0.0"
)

# CORS for the browser frontend
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)


class Workspace:
    """Everything one user is working on: record store, drafts, selection, view"""

    def __init__(self, service: Optional[BomService] = None):
        self.service = service or BomService()
        self.session = EditSession()
        self.selection = IntentSelection()
        self.intent_items = []
        self.sort = view_engine.SortConfig()


_workspace: Optional[Workspace] = None


def get_workspace() -> Workspace:
    global _workspace
    if _workspace is None:
        _workspace = Workspace()
    return _workspace


def confirmed(flag: bool):
    """The confirm query flag as a confirmation callback"""
    def confirm(message: str) -> bool:
        if not flag:
            logger.info(f"Not confirmed: {message}")
        return flag
    return confirm


def result_response(result):
    """Map a store OperationResult onto an HTTP response"""
    if result.ok or result.error_type == "cancelled":
        return result.to_dict()
    status_code = 400 if result.error_type == "validation" else 502
    raise HTTPException(status_code=status_code, detail=result.message)


def require_record(ws: Workspace, record_id: str):
    record = ws.service.get(record_id)
    if record is None:
        raise HTTPException(status_code=404, detail=f"Record {record_id} not found")
    return record


# ================================================================
# Request bodies
# ================================================================
class ProductFields(BaseModel):
    item_code: Optional[str] = None
    sku: Optional[str] = None
    product_description: Optional[str] = None
    category: Optional[str] = None
    approx_price: Optional[str] = None
    order_link: Optional[str] = None


class VendorIn(BaseModel):
    name: str
    phone: str = ""
    address: str = ""


class VendorEdit(BaseModel):
    field: str
    value: str = ""


class IntentChoiceIn(BaseModel):
    quantity: Optional[Union[int, str]] = None
    vendor_name: Optional[str] = None


# ================================================================
# Records
# ================================================================
@app.get("/")
def root():
    return {"status": "running", "service": "BOM Catalog"}


@app.get("/api/status")
def get_status(ws: Workspace = Depends(get_workspace)):
    """Current status message, empty once dismissed"""
    status = ws.service.current_status()
    return status.to_dict() if status else {"message": "", "type": ""}


@app.get("/api/records")
def list_records(
    search: str = "",
    category: str = "",
    sort: Optional[str] = None,
    direction: Optional[str] = Query(None, pattern="^(asc|desc)$"),
    page: int = 1,
    page_size: int = Query(Config.PAGE_SIZE, ge=1),
    ws: Workspace = Depends(get_workspace),
):
    """Table view: sort, search, filter, then one page"""
    try:
        config = ws.sort
        if sort:
            config = view_engine.SortConfig(view_engine.normalize_sort_key(sort), direction or view_engine.ASC)
        rows = view_engine.sort_records(ws.service.records, config)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    rows = view_engine.filter_by_category(view_engine.search(rows, search), category)
    result = view_engine.paginate(rows, page, page_size)
    return {
        "records": [r.to_dict() for r in result.items],
        "page": result.page,
        "page_size": result.page_size,
        "total": result.total,
        "first_index": result.first_index,
        "last_index": result.last_index,
        "total_pages": result.total_pages,
        "pages": view_engine.page_window(result.page, result.total_pages),
        "sort": {"key": config.key, "direction": config.direction},
    }


@app.post("/api/records/sort/{field}")
def toggle_sort(field: str, ws: Workspace = Depends(get_workspace)):
    """Click on a column header"""
    try:
        ws.sort = view_engine.toggle_sort(ws.sort, field)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return {"key": ws.sort.key, "direction": ws.sort.direction}


@app.post("/api/records/refresh")
def refresh_records(ws: Workspace = Depends(get_workspace)):
    """Reload every record from SheetDB"""
    records = ws.service.load_all()
    if records is None:
        raise HTTPException(status_code=502, detail=ws.service.status.message)
    return {"count": len(records)}


@app.get("/api/stats")
def get_statistics(ws: Workspace = Depends(get_workspace)):
    records = ws.service.records
    stats = view_engine.aggregate(records).to_dict()
    stats["categories"] = view_engine.categories(records)
    stats["draft_vendors"] = len(ws.session.vendors)
    return stats


@app.get("/api/skus")
def get_skus(ws: Workspace = Depends(get_workspace)):
    return {"skus": ws.service.unique_skus()}


@app.post("/api/records/{record_id}/edit")
def edit_record(record_id: str, ws: Workspace = Depends(get_workspace)):
    """Load a record into the drafts for editing"""
    record = require_record(ws, record_id)
    ws.session.begin_edit(record)
    ws.service.report("Editing record. Update and save changes.", "info")
    return ws.session.to_dict()


@app.delete("/api/records/{record_id}")
def delete_record(record_id: str, confirm: bool = False, ws: Workspace = Depends(get_workspace)):
    return result_response(ws.service.delete(record_id, confirmed(confirm)))


# ================================================================
# Product and vendor drafts
# ================================================================
@app.get("/api/draft")
def get_draft(ws: Workspace = Depends(get_workspace)):
    return ws.session.to_dict()


@app.get("/api/draft/product")
def get_product_draft(ws: Workspace = Depends(get_workspace)):
    return ws.session.product.to_dict()


@app.put("/api/draft/product")
def update_product_draft(fields: ProductFields, ws: Workspace = Depends(get_workspace)):
    try:
        ws.session.product.update(**fields.model_dump(exclude_unset=True))
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return ws.session.product.to_dict()


@app.post("/api/draft/product/sku/{sku}")
def select_sku(sku: str, ws: Workspace = Depends(get_workspace)):
    """Fill the product draft from an existing record with this SKU"""
    record = ws.service.find_by_sku(sku)
    if record is None:
        raise HTTPException(status_code=404, detail=f"SKU {sku} not found")
    ws.session.product.load_from(record)
    return ws.session.product.to_dict()


@app.post("/api/draft/vendors")
def add_vendor(vendor: VendorIn, ws: Workspace = Depends(get_workspace)):
    try:
        added = ws.session.vendors.add(vendor.name, vendor.phone, vendor.address)
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return added.to_dict()


@app.patch("/api/draft/vendors/{vendor_id}")
def edit_vendor(vendor_id: int, change: VendorEdit, ws: Workspace = Depends(get_workspace)):
    try:
        return ws.session.vendors.edit(vendor_id, change.field, change.value).to_dict()
    except KeyError:
        raise HTTPException(status_code=404, detail=f"Vendor {vendor_id} not found")
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))


@app.delete("/api/draft/vendors/{vendor_id}")
def remove_vendor(vendor_id: int, confirm: bool = False, ws: Workspace = Depends(get_workspace)):
    try:
        removed = ws.session.vendors.remove(vendor_id, confirmed(confirm))
    except KeyError:
        raise HTTPException(status_code=404, detail=f"Vendor {vendor_id} not found")
    return {"removed": removed, "vendors": ws.session.vendors.to_list()}


@app.post("/api/draft/save")
def save_draft(confirm: bool = False, ws: Workspace = Depends(get_workspace)):
    """Create a new record, or update the one being edited"""
    return result_response(ws.session.save(ws.service, confirmed(confirm)))


@app.post("/api/draft/cancel")
def cancel_edit(ws: Workspace = Depends(get_workspace)):
    ws.session.cancel()
    ws.service.report("Edit cancelled", "info")
    return ws.session.to_dict()


@app.post("/api/draft/reset")
def reset_draft(ws: Workspace = Depends(get_workspace)):
    ws.session.cancel()
    return ws.session.to_dict()


# ================================================================
# Purchase intent
# ================================================================
def _picker_rows(ws: Workspace, search: str, category: str):
    return view_engine.filter_by_category(view_engine.search_products(ws.service.records, search), category)


def _picker_page(ws: Workspace, search: str, category: str, page: int):
    return view_engine.paginate(_picker_rows(ws, search, category), page, Config.INTENT_PAGE_SIZE).items


def intent_state(ws: Workspace):
    return {
        "selection": ws.selection.to_dict(),
        "selected_count": len(ws.selection),
        "current_total": round(ws.selection.current_total(ws.service.records), 2),
    }


@app.get("/api/intent/products")
def list_intent_products(
    search: str = "",
    category: str = "",
    page: int = 1,
    ws: Workspace = Depends(get_workspace),
):
    """Product picker: narrower search, category filter, fixed page size"""
    result = view_engine.paginate(_picker_rows(ws, search, category), page, Config.INTENT_PAGE_SIZE)
    return {
        "products": [r.to_dict() for r in result.items],
        "categories": view_engine.categories(ws.service.records),
        "page": result.page,
        "total": result.total,
        "first_index": result.first_index,
        "last_index": result.last_index,
        "total_pages": result.total_pages,
        "pages": view_engine.page_window(result.page, result.total_pages),
    }


@app.get("/api/intent")
def get_intent(ws: Workspace = Depends(get_workspace)):
    return intent_state(ws)


@app.post("/api/intent/select/{record_id}")
def select_product(record_id: str, ws: Workspace = Depends(get_workspace)):
    ws.selection = ws.selection.select(require_record(ws, record_id))
    return intent_state(ws)


@app.post("/api/intent/deselect/{record_id}")
def deselect_product(record_id: str, ws: Workspace = Depends(get_workspace)):
    ws.selection = ws.selection.deselect(record_id)
    return intent_state(ws)


@app.put("/api/intent/{record_id}")
def update_choice(record_id: str, choice: IntentChoiceIn, ws: Workspace = Depends(get_workspace)):
    """Change quantity and/or vendor of a selected product"""
    try:
        selection = ws.selection
        if choice.quantity is not None:
            selection = selection.set_quantity(record_id, choice.quantity)
        if choice.vendor_name is not None:
            selection = selection.set_vendor(record_id, choice.vendor_name)
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))
    ws.selection = selection
    return intent_state(ws)


@app.post("/api/intent/page/select")
def select_page(search: str = "", category: str = "", page: int = 1,
                ws: Workspace = Depends(get_workspace)):
    ws.selection = ws.selection.select_page(_picker_page(ws, search, category, page))
    return intent_state(ws)


@app.post("/api/intent/page/deselect")
def deselect_page(search: str = "", category: str = "", page: int = 1,
                  ws: Workspace = Depends(get_workspace)):
    ws.selection = ws.selection.deselect_page(_picker_page(ws, search, category, page))
    return intent_state(ws)


@app.post("/api/intent/clear")
def clear_intent(ws: Workspace = Depends(get_workspace)):
    ws.selection = ws.selection.clear()
    ws.intent_items = []
    return intent_state(ws)


@app.post("/api/intent/generate")
def generate_intent(ws: Workspace = Depends(get_workspace)):
    """Turn the selection into line items for the preview"""
    try:
        ws.intent_items = intent_composer.build_line_items(ws.service.records, ws.selection)
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return {
        "items": [item.to_dict() for item in ws.intent_items],
        "grand_total": round(intent_composer.grand_total(ws.intent_items), 2),
    }


@app.get("/api/intent/document", response_class=HTMLResponse)
def intent_document(ws: Workspace = Depends(get_workspace)):
    """Printable purchase intent for the last generated line items"""
    if not ws.intent_items:
        raise HTTPException(status_code=400, detail="Generate the intent before printing")
    try:
        return intent_composer.render_intent_document(ws.intent_items)
    except Exception as e:
        logger.error(f"API: Render intent failed - {e}")
        raise HTTPException(status_code=500, detail=str(e))


@app.on_event("startup")
def startup():
    """Validate configuration and load the sheet on startup"""
    Config.validate()
    get_workspace().service.load_all()
    logger.info("API server started")


@app.on_event("shutdown")
def shutdown():
    """Cleanup on shutdown"""
    if _workspace is not None:
        _workspace.service.close()
    logger.info("API server stopped")
