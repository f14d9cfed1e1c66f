import pytest

from bom_catalog.database.sheetdb_client import SheetDBError
from bom_catalog.models.bom_models import BomRecord, Vendor
from bom_catalog.services.bom_service import BomService


class FakeSheetDBClient:
    """In-memory stand-in for SheetDBClient that records every call"""

    def __init__(self, rows=None):
        self.rows = [dict(r) for r in rows or []]
        self.calls = []
        self.failures = {}

    def fail(self, method, status_code, details="boom"):
        self.failures[method] = SheetDBError(status_code, details)

    def _call(self, method, *args):
        self.calls.append((method,) + args)
        if method in self.failures:
            raise self.failures[method]

    def methods_called(self):
        return [c[0] for c in self.calls]

    def list_all(self):
        self._call("list_all")
        return [dict(r) for r in self.rows]

    def create(self, data):
        self._call("create", data)
        self.rows.append(dict(data))
        return {"created": 1}

    def update(self, record_id, data):
        self._call("update", record_id, data)
        for row in self.rows:
            if row["id"] == record_id:
                row.update(data)
        return {"updated": 1}

    def delete(self, record_id):
        self._call("delete", record_id)
        self.rows = [r for r in self.rows if r["id"] != record_id]
        return {"deleted": 1}

    def close(self):
        pass


class RecordingScheduler:
    """Collects delayed refreshes instead of starting timers"""

    def __init__(self):
        self.pending = []

    def __call__(self, delay, fn):
        self.pending.append((delay, fn))

    def run_all(self):
        pending, self.pending = self.pending, []
        for _, fn in pending:
            fn()


def sheet_row(id, sku, category="Fasteners", price="10", vendors="Acme,555-1111,12 Main St", **extra):
    row = {
        "id": id,
        "itemCode": f"IC-{id}",
        "sku": sku,
        "productDescription": f"Part {sku}",
        "category": category,
        "approxPrice": price,
        "orderLink": "",
        "vendors": vendors,
    }
    row.update(extra)
    return row


def make_record(id="", sku="SKU-1", price="10", vendors=None, **fields):
    values = dict(
        item_code=f"IC-{sku}",
        sku=sku,
        product_description=f"Part {sku}",
        category="Fasteners",
        approx_price=price,
    )
    values.update(fields)
    if vendors is None:
        vendors = [Vendor("Acme", "555-1111", "12 Main St")]
    return BomRecord(id=id, vendors=vendors, **values)


def always(answer):
    prompts = []

    def confirm(message):
        prompts.append(message)
        return answer

    confirm.prompts = prompts
    return confirm


@pytest.fixture
def client():
    return FakeSheetDBClient([
        sheet_row("1", "SKU-1"),
        sheet_row("2", "SKU-2", category="Cables", price="5.5", vendors="Globex,555-2222,"),
        sheet_row("3", "SKU-3", category="", price="abc", vendors=""),
    ])


@pytest.fixture
def scheduler():
    return RecordingScheduler()


@pytest.fixture
def service(client, scheduler):
    svc = BomService(client=client, schedule=scheduler)
    svc.load_all()
    client.calls.clear()
    return svc
