import logging
import threading
from dataclasses import replace
from typing import Callable, List, Optional

from bom_catalog.config import Config
from bom_catalog.database.sheetdb_client import SheetDBClient, SheetDBError
from bom_catalog.models.bom_models import (
    REQUIRED_FIELDS,
    BomRecord,
    OperationResult,
    StatusMessage,
    ValidationError,
)

logger = logging.getLogger(__name__)

Confirm = Callable[[str], bool]
Scheduler = Callable[[float, Callable[[], object]], object]

DELETE_ERROR_HINTS = {
    400: "The server rejected the request. Please check if the record exists.",
    404: "Record not found. It may have been already deleted.",
    500: "Server error. Please try again later.",
}


def timer_schedule(delay: float, fn: Callable[[], object]) -> threading.Timer:
    """Run fn once after delay seconds on a daemon thread"""
    timer = threading.Timer(delay, fn)
    timer.daemon = True
    timer.start()
    return timer


def generate_new_id(records: List[BomRecord]) -> str:
    """Next id is the highest numeric id + 1; non-numeric ids count as 0"""
    if not records:
        return "1"

    def as_number(record_id: str) -> int:
        try:
            return int(record_id)
        except (TypeError, ValueError):
            return 0

    return str(max(as_number(r.id) for r in records) + 1)


class BomService:
    """
    Record store for the BOM sheet

    Key responsibilities:
    1. Hold the in-memory copy of every record (a cache of SheetDB)
    2. Validate drafts before anything is sent
    3. Create, update and delete rows through the SheetDB client
    4. Reconcile the cache with a delayed full reload after each mutation
    5. Turn every outcome into a status message for the user
    """

    def __init__(self, client: Optional[SheetDBClient] = None,
                 schedule: Optional[Scheduler] = None):
        self.client = client or SheetDBClient()
        self.schedule = schedule or timer_schedule
        self.status: Optional[StatusMessage] = None
        self._records: List[BomRecord] = []
        self._lock = threading.Lock()
        self._generation = 0
        self._applied_generation = 0
        logger.info("BOM service initialized")

    # ================================================================
    # Cache access
    # ================================================================
    @property
    def records(self) -> List[BomRecord]:
        with self._lock:
            return list(self._records)

    def get(self, record_id: str) -> Optional[BomRecord]:
        return next((r for r in self.records if r.id == record_id), None)

    def find_by_sku(self, sku: str) -> Optional[BomRecord]:
        return next((r for r in self.records if r.sku == sku), None)

    def unique_skus(self) -> List[str]:
        """SKUs for the lookup dropdown, in load order"""
        skus = []
        for r in self.records:
            if r.sku and r.sku not in skus:
                skus.append(r.sku)
        return skus

    # ================================================================
    # Status
    # ================================================================
    def report(self, message: str, type: str = "success") -> None:
        with self._lock:
            self.status = StatusMessage(message, type)
        log = logger.error if type == "error" else logger.info
        log(f"STATUS: {message}")

    def current_status(self) -> Optional[StatusMessage]:
        """The latest status, or None once it has been dismissed"""
        with self._lock:
            status = self.status
            if status and status.is_expired(Config.STATUS_TIMEOUT_SECONDS):
                self.status = None
                return None
            return status

    def _fail(self, message: str, error_type: str) -> OperationResult:
        self.report(message, "error")
        return OperationResult(False, message, error_type=error_type)

    # ================================================================
    # Load
    # ================================================================
    def load_all(self) -> Optional[List[BomRecord]]:
        """
        Replace the cache with a fresh copy of the sheet
        Returns the loaded records, or None when the fetch failed
        """
        with self._lock:
            self._generation += 1
            generation = self._generation

        try:
            rows = self.client.list_all()
            records = [BomRecord.from_wire(row) for row in rows]
        except Exception as e:
            logger.error(f"Load failed: {e}", exc_info=not isinstance(e, SheetDBError))
            self.report(f"Error loading BOM data: {e}", "error")
            return None

        with self._lock:
            if generation <= self._applied_generation:
                # A newer load or a local delete already landed
                logger.debug(f"Discarding stale load #{generation}")
                return records
            self._records = records
            self._applied_generation = generation

        self.report(f"Loaded {len(records)} records successfully")
        return records

    def _schedule_refresh(self, delay: float) -> None:
        logger.debug(f"Refresh scheduled in {delay}s")
        self.schedule(delay, self.load_all)

    # ================================================================
    # Validation
    # ================================================================
    def validate(self, draft: BomRecord, editing_id: Optional[str] = None) -> None:
        """Raise ValidationError when the draft cannot be saved"""
        if any(not str(getattr(draft, name) or "").strip() for name in REQUIRED_FIELDS):
            raise ValidationError("Please fill in all product information fields")

        if not draft.vendors:
            raise ValidationError("Please add at least one vendor")

        # Edits may keep their own SKU, so only new records are checked
        if editing_id is None and any(r.sku == draft.sku for r in self.records):
            raise ValidationError("SKU already exists. Please use a unique SKU.")

    # ================================================================
    # Mutations
    # ================================================================
    def create(self, draft: BomRecord, confirm: Confirm) -> OperationResult:
        """Validate, confirm, assign the next id and append the row"""
        try:
            self.validate(draft)
        except ValidationError as e:
            return self._fail(str(e), "validation")

        if not confirm("Are you sure you want to save this new record?"):
            return OperationResult(False, "Save cancelled", error_type="cancelled")

        record = replace(draft, id=generate_new_id(self.records))
        try:
            self.client.create(record.to_wire())
        except SheetDBError as e:
            return self._fail(f"Error saving data: {e}", "transport")

        message = f"New record saved successfully with ID: {record.id}"
        self.report(message)
        self._schedule_refresh(Config.REFRESH_DELAY_SECONDS)
        return OperationResult(True, message, record)

    def update(self, record_id: str, draft: BomRecord, confirm: Confirm) -> OperationResult:
        """Validate, confirm and replace every column of an existing row"""
        try:
            self.validate(draft, editing_id=record_id)
        except ValidationError as e:
            return self._fail(str(e), "validation")

        if not confirm(f"Are you sure you want to update record {record_id}?"):
            return OperationResult(False, "Update cancelled", error_type="cancelled")

        record = replace(draft, id=record_id)
        try:
            self.client.update(record_id, record.to_wire(include_id=False))
        except SheetDBError as e:
            return self._fail(f"Error saving data: {e}", "transport")

        message = "Record updated successfully!"
        self.report(message)
        self._schedule_refresh(Config.REFRESH_DELAY_SECONDS)
        return OperationResult(True, message, record)

    def delete(self, record_id: str, confirm: Confirm) -> OperationResult:
        """
        Delete a row
        The cache drops the record as soon as SheetDB accepts the delete,
        then a delayed reload reconciles it with the sheet.
        """
        if not confirm(f"Are you sure you want to delete record {record_id}?"):
            return OperationResult(False, "Delete cancelled", error_type="cancelled")

        try:
            self.client.delete(record_id)
        except SheetDBError as e:
            hint = DELETE_ERROR_HINTS.get(e.status_code, "Please check the logs for details.")
            logger.error(f"Delete of {record_id} failed: {e}")
            return self._fail(f"Error deleting record. {hint}", "transport")

        with self._lock:
            removed = next((r for r in self._records if r.id == record_id), None)
            self._records = [r for r in self._records if r.id != record_id]
            # Loads already in flight may still contain the deleted row
            self._applied_generation = self._generation

        message = f"Record {record_id} deleted successfully!"
        self.report(message)
        self._schedule_refresh(Config.DELETE_REFRESH_DELAY_SECONDS)
        return OperationResult(True, message, removed)

    def close(self):
        self.client.close()
