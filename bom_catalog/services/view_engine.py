"""
Derived views over the record cache: sort, search, filter, paginate, stats.
Everything here is a pure function of its inputs.
"""
import math
from dataclasses import dataclass, field
from typing import Iterable, List, Optional, Sequence

from bom_catalog.models.bom_models import BomRecord, BomStatistics

ASC = "asc"
DESC = "desc"

SORT_FIELDS = ("id", "item_code", "sku", "category", "product_description", "approx_price")

# Accept the SheetDB column names as sort keys too
SORT_ALIASES = {
    "itemCode": "item_code",
    "productDescription": "product_description",
    "approxPrice": "approx_price",
}


@dataclass(frozen=True)
class SortConfig:
    key: Optional[str] = None
    direction: str = ASC


@dataclass(frozen=True)
class Page:
    items: List = field(default_factory=list)
    page: int = 1
    page_size: int = 10
    total: int = 0
    total_pages: int = 0

    @property
    def first_index(self) -> int:
        """1-based index of the first item shown, 0 when the page is empty"""
        return (self.page - 1) * self.page_size + 1 if self.items else 0

    @property
    def last_index(self) -> int:
        return min(self.page * self.page_size, self.total)


def normalize_sort_key(key: Optional[str]) -> Optional[str]:
    if not key:
        return None
    key = SORT_ALIASES.get(key, key)
    if key not in SORT_FIELDS:
        raise ValueError(f"Unknown sort field: {key}")
    return key


def toggle_sort(config: SortConfig, key: str) -> SortConfig:
    """Re-selecting an ascending column flips it; any other choice starts ascending"""
    key = normalize_sort_key(key)
    if config.key == key and config.direction == ASC:
        return SortConfig(key, DESC)
    return SortConfig(key, ASC)


def sort_records(records: Sequence[BomRecord], config: SortConfig) -> List[BomRecord]:
    """Stable lexicographic sort on the stringified field; no key keeps load order"""
    if not config.key:
        return list(records)
    key = normalize_sort_key(config.key)
    return sorted(
        records,
        key=lambda r: str(getattr(r, key) or ""),
        reverse=config.direction == DESC,
    )


def _searchable_values(record: BomRecord) -> Iterable[str]:
    yield record.id
    yield record.item_code
    yield record.sku
    yield record.product_description
    yield record.category
    yield record.approx_price
    yield record.order_link
    for vendor in record.vendors:
        yield vendor.name
        yield vendor.phone
        yield vendor.address


def search(records: Sequence[BomRecord], term: Optional[str]) -> List[BomRecord]:
    """Case-insensitive substring match against every field of a record"""
    if not term:
        return list(records)
    needle = term.lower()
    return [
        r for r in records
        if any(needle in str(value).lower() for value in _searchable_values(r) if value)
    ]


def search_products(records: Sequence[BomRecord], term: Optional[str]) -> List[BomRecord]:
    """Product picker search: SKU, item code and description only"""
    if not term:
        return list(records)
    needle = term.lower()
    return [
        r for r in records
        if needle in r.sku.lower()
        or needle in r.item_code.lower()
        or needle in r.product_description.lower()
    ]


def filter_by_category(records: Sequence[BomRecord], category: Optional[str]) -> List[BomRecord]:
    if not category:
        return list(records)
    return [r for r in records if r.category == category]


def paginate(items: Sequence, page: int, page_size: int) -> Page:
    """Slice one page. Out-of-range pages come back empty, not clamped."""
    if page_size < 1:
        raise ValueError("page_size must be at least 1")
    total = len(items)
    start = (page - 1) * page_size
    window = list(items[start:start + page_size]) if page >= 1 else []
    return Page(
        items=window,
        page=page,
        page_size=page_size,
        total=total,
        total_pages=math.ceil(total / page_size),
    )


def page_window(current: int, total_pages: int, size: int = 5) -> List[int]:
    """Page numbers for the pager buttons, keeping the cursor centered"""
    if total_pages <= size:
        return list(range(1, total_pages + 1))
    half = size // 2
    if current <= half + 1:
        start = 1
    elif current >= total_pages - half:
        start = total_pages - size + 1
    else:
        start = current - half
    return list(range(start, start + size))


def categories(records: Iterable[BomRecord]) -> List[str]:
    """Distinct non-empty categories in first-seen order"""
    seen = []
    for r in records:
        if r.category and r.category not in seen:
            seen.append(r.category)
    return seen


def aggregate(records: Sequence[BomRecord]) -> BomStatistics:
    return BomStatistics(
        total_records=len(records),
        # A blank category counts as one of the distinct values
        category_count=len({r.category for r in records}),
        total_value=sum(r.price_value() for r in records),
    )
