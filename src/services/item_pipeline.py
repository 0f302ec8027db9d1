import logging
from dataclasses import dataclass, field
from functools import cmp_to_key
from typing import Any, Callable, Dict, List, Literal, Optional

from pydantic import BaseModel

from src.core.config import PAGE_SIZE_OPTIONS, ViewPreferences
from src.core.constants import SORT_COLUMNS, TABS
from src.core.models import Item
from src.core.text_utils import contains_ci, locale_compare
from src.services.aggregation import display_name

logger = logging.getLogger(__name__)

NEG_INF = float('-inf')

class ItemFilters(BaseModel):
    """Column filters for the items listing. Unset fields do not filter."""
    item_type: Optional[Literal["card", "comic"]] = None
    name: str = ""
    manufacturer: str = ""
    sport: str = ""
    team: str = ""
    card_number: str = ""
    publisher: str = ""
    condition: str = ""
    description: str = ""
    container_id: Optional[str] = None
    zone_id: Optional[str] = None
    year_min: Optional[float] = None
    year_max: Optional[float] = None
    quantity_min: Optional[float] = None
    quantity_max: Optional[float] = None
    grade_min: Optional[float] = None
    grade_max: Optional[float] = None
    price_min: Optional[float] = None
    price_max: Optional[float] = None
    cost_min: Optional[float] = None
    cost_max: Optional[float] = None
    is_rookie: Literal["yes", "no", ""] = ""

class SortState(BaseModel):
    column: Optional[str] = None
    direction: Literal["asc", "desc"] = "asc"

    def toggle(self, column: str) -> "SortState":
        """Same column flips the direction, a new column starts ascending."""
        if column not in SORT_COLUMNS:
            raise ValueError(f"Unknown sort column: {column}")
        if column == self.column:
            return SortState(column=column, direction="desc" if self.direction == "asc" else "asc")
        return SortState(column=column, direction="asc")

@dataclass
class PipelineResult:
    filtered: List[Item] = field(default_factory=list)
    page_items: List[Item] = field(default_factory=list)
    total_filtered: int = 0
    total_pages: int = 0
    page: int = 1

# --- Stage 1: tab ---

def _is_graded(item: Item) -> bool:
    # 0 is a real grade
    return item.grade is not None and item.grade != ""

def filter_by_tab(items: List[Item], tab: str) -> List[Item]:
    if tab == "all":
        return list(items)
    if tab == "card":
        return [i for i in items if i.item_type == "card"]
    if tab == "comic":
        return [i for i in items if i.item_type == "comic"]
    if tab == "graded-card":
        return [i for i in items if i.item_type == "card" and _is_graded(i)]
    if tab == "graded-comic":
        return [i for i in items if i.item_type == "comic" and _is_graded(i)]
    raise ValueError(f"Unknown tab: {tab}")

# --- Stage 2: column filters ---

def _in_range(value: Optional[float], lo: Optional[float], hi: Optional[float]) -> bool:
    # A missing value is never excluded by a range bound
    if value is None:
        return True
    if lo is not None and value < lo:
        return False
    if hi is not None and value > hi:
        return False
    return True

def apply_column_filters(items: List[Item], filters: ItemFilters) -> List[Item]:
    res = list(items)
    f = filters

    if f.item_type:
        res = [i for i in res if i.item_type == f.item_type]

    if f.name:
        res = [i for i in res if contains_ci(i.name, f.name)]

    # Card-only text fields; comics pass
    for fname, attr in (("manufacturer", "manufacturer"), ("sport", "sport"),
                        ("team", "team"), ("card_number", "number")):
        needle = getattr(f, fname)
        if needle:
            res = [i for i in res if i.item_type != "card" or contains_ci(getattr(i, attr), needle)]

    if f.publisher:
        res = [i for i in res if i.item_type != "comic" or contains_ci(i.publisher, f.publisher)]

    if f.condition:
        res = [i for i in res if contains_ci(i.condition, f.condition)]

    if f.description:
        res = [i for i in res if contains_ci(i.description, f.description)]

    if f.container_id:
        res = [i for i in res if i.container_id == f.container_id]

    if f.zone_id:
        res = [i for i in res if i.zone_id == f.zone_id]

    for fname in ("year", "grade", "price", "cost"):
        lo, hi = getattr(f, f"{fname}_min"), getattr(f, f"{fname}_max")
        if lo is not None or hi is not None:
            res = [i for i in res if _in_range(getattr(i, fname), lo, hi)]

    if f.quantity_min is not None or f.quantity_max is not None:
        res = [i for i in res if _in_range(i.quantity, f.quantity_min, f.quantity_max)]

    if f.is_rookie:
        wanted = f.is_rookie == "yes"
        res = [i for i in res if i.item_type != "card" or i.is_rookie == wanted]

    return res

# --- Stage 3: sort ---

def _card_attr(item: Item, attr: str) -> Any:
    return getattr(item, attr) if item.item_type == "card" else None

def profit_loss(item: Item) -> float:
    return ((item.price or 0) - (item.cost or 0)) * item.quantity

_STRING_KEYS: Dict[str, Callable[[Item], Optional[str]]] = {
    "type": lambda i: i.item_type,
    "name": display_name,
    "details": lambda i: i.details,
    "cardNumber": lambda i: _card_attr(i, "number"),
    "team": lambda i: _card_attr(i, "team"),
    "container": lambda i: i.container_name,
    "zone": lambda i: i.zone_name,
    "condition": lambda i: i.condition,
    "description": lambda i: i.description,
}

_NUMBER_KEYS: Dict[str, Callable[[Item], float]] = {
    "quantity": lambda i: i.quantity or 0,
    "grade": lambda i: NEG_INF if i.grade is None else i.grade,
    "price": lambda i: NEG_INF if i.price is None else i.price,
    "cost": lambda i: NEG_INF if i.cost is None else i.cost,
    "isRookie": lambda i: (1 if i.is_rookie else 0) if i.item_type == "card" else -1,
    "profitLoss": profit_loss,
}

def _compare_numbers(a: float, b: float) -> int:
    if a == b:
        return 0
    return -1 if a < b else 1

def _compare(a: Item, b: Item, column: str) -> int:
    if column in _STRING_KEYS:
        key = _STRING_KEYS[column]
        return locale_compare(key(a) or "", key(b) or "")
    if column in _NUMBER_KEYS:
        key = _NUMBER_KEYS[column]
        return _compare_numbers(key(a), key(b))

    # Generic fallback (year): missing values after present ones, before the direction flip
    va, vb = getattr(a, column, None), getattr(b, column, None)
    if va is None and vb is None:
        return 0
    if va is None:
        return 1
    if vb is None:
        return -1
    return _compare_numbers(va, vb)

def sort_items(items: List[Item], sort: SortState) -> List[Item]:
    """Stable sort by the active column. No active column keeps the input order."""
    if not sort.column:
        return list(items)

    column = sort.column
    sign = -1 if sort.direction == "desc" else 1

    def comparator(a: Item, b: Item) -> int:
        return sign * _compare(a, b, column)

    return sorted(items, key=cmp_to_key(comparator))

# --- Stage 4: pagination ---

def total_pages(count: int, page_size: int) -> int:
    return (count + page_size - 1) // page_size

def paginate(items: List[Item], page: int, page_size: int) -> List[Item]:
    start = (page - 1) * page_size
    return items[start:start + page_size]

def run_pipeline(items: List[Item], tab: str, filters: ItemFilters, sort: SortState,
                 page: int, page_size: int) -> PipelineResult:
    """tab -> column filters -> sort -> page. Pure; the input list is not modified."""
    res = filter_by_tab(items, tab)
    res = apply_column_filters(res, filters)
    res = sort_items(res, sort)
    return PipelineResult(
        filtered=res,
        page_items=paginate(res, page, page_size),
        total_filtered=len(res),
        total_pages=total_pages(len(res), page_size),
        page=page,
    )

class ItemListView:
    """
    Holds the listing state (tab, filters, sort, page) over a snapshot of items.
    Every change except paging itself sends the view back to page 1.
    """

    def __init__(self, items: Optional[List[Item]] = None, preferences: Optional[ViewPreferences] = None):
        self.preferences = preferences or ViewPreferences()
        self.state = {
            'items': list(items or []),
            'tab': 'all',
            'filters': ItemFilters(),
            'sort': SortState(),
            'page': 1,
            'page_size': self.preferences.items_per_page,
        }

    @property
    def result(self) -> PipelineResult:
        return run_pipeline(self.state['items'], self.state['tab'], self.state['filters'],
                            self.state['sort'], self.state['page'], self.state['page_size'])

    @property
    def page(self) -> int:
        return self.state['page']

    @property
    def page_size(self) -> int:
        return self.state['page_size']

    @property
    def filters(self) -> ItemFilters:
        return self.state['filters']

    @property
    def sort(self) -> SortState:
        return self.state['sort']

    def set_items(self, items: List[Item]):
        """Replaces the snapshot after a refetch. The page is kept when it still exists."""
        self.state['items'] = list(items)
        pages = self.result.total_pages
        if self.state['page'] > max(pages, 1):
            self.state['page'] = 1

    def set_tab(self, tab: str):
        if tab not in TABS:
            raise ValueError(f"Unknown tab: {tab}")
        self.state['tab'] = tab
        self.state['page'] = 1

    def set_filter(self, name: str, value: Any):
        if name not in ItemFilters.model_fields:
            raise ValueError(f"Unknown filter: {name}")
        data = self.state['filters'].model_dump()
        data[name] = value
        self.state['filters'] = ItemFilters(**data)
        self.state['page'] = 1

    def clear_filters(self):
        self.state['filters'] = ItemFilters()
        self.state['page'] = 1

    def toggle_sort(self, column: str):
        self.state['sort'] = self.state['sort'].toggle(column)
        self.state['page'] = 1

    def set_page_size(self, size: int):
        if size not in PAGE_SIZE_OPTIONS:
            raise ValueError(f"Unsupported page size: {size}")
        self.state['page_size'] = size
        self.preferences.items_per_page = size
        self.state['page'] = 1

    def go_to_page(self, page: int) -> bool:
        """Moves to a 1-based page. Pages outside 1..total_pages are ignored."""
        if page < 1 or page > self.result.total_pages:
            logger.debug(f"Ignoring out-of-range page {page}")
            return False
        self.state['page'] = page
        return True
