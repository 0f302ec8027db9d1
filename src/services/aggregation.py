from typing import Dict, Iterable, List, Tuple

from src.core.constants import UNKNOWN_NAME, UNKNOWN_YEAR
from src.core.models import BreakdownTotals, GroupedItem, Item, YearBreakdown
from src.core.text_utils import locale_sort_key

def display_name(item: Item) -> str:
    return item.name or UNKNOWN_NAME

def _line_totals(item: Item) -> Tuple[int, float, float]:
    qty = item.quantity or 1
    return qty, (item.cost or 0) * qty, (item.price or 0) * qty

def group_by_name(items: Iterable[Item]) -> List[GroupedItem]:
    """
    Dashboard aggregation: one group per display name with quantity, cost and
    value totals. A group seeing both kinds is marked 'mixed'.
    """
    groups: Dict[str, GroupedItem] = {}
    for item in items:
        name = display_name(item)
        qty, cost, value = _line_totals(item)

        group = groups.get(name)
        if group is None:
            group = GroupedItem(name=name, item_type=item.item_type)
            groups[name] = group
        elif group.item_type != item.item_type:
            group.item_type = 'mixed'

        group.total_count += qty
        group.total_cost += cost
        group.total_value += value

    return sorted(groups.values(), key=lambda g: locale_sort_key(g.name))

def breakdown_by_year(items: Iterable[Item], name: str, sort_by_number: bool = False) -> List[YearBreakdown]:
    """
    Drill-down for one display name, bucketed by year.

    Buckets are ordered newest year first; items without a usable year land
    in the UNKNOWN_YEAR bucket, which always comes last. Within a bucket items
    keep their input order (cards first, then comics) unless sort_by_number
    is set, in which case they are ordered by card number as text.
    """
    matching = [i for i in items if display_name(i) == name]
    ordered = [i for i in matching if i.item_type == 'card'] + [i for i in matching if i.item_type == 'comic']

    buckets: Dict[int, YearBreakdown] = {}
    for item in ordered:
        year = item.year if item.year is not None else UNKNOWN_YEAR
        qty, cost, value = _line_totals(item)

        bucket = buckets.get(year)
        if bucket is None:
            bucket = YearBreakdown(year=year, items=[])
            buckets[year] = bucket
        bucket.count += qty
        bucket.total_cost += cost
        bucket.total_value += value
        bucket.items.append(item)

    known = sorted((b for y, b in buckets.items() if y != UNKNOWN_YEAR), key=lambda b: b.year, reverse=True)
    res = known + ([buckets[UNKNOWN_YEAR]] if UNKNOWN_YEAR in buckets else [])

    if sort_by_number:
        for bucket in res:
            bucket.items = sorted(bucket.items, key=lambda i: str(getattr(i, 'number', '') or ''))
    return res

def breakdown_totals(breakdowns: Iterable[YearBreakdown]) -> BreakdownTotals:
    """Totals across every bucket, regardless of what page is visible."""
    totals = BreakdownTotals()
    for b in breakdowns:
        totals.count += b.count
        totals.total_cost += b.total_cost
        totals.total_value += b.total_value
    return totals

def flatten_breakdowns(breakdowns: Iterable[YearBreakdown]) -> List[Tuple[YearBreakdown, Item]]:
    """Detail-table rows: (bucket, item) pairs in bucket order."""
    return [(b, item) for b in breakdowns for item in b.items]
