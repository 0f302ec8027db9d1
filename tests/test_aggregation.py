import pytest

from src.services.aggregation import (
    breakdown_by_year, breakdown_totals, display_name, flatten_breakdowns, group_by_name,
)
from conftest import make_card, make_comic

@pytest.fixture
def mantle_cards():
    return [
        make_card(id="a", year=1952, cost=10, price=100),
        make_card(id="b", year=1956, cost=20, price=200),
        make_card(id="c", year=None, cost=None, price=None),
    ]

def test_mantle_groups_by_name(mantle_cards):
    groups = group_by_name(mantle_cards)
    assert len(groups) == 1
    group = groups[0]
    assert group.name == "Mantle"
    assert group.total_count == 3
    assert group.total_cost == 30
    assert group.total_value == 300
    assert group.item_type == "card"

def test_mantle_breaks_down_by_year(mantle_cards):
    buckets = breakdown_by_year(mantle_cards, "Mantle")
    assert [b.year for b in buckets] == [1956, 1952, -1]
    assert [b.label for b in buckets] == ["1956", "1952", "Unknown"]
    assert buckets[2].total_cost == 0

def test_group_counts_sum_to_total_quantity():
    items = [
        make_card(id="1", player="Mantle", quantity=2),
        make_card(id="2", player="Aaron", quantity=5),
        make_comic(id="3", title="Aaron", quantity=1),
        make_card(id="4", player="", quantity=3),
    ]
    groups = group_by_name(items)
    assert sum(g.total_count for g in groups) == sum(i.quantity for i in items)

def test_totals_multiply_by_quantity():
    groups = group_by_name([make_card(id="1", quantity=3, cost=2.5, price=10)])
    assert groups[0].total_cost == 7.5
    assert groups[0].total_value == 30

def test_group_becomes_mixed_when_other_kind_joins():
    groups = group_by_name([
        make_comic(id="m", title="Spider-Man"),
        make_card(id="c", player="Spider-Man"),
    ])
    assert len(groups) == 1
    assert groups[0].item_type == "mixed"

def test_missing_name_groups_as_unknown():
    item = make_card(id="1", player="")
    assert display_name(item) == "Unknown"
    assert group_by_name([item])[0].name == "Unknown"

def test_groups_sorted_locale_aware():
    items = [make_card(id=str(n), player=n) for n in ["banana", "Apple", "apple", "Cherry"]]
    assert [g.name for g in group_by_name(items)] == ["apple", "Apple", "banana", "Cherry"]

@pytest.mark.parametrize("raw_year", [None, "", "n/a"])
def test_unusable_year_goes_to_unknown_bucket(raw_year):
    items = [make_card(id="x", year=raw_year), make_card(id="y", year=2020)]
    buckets = breakdown_by_year(items, "Mantle")
    assert [b.year for b in buckets] == [2020, -1]

def test_unknown_bucket_is_last_regardless_of_magnitude():
    items = [make_card(id="a", year=None), make_card(id="b", year=1), make_card(id="c", year=-5)]
    assert [b.year for b in breakdown_by_year(items, "Mantle")][-1] == -1
    unknown = [b for b in breakdown_by_year(items, "Mantle") if b.label == "Unknown"]
    assert len(unknown) == 1

def test_breakdown_matches_name_exactly_across_kinds():
    items = [
        make_comic(id="m", title="Batman", year=1940),
        make_card(id="c1", player="Batman", year=1940),
        make_card(id="c2", player="batman", year=1940),
    ]
    buckets = breakdown_by_year(items, "Batman")
    assert len(buckets) == 1
    # Cards first, then comics
    assert [i.id for i in buckets[0].items] == ["c1", "m"]

def test_breakdown_can_sort_by_card_number_as_text():
    items = [
        make_card(id="a", number="2"),
        make_card(id="b", number="10"),
        make_card(id="c", number="1"),
    ]
    natural = breakdown_by_year(items, "Mantle")[0]
    assert [i.id for i in natural.items] == ["a", "b", "c"]
    by_number = breakdown_by_year(items, "Mantle", sort_by_number=True)[0]
    assert [i.number for i in by_number.items] == ["1", "10", "2"]

def test_totals_cover_all_buckets(mantle_cards):
    buckets = breakdown_by_year(mantle_cards, "Mantle")
    totals = breakdown_totals(buckets)
    assert totals.count == 3
    assert totals.total_cost == 30
    assert totals.total_value == 300

def test_flatten_breakdowns_keeps_bucket_order(mantle_cards):
    rows = flatten_breakdowns(breakdown_by_year(mantle_cards, "Mantle"))
    assert [item.id for _, item in rows] == ["b", "a", "c"]
    assert rows[-1][0].label == "Unknown"
