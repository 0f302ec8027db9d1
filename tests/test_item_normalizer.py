import pytest
from unittest.mock import MagicMock

from src.core.errors import GatewayError
from src.services.item_normalizer import fetch_items, normalize_items, resolve_containers

ZONES = [{"id": "z1", "name": "Garage", "user_id": "u1"}]
CONTAINERS = [
    {"id": "b1", "name": "Box A", "user_id": "u1", "zone_id": "z1"},
    {"id": "b2", "name": "Box B", "user_id": "u1", "zone_id": "deleted-zone"},
]

def card(id, created_at, **kw):
    return {"id": id, "user_id": "u1", "player": f"P{id}", "created_at": created_at, **kw}

def comic(id, created_at, **kw):
    return {"id": id, "user_id": "u1", "title": f"T{id}", "created_at": created_at, **kw}

def test_merges_both_kinds_newest_first():
    items = normalize_items(
        [card("c1", "2024-01-01"), card("c2", "2024-03-01")],
        [comic("m1", "2024-02-01")],
        CONTAINERS, ZONES,
    )
    assert [i.id for i in items] == ["c2", "m1", "c1"]
    assert [i.item_type for i in items] == ["card", "comic", "card"]

def test_equal_timestamps_keep_cards_first():
    items = normalize_items([card("c1", "2024-01-01")], [comic("m1", "2024-01-01")], [], [])
    assert [i.id for i in items] == ["c1", "m1"]

def test_resolves_container_and_zone():
    items = normalize_items([card("c1", "2024-01-01", container_id="b1")], [], CONTAINERS, ZONES)
    assert items[0].container.name == "Box A"
    assert items[0].container.zone.name == "Garage"
    assert items[0].zone_id == "z1"

def test_unresolvable_references_do_not_fail():
    items = normalize_items(
        [card("c1", "2024-01-01", container_id="missing"), card("c2", "2024-01-02", container_id="b2")],
        [], CONTAINERS, ZONES,
    )
    by_id = {i.id: i for i in items}
    assert by_id["c1"].container is None
    assert by_id["c1"].container_name == ""
    assert by_id["c2"].container.zone is None
    assert by_id["c2"].container.zone_name == "Unknown Zone"

def test_resolve_containers():
    resolved = resolve_containers(CONTAINERS, ZONES)
    assert resolved["b1"].zone.id == "z1"
    assert resolved["b2"].zone is None

def test_fetch_items_scopes_every_read():
    gateway = MagicMock()
    gateway.select.return_value = []
    fetch_items(gateway, "u1")
    tables = [c.args[0] for c in gateway.select.call_args_list]
    assert sorted(tables) == ["cards", "comics", "containers", "zones"]
    for call in gateway.select.call_args_list:
        assert call.args[1] == {"user_id": "u1"}

def test_fetch_items_propagates_gateway_errors():
    gateway = MagicMock()
    gateway.select.side_effect = GatewayError("disk on fire")
    with pytest.raises(GatewayError):
        fetch_items(gateway, "u1")
