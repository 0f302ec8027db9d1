import pytest

from src.core.errors import AuthorizationError, DuplicateRecordError, RecordNotFoundError, ValidationFailedError
from src.core.models import UNKNOWN_ZONE
from src.core.session import AccountSession
from src.services.inventory import InventoryService, build_item, missing_fields
from conftest import USER, OTHER_USER

def card_data(container_id, **overrides):
    data = {
        "container_id": container_id, "player": "Mantle", "team": "Yankees", "manufacturer": "Topps",
        "sport": "Baseball", "year": 1952, "number": "311", "price": 100, "cost": 10,
    }
    data.update(overrides)
    return data

def comic_data(container_id, **overrides):
    data = {"container_id": container_id, "title": "X-Men", "publisher": "Marvel", "issue": 1, "year": 1963}
    data.update(overrides)
    return data

@pytest.fixture
def service(gateway, account):
    return InventoryService(gateway, account)

@pytest.fixture
def box(service):
    zone = service.create_zone("Garage")
    return service.create_container("Box A", zone.id)

# --- helpers ---

def test_build_item_splits_card_number():
    card = build_item("card", {"number": "12 out of 99", "player": "A"}, USER)
    assert card.number == "12"
    assert card.number_out_of == 99

def test_build_item_keeps_explicit_out_of():
    card = build_item("card", {"number": "12/99", "number_out_of": 50}, USER)
    assert card.number_out_of == 50

def test_build_item_unknown_kind():
    with pytest.raises(ValueError):
        build_item("deck", {}, USER)

def test_missing_fields():
    comic = build_item("comic", {"title": "X-Men", "publisher": " "}, USER)
    assert missing_fields(comic) == ["publisher", "issue", "year"]

# --- zones and containers ---

def test_zone_crud(service):
    zone = service.create_zone("  Garage ")
    assert zone.name == "Garage"
    assert zone.user_id == USER

    renamed = service.update_zone(zone.id, "Attic")
    assert renamed.name == "Attic"
    assert [z.name for z in service.list_zones()] == ["Attic"]

    service.delete_zone(zone.id)
    assert service.list_zones() == []
    with pytest.raises(RecordNotFoundError):
        service.get_zone(zone.id)

def test_zone_name_required(service):
    with pytest.raises(ValidationFailedError):
        service.create_zone("   ")

def test_container_in_unknown_zone(service):
    with pytest.raises(RecordNotFoundError):
        service.create_container("Box", "missing-zone")

def test_containers_sorted_by_name(service):
    service.create_container("Shelf")
    service.create_container("Box")
    assert [c.name for c in service.list_containers()] == ["Box", "Shelf"]

def test_deleting_zone_leaves_container_with_unknown_zone(service, box):
    service.delete_zone(box.zone_id)
    container = service.get_container(box.id)
    assert container.zone_id == box.zone_id
    assert container.zone is None
    assert container.zone_name == UNKNOWN_ZONE

def test_zone_containers(service, box):
    service.create_container("Loose")
    assert [c.id for c in service.zone_containers(box.zone_id)] == [box.id]

# --- items ---

def test_create_card(service, box):
    card = service.create_item("card", card_data(box.id, number="12 out of 99"))
    assert card.id
    assert card.user_id == USER
    assert card.number == "12"
    assert card.number_out_of == 99
    assert card.container_name == "Box A"
    assert card.zone_name == "Garage"
    assert service.get_item("card", card.id).player == "Mantle"

def test_update_replaces_fields(service, box):
    card = service.create_item("card", card_data(box.id))
    updated = service.update_item("card", card.id, card_data(box.id, price=250, grade=9))
    assert updated.price == 250
    assert updated.grade == 9
    assert updated.created_at == card.created_at

def test_delete_item(service, box, gateway):
    comic = service.create_item("comic", comic_data(box.id))
    service.delete_item("comic", comic.id)
    assert gateway.count("comics") == 0
    with pytest.raises(RecordNotFoundError):
        service.delete_item("comic", comic.id)

def test_missing_required_fields_write_nothing(service, box, gateway):
    with pytest.raises(ValidationFailedError) as exc:
        service.create_item("card", card_data(box.id, player="", year=None))
    assert exc.value.missing == ["player", "year"]
    assert gateway.count("cards") == 0

def test_container_is_required(service, gateway):
    with pytest.raises(ValidationFailedError) as exc:
        service.create_item("comic", comic_data(None))
    assert "container_id" in exc.value.missing
    assert gateway.count("comics") == 0

def test_duplicate_card_in_same_container(service, box, gateway):
    service.create_item("card", card_data(box.id))
    with pytest.raises(DuplicateRecordError, match="already exists in this container"):
        service.create_item("card", card_data(box.id))
    assert gateway.count("cards") == 1

def test_card_number_is_not_part_of_duplicate_key(service, box):
    service.create_item("card", card_data(box.id, number="311"))
    with pytest.raises(DuplicateRecordError):
        service.create_item("card", card_data(box.id, number="312"))

def test_same_card_in_another_container_is_allowed(service, box, gateway):
    other = service.create_container("Box B")
    service.create_item("card", card_data(box.id))
    service.create_item("card", card_data(other.id))
    assert gateway.count("cards") == 2

def test_duplicate_comic(service, box):
    service.create_item("comic", comic_data(box.id))
    with pytest.raises(DuplicateRecordError, match="comic"):
        service.create_item("comic", comic_data(box.id))
    # Another issue is a different comic
    service.create_item("comic", comic_data(box.id, issue=2))

def test_editing_does_not_collide_with_itself(service, box):
    card = service.create_item("card", card_data(box.id))
    service.update_item("card", card.id, card_data(box.id, description="centered"))

def test_edit_into_existing_key_is_rejected(service, box):
    service.create_item("card", card_data(box.id))
    other = service.create_item("card", card_data(box.id, player="Mays"))
    with pytest.raises(DuplicateRecordError):
        service.update_item("card", other.id, card_data(box.id))

def test_other_account_cannot_see_or_touch_items(service, box, gateway):
    card = service.create_item("card", card_data(box.id))
    intruder = InventoryService(gateway, AccountSession(OTHER_USER))

    assert intruder.fetch_items() == []
    assert intruder.list_containers() == []
    with pytest.raises(RecordNotFoundError):
        intruder.get_item("card", card.id)
    with pytest.raises(RecordNotFoundError):
        intruder.update_item("card", card.id, card_data(box.id, price=1))
    with pytest.raises(RecordNotFoundError):
        intruder.delete_item("card", card.id)
    assert service.get_item("card", card.id).price == 100

def test_signed_out_session_is_rejected(gateway):
    signed_out = InventoryService(gateway, AccountSession(None))
    with pytest.raises(AuthorizationError):
        signed_out.fetch_items()
    with pytest.raises(AuthorizationError):
        signed_out.create_zone("Garage")

def test_container_items(service, box):
    other = service.create_container("Box B")
    service.create_item("card", card_data(box.id))
    service.create_item("comic", comic_data(box.id))
    service.create_item("comic", comic_data(other.id))

    items = service.container_items(box.id)
    assert sorted(i.item_type for i in items) == ["card", "comic"]
    assert all(i.zone_name == "Garage" for i in items)

def test_dashboard_stats(service, box):
    for n in range(4):
        service.create_item("card", card_data(box.id, player=f"Player {n}"))
    for n in range(3):
        service.create_item("comic", comic_data(box.id, issue=n + 1))

    stats = service.dashboard_stats()
    assert stats.zones == 1
    assert stats.containers == 1
    assert stats.items == 7
    assert len(stats.recent_items) == 5

def test_item_in_another_accounts_container_is_rejected(service, gateway):
    intruder = InventoryService(gateway, AccountSession(OTHER_USER))
    theirs = intruder.create_container("Their Box")

    with pytest.raises(RecordNotFoundError, match="Container"):
        service.create_item("card", card_data(theirs.id))
    assert gateway.count("cards") == 0

def test_item_in_unknown_container_is_rejected(service, gateway):
    with pytest.raises(RecordNotFoundError, match="does-not-exist"):
        service.create_item("comic", comic_data("does-not-exist"))
    assert gateway.count("comics") == 0

def test_update_into_deleted_container_is_rejected(service, box):
    card = service.create_item("card", card_data(box.id))
    other = service.create_container("Box B")
    service.delete_container(other.id)

    with pytest.raises(RecordNotFoundError):
        service.update_item("card", card.id, card_data(other.id))
    assert service.get_item("card", card.id).container_id == box.id

def test_item_in_container_without_zone_shows_unknown_zone(service):
    loose = service.create_container("Loose")
    card = service.create_item("card", card_data(loose.id))
    assert card.zone_name == UNKNOWN_ZONE
    assert card.zone_id is None
