import pytest

from src.core.models import Card, Comic, ContainerWithZone, Zone
from src.core.persistence import PersistenceManager
from src.core.session import AccountSession

USER = "user-1"
OTHER_USER = "user-2"

def make_card(**overrides) -> Card:
    data = {
        "id": "c1", "user_id": USER, "player": "Mantle", "manufacturer": "Topps",
        "sport": "Baseball", "year": 1952, "number": "311", "quantity": 1,
    }
    data.update(overrides)
    return Card(**data)

def make_comic(**overrides) -> Comic:
    data = {
        "id": "m1", "user_id": USER, "title": "Amazing Fantasy", "publisher": "Marvel",
        "issue": 15, "year": 1962, "quantity": 1,
    }
    data.update(overrides)
    return Comic(**data)

def make_container(container_id="box-1", name="Box A", zone_name="Garage") -> ContainerWithZone:
    zone = Zone(id=f"zone-{container_id}", name=zone_name, user_id=USER) if zone_name else None
    return ContainerWithZone(id=container_id, name=name, user_id=USER, zone_id=zone.id if zone else None, zone=zone)

@pytest.fixture
def gateway(tmp_path):
    return PersistenceManager(data_dir=str(tmp_path / "data"))

@pytest.fixture
def account():
    return AccountSession(USER)
