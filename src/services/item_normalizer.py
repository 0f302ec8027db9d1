import logging
from typing import Any, Dict, Iterable, List

from src.core.models import Card, Comic, ContainerWithZone, Item, Zone

logger = logging.getLogger(__name__)

def resolve_containers(containers: Iterable[Dict[str, Any]], zones: Iterable[Dict[str, Any]]) -> Dict[str, ContainerWithZone]:
    """Container id -> container with its zone attached (zone is None when unresolvable)."""
    zone_map = {z['id']: Zone(**z) for z in zones}
    resolved = {}
    for c in containers:
        zone = zone_map.get(c.get('zone_id')) if c.get('zone_id') else None
        resolved[c['id']] = ContainerWithZone(**{**c, 'zone': zone})
    return resolved

def normalize_items(cards: Iterable[Dict[str, Any]], comics: Iterable[Dict[str, Any]],
                    containers: Iterable[Dict[str, Any]], zones: Iterable[Dict[str, Any]]) -> List[Item]:
    """
    Merges raw card and comic records into one item list.
    Each item is tagged with its kind and carries its resolved container.
    Ordered by created_at, newest first. Items with equal timestamps keep
    their input order, cards before comics.
    """
    container_map = resolve_containers(containers, zones)

    res: List[Item] = []
    for raw in cards:
        container = container_map.get(raw.get('container_id'))
        res.append(Card(**{**raw, 'item_type': 'card', 'container': container}))
    for raw in comics:
        container = container_map.get(raw.get('container_id'))
        res.append(Comic(**{**raw, 'item_type': 'comic', 'container': container}))

    # sorted() is stable under reverse=True as well
    return sorted(res, key=lambda i: i.created_at or "", reverse=True)

def fetch_items(gateway, user_id: str) -> List[Item]:
    """Reads the caller's cards, comics, containers and zones and normalizes them."""
    scope = {'user_id': user_id}
    cards = gateway.select('cards', scope, order_by='created_at', descending=True)
    comics = gateway.select('comics', scope, order_by='created_at', descending=True)
    containers = gateway.select('containers', scope)
    zones = gateway.select('zones', scope)
    logger.info(f"Fetched {len(cards)} cards and {len(comics)} comics")
    return normalize_items(cards, comics, containers, zones)
