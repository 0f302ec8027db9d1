from nicegui import ui, run
from typing import Callable, Optional
import logging

from src.core.errors import InventoryError
from src.core.models import Zone
from src.core.persistence import persistence
from src.core.session import session
from src.services.inventory import InventoryService

logger = logging.getLogger(__name__)

inventory = InventoryService(persistence, session)

class ZoneDialog:
    def __init__(self, on_save: Callable):
        self.on_save = on_save
        self.editing: Optional[Zone] = None
        self.dialog = ui.dialog()
        with self.dialog, ui.card().classes('w-96'):
            self.title = ui.label('New Zone').classes('text-h6')
            self.name_input = ui.input('Name').classes('w-full')
            with ui.row().classes('w-full justify-end q-mt-md'):
                ui.button('Cancel', on_click=self.dialog.close).props('flat')
                ui.button('Save', on_click=self.save).props('color=secondary')

    def open(self, zone: Optional[Zone] = None):
        self.editing = zone
        self.title.set_text('Edit Zone' if zone else 'New Zone')
        self.name_input.value = zone.name if zone else ''
        self.dialog.open()

    async def save(self):
        try:
            if self.editing:
                await run.io_bound(inventory.update_zone, self.editing.id, self.name_input.value)
            else:
                await run.io_bound(inventory.create_zone, self.name_input.value)
        except InventoryError as e:
            logger.error(f"Saving zone failed: {e}")
            ui.notify(str(e), type='negative')
            return
        self.dialog.close()
        await self.on_save()

class ZonesPage:
    def __init__(self):
        self.state = {'zones': [], 'counts': {}}
        self.dialog: Optional[ZoneDialog] = None

    async def load_data(self):
        try:
            zones = await run.io_bound(inventory.list_zones)
            containers = await run.io_bound(inventory.list_containers)
        except InventoryError as e:
            logger.error(f"Failed to load zones: {e}")
            ui.notify(f'Failed to load zones: {e}', type='negative')
            return

        counts = {}
        for c in containers:
            if c.zone_id:
                counts[c.zone_id] = counts.get(c.zone_id, 0) + 1
        self.state['zones'] = zones
        self.state['counts'] = counts
        self.render_zones.refresh()

    async def delete(self, zone: Zone):
        try:
            await run.io_bound(inventory.delete_zone, zone.id)
        except InventoryError as e:
            logger.error(f"Deleting zone {zone.id} failed: {e}")
            ui.notify(str(e), type='negative')
            return
        ui.notify(f'Deleted zone {zone.name}.', type='positive')
        await self.load_data()

    @ui.refreshable
    def render_zones(self):
        if not self.state['zones']:
            ui.label('No zones yet.').classes('text-grey')
            return
        with ui.grid(columns=3).classes('w-full gap-4'):
            for zone in self.state['zones']:
                with ui.card().classes('bg-gray-900 border border-gray-700 p-4'):
                    ui.label(zone.name).classes('text-lg font-bold text-white cursor-pointer') \
                        .on('click', lambda z=zone: ui.navigate.to(f'/zones/{z.id}'))
                    ui.label(f"{self.state['counts'].get(zone.id, 0)} containers").classes('text-grey-4 text-sm')
                    with ui.row().classes('w-full justify-end'):
                        ui.button(icon='edit', on_click=lambda z=zone: self.dialog.open(z)).props('flat dense')
                        ui.button(icon='delete', on_click=lambda z=zone: self.delete(z)).props('flat dense color=negative')

    def build_ui(self):
        self.dialog = ZoneDialog(self.load_data)
        with ui.row().classes('w-full items-center justify-between'):
            ui.label('Zones').classes('text-3xl font-bold text-white')
            ui.button('Add Zone', icon='add', on_click=lambda: self.dialog.open()).props('color=secondary')
        self.render_zones()
        ui.timer(0.1, self.load_data, once=True)

def zones_page():
    page = ZonesPage()
    page.build_ui()

def zone_detail_page(zone_id: str):
    content = ui.column().classes('w-full gap-4')

    async def build_content():
        try:
            zone = await run.io_bound(inventory.get_zone, zone_id)
            containers = await run.io_bound(inventory.zone_containers, zone_id)
        except InventoryError as e:
            logger.error(f"Failed to load zone {zone_id}: {e}")
            with content:
                ui.label(str(e)).classes('text-negative')
            return

        with content:
            ui.label(zone.name).classes('text-3xl font-bold text-white')
            if not containers:
                ui.label('No containers in this zone.').classes('text-grey')
            for c in containers:
                ui.button(c.name, icon='inventory_2', on_click=lambda cid=c.id: ui.navigate.to(f'/containers/{cid}')) \
                    .props('flat align=left no-caps').classes('w-full')

    ui.timer(0.1, build_content, once=True)
