from nicegui import ui, run
from typing import Callable, Optional
import logging

from src.core.errors import InventoryError
from src.core.models import ContainerWithZone
from src.core.persistence import persistence
from src.core.session import session
from src.core.utils import format_money
from src.services.inventory import InventoryService

logger = logging.getLogger(__name__)

inventory = InventoryService(persistence, session)

class ContainerDialog:
    def __init__(self, on_save: Callable):
        self.on_save = on_save
        self.editing: Optional[ContainerWithZone] = None
        self.dialog = ui.dialog()
        with self.dialog, ui.card().classes('w-96'):
            self.title = ui.label('New Container').classes('text-h6')
            self.name_input = ui.input('Name').classes('w-full')
            self.zone_select = ui.select({}, label='Zone', clearable=True).classes('w-full')
            with ui.row().classes('w-full justify-end q-mt-md'):
                ui.button('Cancel', on_click=self.dialog.close).props('flat')
                ui.button('Save', on_click=self.save).props('color=secondary')

    def open(self, zones, container: Optional[ContainerWithZone] = None):
        self.editing = container
        self.title.set_text('Edit Container' if container else 'New Container')
        self.zone_select.options = {z.id: z.name for z in zones}
        self.zone_select.update()
        self.name_input.value = container.name if container else ''
        self.zone_select.value = container.zone_id if container and container.zone else None
        self.dialog.open()

    async def save(self):
        name, zone_id = self.name_input.value, self.zone_select.value
        try:
            if self.editing:
                await run.io_bound(inventory.update_container, self.editing.id, name, zone_id)
            else:
                await run.io_bound(inventory.create_container, name, zone_id)
        except InventoryError as e:
            logger.error(f"Saving container failed: {e}")
            ui.notify(str(e), type='negative')
            return
        self.dialog.close()
        await self.on_save()

class ContainersPage:
    def __init__(self):
        self.state = {'containers': [], 'zones': [], 'sort_by': 'name'}
        self.dialog: Optional[ContainerDialog] = None

    async def load_data(self):
        try:
            self.state['containers'] = await run.io_bound(inventory.list_containers, self.state['sort_by'])
            self.state['zones'] = await run.io_bound(inventory.list_zones)
        except InventoryError as e:
            logger.error(f"Failed to load containers: {e}")
            ui.notify(f'Failed to load containers: {e}', type='negative')
            return
        self.render_containers.refresh()

    async def change_sort(self, e):
        self.state['sort_by'] = e.value
        await self.load_data()

    async def delete(self, container: ContainerWithZone):
        try:
            await run.io_bound(inventory.delete_container, container.id)
        except InventoryError as e:
            logger.error(f"Deleting container {container.id} failed: {e}")
            ui.notify(str(e), type='negative')
            return
        ui.notify(f'Deleted container {container.name}.', type='positive')
        await self.load_data()

    @ui.refreshable
    def render_containers(self):
        if not self.state['containers']:
            ui.label('No containers yet.').classes('text-grey')
            return
        with ui.grid(columns=3).classes('w-full gap-4'):
            for c in self.state['containers']:
                with ui.card().classes('bg-gray-900 border border-gray-700 p-4'):
                    ui.label(c.name).classes('text-lg font-bold text-white cursor-pointer') \
                        .on('click', lambda cid=c.id: ui.navigate.to(f'/containers/{cid}'))
                    ui.label(c.zone_name).classes('text-grey-4 text-sm')
                    with ui.row().classes('w-full justify-end'):
                        ui.button(icon='edit', on_click=lambda cc=c: self.dialog.open(self.state['zones'], cc)).props('flat dense')
                        ui.button(icon='delete', on_click=lambda cc=c: self.delete(cc)).props('flat dense color=negative')

    def build_ui(self):
        self.dialog = ContainerDialog(self.load_data)
        with ui.row().classes('w-full items-center justify-between'):
            ui.label('Containers').classes('text-3xl font-bold text-white')
            with ui.row().classes('items-center gap-2'):
                ui.select({'name': 'Name', 'created_at': 'Newest'}, value='name', label='Sort',
                          on_change=self.change_sort).classes('w-32')
                ui.button('Add Container', icon='add', on_click=lambda: self.dialog.open(self.state['zones'])).props('color=secondary')
        self.render_containers()
        ui.timer(0.1, self.load_data, once=True)

def containers_page():
    page = ContainersPage()
    page.build_ui()

def container_detail_page(container_id: str):
    content = ui.column().classes('w-full gap-4')

    async def build_content():
        try:
            container = await run.io_bound(inventory.get_container, container_id)
            items = await run.io_bound(inventory.container_items, container_id)
        except InventoryError as e:
            logger.error(f"Failed to load container {container_id}: {e}")
            with content:
                ui.label(str(e)).classes('text-negative')
            return

        with content:
            ui.label(container.name).classes('text-3xl font-bold text-white')
            ui.label(container.zone_name).classes('text-grey-4')

            qty = sum(i.quantity for i in items)
            value = sum((i.price or 0) * i.quantity for i in items)
            ui.label(f'{len(items)} records, {qty} items, value {format_money(value)}').classes('text-sm')

            for item in items:
                with ui.row().classes('w-full items-center gap-4 p-2 border-b border-gray-800'):
                    ui.label(item.name or 'Unknown').classes('font-bold w-48')
                    ui.label(item.details).classes('flex-1 text-grey-4')
                    ui.label(f'x{item.quantity}').classes('w-12')
                    ui.label(format_money(item.price)).classes('w-24')

    ui.timer(0.1, build_content, once=True)
