from nicegui import ui, run, events
from typing import Any, Dict, Optional
import asyncio
import logging

from src.core.config import config_manager, PAGE_SIZE_OPTIONS
from src.core.constants import TAB_LABELS
from src.core.errors import InventoryError
from src.core.models import Item, ReconciliationResult
from src.core.persistence import persistence
from src.core.session import session
from src.core.utils import EMPTY_DISPLAY, format_money
from src.services.bulk_import import BulkImporter, export_filename, export_workbook
from src.services.edit_overlay import EditOverlay
from src.services.inventory import InventoryService
from src.services.item_pipeline import ItemListView, profit_loss

logger = logging.getLogger(__name__)

inventory = InventoryService(persistence, session)
importer = BulkImporter(persistence, session)

SORTABLE_HEADERS = [
    ('type', 'Type'), ('name', 'Name'), ('details', 'Details'), ('cardNumber', '#'),
    ('team', 'Team'), ('isRookie', 'RC'), ('container', 'Container'), ('zone', 'Zone'),
    ('grade', 'Grade'), ('condition', 'Condition'), ('quantity', 'Qty'),
    ('cost', 'Cost'), ('price', 'Price'), ('profitLoss', 'P/L'), ('year', 'Year'),
]

TEXT_FILTERS = [
    ('name', 'Name'), ('manufacturer', 'Manufacturer'), ('sport', 'Sport'), ('team', 'Team'),
    ('card_number', 'Card #'), ('publisher', 'Publisher'), ('condition', 'Condition'),
    ('description', 'Description'),
]

RANGE_FILTERS = [('year', 'Year'), ('quantity', 'Quantity'), ('grade', 'Grade'), ('price', 'Price'), ('cost', 'Cost')]

CARD_FORM_FIELDS = [('player', 'Player'), ('team', 'Team'), ('manufacturer', 'Manufacturer'), ('sport', 'Sport'),
                    ('year', 'Year'), ('number', 'Number (e.g. 12 or 12/99)')]
COMIC_FORM_FIELDS = [('title', 'Title'), ('publisher', 'Publisher'), ('issue', 'Issue'), ('year', 'Year')]
SHARED_FORM_FIELDS = [('grade', 'Grade'), ('condition', 'Condition'), ('quantity', 'Quantity'),
                      ('cost', 'Cost'), ('price', 'Price'), ('description', 'Description')]

class ItemFormDialog:
    """Create dialog for a single card or comic."""

    def __init__(self, page: 'ItemsPage'):
        self.page = page
        self.kind = 'card'
        self.values: Dict[str, Any] = {}
        self.dialog = ui.dialog()

    def open(self, kind: str):
        self.kind = kind
        self.values = {'quantity': 1}
        self.dialog.clear()
        fields = CARD_FORM_FIELDS if kind == 'card' else COMIC_FORM_FIELDS
        with self.dialog, ui.card().classes('w-[32rem]'):
            ui.label(f'New {kind.title()}').classes('text-h6')
            ui.select({c.id: c.name for c in self.page.state['containers']}, label='Container',
                      on_change=lambda e: self.values.update(container_id=e.value)).classes('w-full')
            with ui.grid(columns=2).classes('w-full gap-2'):
                for key, label in fields + SHARED_FORM_FIELDS:
                    ui.input(label, value=str(self.values.get(key, '')),
                             on_change=lambda e, k=key: self.values.update({k: e.value}))
                if kind == 'card':
                    ui.checkbox('Rookie', on_change=lambda e: self.values.update(is_rookie=e.value))
            with ui.row().classes('w-full justify-end q-mt-md'):
                ui.button('Cancel', on_click=self.dialog.close).props('flat')
                ui.button('Create', on_click=self.save).props('color=secondary')
        self.dialog.open()

    async def save(self):
        try:
            await run.io_bound(inventory.create_item, self.kind, dict(self.values))
        except InventoryError as e:
            logger.error(f"Create {self.kind} failed: {e}")
            ui.notify(str(e), type='negative')
            return
        ui.notify(f'{self.kind.title()} created.', type='positive')
        self.dialog.close()
        await self.page.load_data()

class ItemsPage:
    def __init__(self):
        self.prefs = config_manager.get_preferences()
        self.view = ItemListView(preferences=self.prefs)
        self.overlay = EditOverlay()
        self.state = {
            'containers': [],
            'zones': [],
            'upload_result': None,
            'uploading': False,
        }
        self.form_dialog: Optional[ItemFormDialog] = None
        self.upload_dialog = None

    async def load_data(self):
        try:
            items = await run.io_bound(inventory.fetch_items)
            self.state['containers'] = await run.io_bound(inventory.list_containers)
            self.state['zones'] = await run.io_bound(inventory.list_zones)
        except InventoryError as e:
            logger.error(f"Failed to load items: {e}")
            ui.notify(f'Failed to load items: {e}', type='negative')
            return

        self.view.set_items(items)
        self.overlay.set_containers({c.id: c for c in self.state['containers']})
        self.refresh()

    def refresh(self):
        self.render_filters.refresh()
        self.render_table.refresh()
        self.render_pagination.refresh()

    # --- Intents ---

    def on_tab(self, e):
        self.view.set_tab(e.value)
        self.render_table.refresh()
        self.render_pagination.refresh()

    def on_filter(self, name: str, value: Any):
        if isinstance(value, str) and name.endswith(('_min', '_max')):
            value = value.strip() or None
        if name in ('container_id', 'zone_id', 'item_type') and not value:
            value = None
        if value is None and name in dict(TEXT_FILTERS):
            value = ''
        try:
            self.view.set_filter(name, value)
        except ValueError as e:
            ui.notify(f'Invalid filter value: {e}', type='warning')
            return
        self.render_table.refresh()
        self.render_pagination.refresh()

    def clear_filters(self):
        self.view.clear_filters()
        self.refresh()

    def on_sort(self, column: str):
        self.view.toggle_sort(column)
        self.render_table.refresh()
        self.render_pagination.refresh()

    def on_page_size(self, e):
        self.view.set_page_size(e.value)
        try:
            config_manager.save_preferences(self.prefs)
        except OSError as ex:
            logger.error(f"Could not persist page size: {ex}")
            ui.notify(f'Could not save page size: {ex}', type='negative')
        self.render_table.refresh()
        self.render_pagination.refresh()

    def go_to(self, page: int):
        if self.view.go_to_page(page):
            self.render_table.refresh()
            self.render_pagination.refresh()

    def begin_edit(self, item: Item):
        self.overlay.begin_edit(item)
        self.render_table.refresh()

    def clone(self, item: Item):
        self.overlay.clone(item)
        self.render_table.refresh()

    def cancel(self, item_id: str):
        self.overlay.cancel(item_id)
        self.render_table.refresh()

    def update_field(self, item_id: str, field: str, value: Any):
        try:
            self.overlay.update_field(item_id, field, value)
        except (InventoryError, ValueError) as e:
            ui.notify(f'Invalid value for {field}: {e}', type='warning')

    async def save(self, item_id: str):
        try:
            await run.io_bound(self.overlay.save, item_id, inventory)
        except InventoryError as e:
            logger.error(f"Saving row {item_id} failed: {e}")
            ui.notify(str(e), type='negative')
            return
        ui.notify('Saved.', type='positive')
        await self.load_data()

    async def delete(self, item: Item):
        try:
            await run.io_bound(inventory.delete_item, item.item_type, item.id)
        except InventoryError as e:
            logger.error(f"Deleting {item.item_type} {item.id} failed: {e}")
            ui.notify(str(e), type='negative')
            return
        ui.notify(f'Deleted {item.name or "item"}.', type='positive')
        await self.load_data()

    # --- Spreadsheet ---

    def download(self):
        items = self.view.result.filtered
        try:
            content = export_workbook(items)
        except Exception as e:
            logger.error(f"Export failed: {e}")
            ui.notify('Failed to export items. Please try again.', type='negative')
            return
        ui.download(content, export_filename())

    async def handle_upload(self, e: events.UploadEventArguments):
        content = None
        try:
            if hasattr(e, 'file'):
                content = await e.file.read()
            elif hasattr(e, 'content'):
                content = e.content.read()

            if asyncio.iscoroutine(content):
                content = await content

            if not content:
                raise ValueError("Empty file content")
        except Exception as ex:
            logger.error(f"Upload Error: {ex}")
            ui.notify(f'Upload failed: {ex}', type='negative')
            return

        self.state['uploading'] = True
        self.state['upload_result'] = None
        self.render_upload_result.refresh()
        try:
            result = await run.io_bound(importer.import_workbook, content)
        except InventoryError as ex:
            logger.error(f"Import failed: {ex}")
            ui.notify(str(ex), type='negative')
            return
        finally:
            self.state['uploading'] = False

        self.state['upload_result'] = result
        self.render_upload_result.refresh()
        if result.needs_refresh:
            await self.load_data()

    def open_upload(self):
        self.state['upload_result'] = None
        self.upload_dialog.open()
        self.render_upload_result.refresh()

    @ui.refreshable
    def render_upload_result(self):
        if self.state['uploading']:
            ui.spinner('dots').classes('self-center')
            ui.label('Processing upload...').classes('text-grey')
            return

        result: Optional[ReconciliationResult] = self.state['upload_result']
        if result is None:
            return

        if result.success:
            ui.label('Upload complete.').classes('text-positive font-bold')
        elif result.partial:
            ui.label('Upload partially complete.').classes('text-warning font-bold')
        else:
            ui.label('Upload failed.').classes('text-negative font-bold')

        ui.label(f'Cards: {result.cards_created} created, {result.cards_updated} updated')
        ui.label(f'Comics: {result.comics_created} created, {result.comics_updated} updated')

        if result.errors:
            with ui.scroll_area().classes('w-full h-48 border border-gray-700'):
                for err in result.errors:
                    ui.label(f'{err.item_type.title()} row {err.row}: {err.message}').classes('text-xs text-negative')

    # --- Rendering ---

    @ui.refreshable
    def render_filters(self):
        f = self.view.filters
        with ui.row().classes('w-full items-end gap-2'):
            for key, label in TEXT_FILTERS:
                ui.input(label, value=getattr(f, key),
                         on_change=lambda e, k=key: self.on_filter(k, e.value)).props('dense clearable').classes('w-32')

            containers = {'': 'All'}
            containers.update({c.id: c.name for c in self.state['containers']})
            ui.select(containers, label='Container', value=f.container_id or '',
                      on_change=lambda e: self.on_filter('container_id', e.value)).props('dense').classes('w-40')

            zones = {'': 'All'}
            zones.update({z.id: z.name for z in self.state['zones']})
            ui.select(zones, label='Zone', value=f.zone_id or '',
                      on_change=lambda e: self.on_filter('zone_id', e.value)).props('dense').classes('w-40')

            ui.select({'': 'Either', 'yes': 'Yes', 'no': 'No'}, label='Rookie', value=f.is_rookie,
                      on_change=lambda e: self.on_filter('is_rookie', e.value or '')).props('dense').classes('w-24')

        with ui.row().classes('w-full items-end gap-2'):
            for key, label in RANGE_FILTERS:
                lo, hi = getattr(f, f'{key}_min'), getattr(f, f'{key}_max')
                ui.number(f'{label} min', value=lo,
                          on_change=lambda e, k=key: self.on_filter(f'{k}_min', e.value)).props('dense clearable').classes('w-24')
                ui.number(f'{label} max', value=hi,
                          on_change=lambda e, k=key: self.on_filter(f'{k}_max', e.value)).props('dense clearable').classes('w-24')
            ui.button('Clear', icon='filter_alt_off', on_click=self.clear_filters).props('flat dense')

    def _cell(self, item: Item, key: str) -> str:
        if key == 'type':
            return item.item_type.title()
        if key == 'name':
            return item.name or 'Unknown'
        if key == 'details':
            return item.details
        if key == 'cardNumber':
            return item.number_display if item.item_type == 'card' else ''
        if key == 'team':
            return (item.team or '') if item.item_type == 'card' else ''
        if key == 'isRookie':
            return ('Yes' if item.is_rookie else 'No') if item.item_type == 'card' else ''
        if key == 'container':
            return item.container_name or EMPTY_DISPLAY
        if key == 'zone':
            return item.zone_name or EMPTY_DISPLAY
        if key == 'grade':
            return EMPTY_DISPLAY if item.grade is None else f'{item.grade:g}'
        if key == 'condition':
            return item.condition or EMPTY_DISPLAY
        if key == 'quantity':
            return str(item.quantity)
        if key == 'cost':
            return format_money(item.cost)
        if key == 'price':
            return format_money(item.price)
        if key == 'profitLoss':
            return format_money(profit_loss(item))
        if key == 'year':
            return EMPTY_DISPLAY if item.year is None else str(item.year)
        return ''

    def _render_edit_row(self, item: Item):
        containers = {c.id: c.name for c in self.state['containers']}
        with ui.row().classes('w-full items-center gap-2 p-2 bg-gray-900 border border-secondary rounded'):
            label = 'New copy of' if self.overlay.is_new(item.id) else 'Editing'
            ui.label(f'{label} {item.name or "Unknown"}').classes('font-bold w-48')
            ui.select(containers, label='Container', value=item.container_id,
                      on_change=lambda e: self.update_field(item.id, 'container_id', e.value)).props('dense').classes('w-40')
            for key, label in (('grade', 'Grade'), ('quantity', 'Qty'), ('cost', 'Cost'), ('price', 'Price')):
                ui.number(label, value=getattr(item, key),
                          on_change=lambda e, k=key: self.update_field(item.id, k, e.value)).props('dense').classes('w-20')
            ui.input('Condition', value=item.condition or '',
                     on_change=lambda e: self.update_field(item.id, 'condition', e.value)).props('dense').classes('w-28')
            ui.input('Description', value=item.description or '',
                     on_change=lambda e: self.update_field(item.id, 'description', e.value)).props('dense').classes('w-48')
            ui.space()
            ui.button(icon='save', on_click=lambda: self.save(item.id)).props('flat dense color=positive')
            ui.button(icon='close', on_click=lambda: self.cancel(item.id)).props('flat dense color=negative')

    @ui.refreshable
    def render_table(self):
        result = self.view.result
        rows = self.overlay.apply(result.page_items)

        sort = self.view.sort
        with ui.row().classes('w-full gap-1 border-b border-gray-700 pb-1'):
            for key, label in SORTABLE_HEADERS:
                icon = None
                if sort.column == key:
                    icon = 'arrow_upward' if sort.direction == 'asc' else 'arrow_downward'
                ui.button(label, icon=icon, on_click=lambda k=key: self.on_sort(k)).props('flat dense no-caps size=sm')

        if not rows:
            ui.label('No items match the current filters.').classes('text-grey q-pa-md')
            return

        with ui.column().classes('w-full gap-1'):
            for item in rows:
                if self.overlay.is_editing(item.id):
                    self._render_edit_row(item)
                    continue
                with ui.row().classes('w-full items-center gap-2 p-1 border-b border-gray-800 hover:bg-white/5'):
                    for key, _ in SORTABLE_HEADERS:
                        ui.label(self._cell(item, key)).classes('text-sm min-w-[4rem]')
                    ui.space()
                    ui.button(icon='edit', on_click=lambda i=item: self.begin_edit(i)).props('flat dense')
                    ui.button(icon='content_copy', on_click=lambda i=item: self.clone(i)).props('flat dense')
                    ui.button(icon='delete', on_click=lambda i=item: self.delete(i)).props('flat dense color=negative')

    @ui.refreshable
    def render_pagination(self):
        result = self.view.result
        with ui.row().classes('w-full items-center gap-4'):
            ui.label(f'{result.total_filtered} items').classes('text-grey-4 text-sm')
            ui.space()
            ui.select(list(PAGE_SIZE_OPTIONS), value=self.view.page_size, label='Per page',
                      on_change=self.on_page_size).props('dense').classes('w-24')
            if result.total_pages > 1:
                ui.button(icon='chevron_left', on_click=lambda: self.go_to(self.view.page - 1)).props('flat dense color=white').set_enabled(self.view.page > 1)
                ui.label(f'{self.view.page} / {result.total_pages}').classes('text-white text-sm font-bold')
                ui.button(icon='chevron_right', on_click=lambda: self.go_to(self.view.page + 1)).props('flat dense color=white').set_enabled(self.view.page < result.total_pages)

    def build_ui(self):
        self.form_dialog = ItemFormDialog(self)

        self.upload_dialog = ui.dialog()
        with self.upload_dialog, ui.card().classes('w-[36rem]'):
            ui.label('Upload Items').classes('text-h6')
            ui.label('Workbook with a "Cards" and/or "Comics" sheet. Rows with an id are updated, rows without one are created.').classes('text-sm text-grey')
            ui.upload(on_upload=self.handle_upload, auto_upload=True).props('accept=".xlsx" flat dense').classes('w-full')
            self.render_upload_result()
            with ui.row().classes('w-full justify-end'):
                ui.button('Close', on_click=self.upload_dialog.close).props('flat')

        with ui.row().classes('w-full items-center justify-between'):
            ui.label('Items').classes('text-3xl font-bold text-white')
            with ui.row().classes('gap-2'):
                ui.button('Add Card', icon='add', on_click=lambda: self.form_dialog.open('card')).props('color=secondary')
                ui.button('Add Comic', icon='add', on_click=lambda: self.form_dialog.open('comic')).props('color=secondary')
                ui.button('Upload', icon='upload', on_click=self.open_upload).props('flat')
                ui.button('Download', icon='download', on_click=self.download).props('flat')

        with ui.tabs(on_change=self.on_tab).classes('w-full') as tabs:
            for key, label in TAB_LABELS.items():
                ui.tab(key, label=label)
        tabs.set_value('all')

        self.render_filters()
        self.render_table()
        self.render_pagination()
        ui.timer(0.1, self.load_data, once=True)

def items_page():
    page = ItemsPage()
    page.build_ui()
