from nicegui import ui, run
import logging

from src.core.config import config_manager
from src.core.errors import InventoryError
from src.core.persistence import persistence
from src.core.session import session
from src.core.utils import EMPTY_DISPLAY, format_money
from src.services.aggregation import breakdown_by_year, breakdown_totals, flatten_breakdowns
from src.services.inventory import InventoryService
from src.services.item_pipeline import paginate, total_pages

logger = logging.getLogger(__name__)

inventory = InventoryService(persistence, session)

class ItemDetailPage:
    """Every copy of one named item, broken down by year."""

    def __init__(self, name: str):
        prefs = config_manager.get_preferences()
        self.state = {
            'name': name,
            'items': [],
            'breakdowns': [],
            'sort_by_number': False,
            'page': 1,
            'page_size': prefs.item_detail_per_page,
            'total_pages': 0,
        }

    async def load_data(self):
        try:
            self.state['items'] = await run.io_bound(inventory.fetch_items)
        except InventoryError as e:
            logger.error(f"Failed to load items for {self.state['name']}: {e}")
            ui.notify(f'Failed to load items: {e}', type='negative')
            return
        self.recompute()

    def recompute(self):
        self.state['breakdowns'] = breakdown_by_year(self.state['items'], self.state['name'],
                                                     sort_by_number=self.state['sort_by_number'])
        rows = flatten_breakdowns(self.state['breakdowns'])
        self.state['total_pages'] = total_pages(len(rows), self.state['page_size'])
        self.state['page'] = 1
        self.render_content.refresh()

    def toggle_number_sort(self, e):
        self.state['sort_by_number'] = e.value
        self.recompute()

    def change_page(self, delta: int):
        target = self.state['page'] + delta
        if 1 <= target <= self.state['total_pages']:
            self.state['page'] = target
            self.render_content.refresh()

    @ui.refreshable
    def render_content(self):
        breakdowns = self.state['breakdowns']
        if not breakdowns:
            ui.label(f"No items named '{self.state['name']}'.").classes('text-grey')
            return

        totals = breakdown_totals(breakdowns)
        with ui.row().classes('w-full gap-8 p-4 bg-gray-900 rounded'):
            ui.label(f'Total count: {totals.count}').classes('font-bold')
            ui.label(f'Total cost: {format_money(totals.total_cost)}').classes('font-bold')
            ui.label(f'Total value: {format_money(totals.total_value)}').classes('font-bold')

        with ui.row().classes('w-full gap-2'):
            for b in breakdowns:
                ui.chip(f'{b.label}: {b.count}').props('color=secondary text-color=black')

        rows = paginate(flatten_breakdowns(breakdowns), self.state['page'], self.state['page_size'])
        with ui.column().classes('w-full gap-1'):
            for bucket, item in rows:
                with ui.row().classes('w-full items-center gap-4 p-2 border-b border-gray-800'):
                    ui.label(bucket.label).classes('w-16 text-accent font-bold')
                    ui.label(item.details).classes('flex-1')
                    if item.item_type == 'card':
                        ui.label(f'#{item.number_display}' if item.number else EMPTY_DISPLAY).classes('w-24')
                    else:
                        ui.label(EMPTY_DISPLAY).classes('w-24')
                    ui.label(f'x{item.quantity}').classes('w-12')
                    ui.label(format_money(item.cost)).classes('w-24')
                    ui.label(format_money(item.price)).classes('w-24')
                    ui.label(item.container_name or EMPTY_DISPLAY).classes('w-40 text-grey-4')

        if self.state['total_pages'] > 1:
            with ui.row().classes('items-center gap-2'):
                ui.button(icon='chevron_left', on_click=lambda: self.change_page(-1)).props('flat dense color=white').set_enabled(self.state['page'] > 1)
                ui.label(f"{self.state['page']} / {self.state['total_pages']}").classes('text-white text-sm font-bold')
                ui.button(icon='chevron_right', on_click=lambda: self.change_page(1)).props('flat dense color=white').set_enabled(self.state['page'] < self.state['total_pages'])

    def build_ui(self):
        with ui.row().classes('w-full items-center justify-between'):
            ui.label(self.state['name']).classes('text-3xl font-bold text-white')
            ui.switch('Sort by card number', value=False, on_change=self.toggle_number_sort)
        self.render_content()
        ui.timer(0.1, self.load_data, once=True)

def item_detail_page(name: str):
    page = ItemDetailPage(name)
    page.build_ui()
