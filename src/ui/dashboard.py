from nicegui import ui, run
from urllib.parse import quote
from src.core.persistence import persistence
from src.core.session import session
from src.core.errors import InventoryError
from src.core.utils import format_money
from src.services.inventory import InventoryService
from src.services.aggregation import group_by_name
import logging

logger = logging.getLogger(__name__)

inventory = InventoryService(persistence, session)

async def load_dashboard_data():
    """
    Loads the dashboard data:
    1. Counters and the most recent items
    2. All items grouped by display name

    Returns: (stats, groups)
    """
    items = await run.io_bound(inventory.fetch_items)
    stats = await run.io_bound(inventory.dashboard_stats, items)
    return stats, group_by_name(items)

def metric_card(label, value, icon, color='accent'):
    with ui.card().classes('flex-1 bg-dark border border-gray-700 p-4 items-center flex-row gap-4 min-w-[200px]'):
        with ui.element('div').classes(f'p-3 rounded-full bg-{color}/10'):
            ui.icon(icon, size='2rem').classes(f'text-{color}')

        with ui.column().classes('gap-0'):
            ui.label(label).classes('text-grey-4 text-xs uppercase font-bold tracking-wider')
            ui.label(str(value)).classes("text-2xl font-bold text-white")

def render_recent(stats):
    ui.label('Recently Added').classes('text-xl font-bold text-white')
    if not stats.recent_items:
        ui.label('No items yet.').classes('text-grey')
        return

    with ui.column().classes('w-full gap-1'):
        for item in stats.recent_items:
            with ui.row().classes('w-full items-center gap-4 p-2 bg-gray-900 rounded'):
                ui.icon('style' if item.item_type == 'card' else 'menu_book').classes('text-accent')
                ui.label(item.name or 'Unknown').classes('font-bold text-white')
                ui.label(item.details).classes('text-grey-4 text-sm')
                ui.space()
                ui.label(item.container_name).classes('text-grey-5 text-xs')

def render_groups(groups):
    ui.label('Inventory by Name').classes('text-xl font-bold text-white')
    columns = [
        {'name': 'name', 'label': 'Name', 'field': 'name', 'align': 'left'},
        {'name': 'item_type', 'label': 'Type', 'field': 'item_type'},
        {'name': 'total_count', 'label': 'Count', 'field': 'total_count'},
        {'name': 'total_cost', 'label': 'Total Cost', 'field': 'total_cost'},
        {'name': 'total_value', 'label': 'Total Value', 'field': 'total_value'},
    ]
    rows = [{
        'name': g.name,
        'item_type': g.item_type,
        'total_count': g.total_count,
        'total_cost': format_money(g.total_cost),
        'total_value': format_money(g.total_value),
    } for g in groups]

    table = ui.table(columns=columns, rows=rows, row_key='name', pagination=25).classes('w-full')
    table.on('rowClick', lambda e: ui.navigate.to(f"/items/detail?name={quote(e.args[1]['name'])}"))

def dashboard_page():
    content = ui.column().classes('w-full gap-8 p-4')

    async def build_content():
        with content:
            spinner = ui.spinner('dots').classes('self-center q-my-xl')
            try:
                stats, groups = await load_dashboard_data()
            except InventoryError as e:
                logger.error(f"Error loading dashboard data: {e}")
                ui.notify(f'Failed to load dashboard: {e}', type='negative')
                ui.label('Failed to load dashboard data.').classes('text-negative')
                return
            finally:
                spinner.delete()

            with ui.column().classes('gap-1'):
                ui.label('Dashboard').classes('text-3xl font-bold text-white')
                ui.label('An overview of your zones, containers and items.').classes('text-gray-400')

            with ui.row().classes('w-full gap-4'):
                metric_card('Zones', f"{stats.zones:,}", 'map', 'primary')
                metric_card('Containers', f"{stats.containers:,}", 'inventory_2', 'secondary')
                metric_card('Items', f"{stats.items:,}", 'style', 'info')

            render_recent(stats)
            ui.separator().classes('bg-gray-800 q-my-sm')
            render_groups(groups)

    ui.timer(0.1, build_content, once=True)
