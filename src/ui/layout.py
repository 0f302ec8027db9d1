from nicegui import ui
from src.ui.theme import apply_theme
from src.core.config import config_manager, PAGE_SIZE_OPTIONS
from src.core.session import session

def open_settings():
    prefs = config_manager.get_preferences()

    with ui.dialog() as d, ui.card().classes('w-96'):
        ui.label('Settings').classes('text-h6')
        ui.label('View Preferences').classes('text-subtitle2 text-grey')

        items_sel = ui.select(list(PAGE_SIZE_OPTIONS), label='Items per page', value=prefs.items_per_page).classes('w-full')
        detail_sel = ui.select(list(PAGE_SIZE_OPTIONS), label='Detail rows per page', value=prefs.item_detail_per_page).classes('w-full')
        size_sel = ui.select(['small', 'medium', 'large'], label='View size', value=prefs.view_size).classes('w-full')
        mode_sel = ui.select(['table', 'grid'], label='View mode', value=prefs.view_mode).classes('w-full')

        def save():
            prefs.items_per_page = items_sel.value
            prefs.item_detail_per_page = detail_sel.value
            prefs.view_size = size_sel.value
            prefs.view_mode = mode_sel.value
            try:
                config_manager.save_preferences(prefs)
            except OSError as e:
                ui.notify(f'Could not save settings: {e}', type='negative')
                return
            ui.notify('Settings saved. Reload the page to apply them.', type='positive')
            d.close()

        with ui.row().classes('w-full justify-end q-mt-md'):
            ui.button('Cancel', on_click=d.close).props('flat')
            ui.button('Save', on_click=save).props('color=secondary')
    d.open()

def create_layout(content_function):
    """
    Wraps the content_function in the standard application layout
    (Sidebar, Header, Content Area).
    """
    apply_theme()

    # Define the drawer first so it's available for the toggle button
    with ui.left_drawer(value=True).classes('bg-dark text-white') as left_drawer:
        with ui.column().classes('w-full q-mt-md'):
            ui.label('Navigation').classes('text-grey-4 q-px-md text-sm uppercase font-bold')

            def nav_button(text, icon, target):
                ui.button(text, icon=icon, on_click=lambda: ui.navigate.to(target)).props('flat align=left').classes('w-full text-grey-3 hover:bg-white/10')

            nav_button('Dashboard', 'dashboard', '/')
            nav_button('Items', 'style', '/items')
            nav_button('Zones', 'map', '/zones')
            nav_button('Containers', 'inventory_2', '/containers')

            ui.separator().classes('q-my-md bg-grey-8')
            ui.label('Settings').classes('text-grey-4 q-px-md text-sm uppercase font-bold')

            with ui.button('Configuration', icon='settings', on_click=open_settings).props('flat align=left').classes('w-full text-grey-3 hover:bg-white/10'):
                ui.tooltip('Page sizes and view options')

    with ui.header().classes(replace='row items-center') as header:
        header.classes('bg-primary text-white')
        ui.button(on_click=lambda: left_drawer.toggle(), icon='menu').props('flat color=white')
        ui.label('Hotzone Inventory').classes('text-h6 q-ml-md font-bold')
        ui.space()
        if session.is_signed_in:
            ui.label(f'Account: {session.user_id}').classes('text-sm text-grey-4 q-mr-md')

    with ui.column().classes('w-full q-pa-md items-start'):
        if not session.is_signed_in:
            ui.label('Sign in to view your inventory.').classes('text-negative')
            return
        content_function()
