import sys
import os
from nicegui import ui, app
from fastapi.responses import JSONResponse

# Ensure src is in the python path
sys.path.append(os.path.dirname(os.path.abspath(__file__)))

from src.core.logging_setup import setup_logging
setup_logging()

from src.ui.layout import create_layout
from src.ui.dashboard import dashboard_page
from src.ui.items import items_page
from src.ui.item_detail import item_detail_page
from src.ui.zones import zones_page, zone_detail_page
from src.ui.containers import containers_page, container_detail_page

@ui.page('/')
def home():
    create_layout(dashboard_page)

@ui.page('/items')
def items():
    create_layout(items_page)

@ui.page('/items/detail')
def item_detail(name: str = ''):
    create_layout(lambda: item_detail_page(name))

@ui.page('/zones')
def zones():
    create_layout(zones_page)

@ui.page('/zones/{zone_id}')
def zone_detail(zone_id: str):
    create_layout(lambda: zone_detail_page(zone_id))

@ui.page('/containers')
def containers():
    create_layout(containers_page)

@ui.page('/containers/{container_id}')
def container_detail(container_id: str):
    create_layout(lambda: container_detail_page(container_id))

# Handle Chrome DevTools probe to prevent 404 warnings
@app.get('/.well-known/appspecific/com.chrome.devtools.json')
def chrome_devtools_probe():
    return JSONResponse(content={})

if __name__ in {"__main__", "__mp_main__"}:
    # Disable reload to prevent restart loops when writing to data/ directory
    ui.run(title='Hotzone Inventory', favicon='📦', reload=False)
