from nicegui import ui

def apply_theme():
    """Applies the global color theme to the application."""
    ui.colors(
        primary='#14213d',   # Navy header
        secondary='#fca311', # Hotzone orange
        accent='#4ea8de',    # Sky blue
        dark='#0b132b',      # Page background
        positive='#52b788',
        negative='#e63946',
        info='#48cae4',
        warning='#ffd166'
    )
    ui.dark_mode().enable()
