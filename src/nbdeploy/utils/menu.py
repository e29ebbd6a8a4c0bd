"""Interactive terminal menu helpers.

Provides a standardized single-select menu based on simple_term_menu,
matching the nbdeploy UX conventions.
"""

from simple_term_menu import TerminalMenu


def select_menu(items: list[str], title: str, cursor_index: int = 0) -> int | None:
    """Show a single-select menu. Returns selected index or None if cancelled."""
    menu = TerminalMenu(
        items,
        title=title,
        cursor_index=cursor_index,
        menu_cursor="> ",
        menu_cursor_style=("fg_cyan", "bold"),
        search_key="/",
    )
    return menu.show()
