"""Rich formatters for CLI output.

This module provides a shared Console instance for consistent terminal
output across the deepwatch CLI.

Semantic Colors:
- green: success
- yellow: warning
- red: error
- blue: info
"""

from rich.console import Console
from rich.theme import Theme

DEEPWATCH_THEME = Theme(
    {
        "success": "green",
        "warning": "yellow",
        "error": "red",
        "info": "blue",
        "muted": "dim",
        "highlight": "bold cyan",
    }
)

console = Console(theme=DEEPWATCH_THEME)

__all__ = ["console", "DEEPWATCH_THEME"]
