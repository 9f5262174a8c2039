"""Output module for lapsquery results."""

# Shared color scheme for record output
COLORS = {
    "header": "bold cyan",
    "border": "cyan",
    "label": "dim",
    "value": "white",
    "password": "bold green",
    "warning": "yellow",
    "error": "red",
    "success": "green",
}
