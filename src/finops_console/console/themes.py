"""
Console theme configuration.

Provides the color scheme and trend affordance styling used by the terminal
renderers, for both dark and light terminals.
"""

from ..orchestration.forecast import Affordance


class ConsoleTheme:
    """Console theme configuration - Tokyonight palette mapped to ANSI colors."""

    COLORS = {
        "dark": {
            "primary": "bright_blue",
            "success": "bright_green",
            "warning": "bright_yellow",
            "danger": "bright_red",
            "info": "bright_cyan",
            "muted": "bright_black",
            "text": "white",
        },
        "light": {
            "primary": "blue",
            "success": "green",
            "warning": "yellow",
            "danger": "red",
            "info": "cyan",
            "muted": "black",
            "text": "black",
        },
    }

    AFFORDANCES = {
        Affordance.WARNING: {"icon": "▲", "color": "danger"},
        Affordance.POSITIVE: {"icon": "▼", "color": "success"},
        Affordance.NEUTRAL: {"icon": "▬", "color": "muted"},
    }

    PRIORITY_COLORS = {"high": "danger", "medium": "warning", "low": "info"}

    def __init__(self, name: str = "dark"):
        if name not in self.COLORS:
            raise ValueError(f"Unknown theme: {name}")
        self.name = name

    def color(self, role: str) -> str:
        return self.COLORS[self.name].get(role, self.COLORS[self.name]["text"])

    def affordance_icon(self, affordance: Affordance) -> str:
        return self.AFFORDANCES[affordance]["icon"]

    def affordance_color(self, affordance: Affordance) -> str:
        return self.color(self.AFFORDANCES[affordance]["color"])
