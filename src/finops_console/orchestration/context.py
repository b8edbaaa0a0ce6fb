"""
Application context for the console session.

Holds the operator's project selection, date range and theme. Renderers get a
read-only ``ContextSnapshot``; only the owner of the ``AppContext`` can
change it. Nothing here outlives the process.
"""

import logging
from dataclasses import dataclass

logger = logging.getLogger(__name__)

DATE_RANGES = ("last-30d", "last-3m", "last-6m", "last-12m", "ytd")
THEMES = ("dark", "light")


@dataclass(frozen=True)
class ContextSnapshot:
    projects: tuple[str, ...]
    selected_projects: tuple[str, ...]
    date_range: str
    theme: str

    def is_selected(self, project: str) -> bool:
        return project in self.selected_projects


class AppContext:
    """Mutable session context with explicit write operations."""

    def __init__(
        self,
        projects: list[str] | tuple[str, ...] = (),
        selected: list[str] | tuple[str, ...] | None = None,
        date_range: str = "last-6m",
        theme: str = "dark",
    ):
        self._projects = tuple(dict.fromkeys(projects))
        self._selected: tuple[str, ...] = ()
        self._date_range = ""
        self._theme = ""
        self.select_projects(self._projects if selected is None else selected)
        self.set_date_range(date_range)
        self.set_theme(theme)

    @classmethod
    def from_config(cls, config) -> "AppContext":
        context_config = config.context
        return cls(
            projects=context_config.get("projects", []),
            selected=context_config.get("selected_projects"),
            date_range=context_config.get("date_range", "last-6m"),
            theme=context_config.get("theme", "dark"),
        )

    def snapshot(self) -> ContextSnapshot:
        return ContextSnapshot(
            projects=self._projects,
            selected_projects=self._selected,
            date_range=self._date_range,
            theme=self._theme,
        )

    def select_projects(self, projects) -> None:
        unknown = [project for project in projects if project not in self._projects]
        if unknown:
            raise ValueError(f"Unknown project(s): {', '.join(unknown)}")
        # Keep the configured ordering regardless of selection order
        wanted = set(projects)
        self._selected = tuple(project for project in self._projects if project in wanted)

    def toggle_project(self, project: str) -> bool:
        """Flip the selection of ``project``; returns whether it is now selected."""
        if project not in self._projects:
            raise ValueError(f"Unknown project: {project}")
        if project in self._selected:
            self.select_projects([p for p in self._selected if p != project])
            return False
        self.select_projects([*self._selected, project])
        return True

    def set_date_range(self, date_range: str) -> None:
        if date_range not in DATE_RANGES:
            raise ValueError(
                f'Invalid date range "{date_range}". Must be one of: {", ".join(DATE_RANGES)}'
            )
        self._date_range = date_range

    def set_theme(self, theme: str) -> None:
        if theme not in THEMES:
            raise ValueError(f'Invalid theme "{theme}". Must be one of: {", ".join(THEMES)}')
        if self._theme and theme != self._theme:
            logger.debug(f"Theme changed from {self._theme} to {theme}")
        self._theme = theme

    def toggle_theme(self) -> str:
        self.set_theme("light" if self._theme == "dark" else "dark")
        return self._theme
