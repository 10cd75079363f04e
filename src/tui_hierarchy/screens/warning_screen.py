"""Load warnings modal screen."""

from __future__ import annotations

from textual.app import ComposeResult
from textual.containers import VerticalScroll
from textual.screen import ModalScreen
from textual.widgets import Static

from tui_hierarchy.models import LoadWarning

SECTION_ORDER = ("file", "types", "items")


def group_warnings(warnings: list[LoadWarning]) -> dict[str, list[LoadWarning]]:
    """Bucket *warnings* by data file section, file-level problems first."""
    groups: dict[str, list[LoadWarning]] = {}
    for section in SECTION_ORDER:
        matching = [w for w in warnings if w.section == section]
        if matching:
            groups[section] = matching
    for w in warnings:
        if w.section not in SECTION_ORDER:
            groups.setdefault(w.section, []).append(w)
    return groups


class WarningScreen(ModalScreen[None]):
    """Modal screen listing load problems grouped by the section they came from.

    File-level problems (unreadable file, bad top level) are shown first,
    then the type catalog, then the item list.
    """

    BINDINGS = [("escape", "dismiss", "Close")]

    DEFAULT_CSS = """
    WarningScreen {
        align: center middle;
    }
    #warning-container {
        width: 80;
        max-height: 80%;
        background: $surface;
        border: thick $warning;
        padding: 1 2;
    }
    #warning-title {
        text-align: center;
        text-style: bold;
    }
    #warning-file {
        text-align: center;
        color: $text-muted;
        margin-bottom: 1;
    }
    .warning-section {
        text-style: bold;
        color: $warning;
        margin-top: 1;
    }
    .warning-item {
        padding-left: 2;
    }
    """

    def __init__(self, warnings: list[LoadWarning]) -> None:
        super().__init__()
        self.warnings = warnings
        self.groups = group_warnings(warnings)

    def compose(self) -> ComposeResult:
        with VerticalScroll(id="warning-container"):
            yield Static(f"Load Warnings ({len(self.warnings)})", id="warning-title")
            if not self.warnings:
                yield Static("No warnings.")
                return
            yield Static(self.warnings[0].file_path, id="warning-file", markup=False)
            for section, items in self.groups.items():
                yield Static(
                    f"{section.capitalize()} ({len(items)})",
                    classes="warning-section",
                    id=f"warning-section-{section}",
                    markup=False,
                )
                for w in items:
                    yield Static(f"⚠ {w.message}", classes="warning-item", markup=False)
