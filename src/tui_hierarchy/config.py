"""Project configuration management using tomlkit."""

from __future__ import annotations

from pathlib import Path

import tomlkit

from tui_hierarchy.models import MAX_ANCESTOR_DEPTH, ProjectConfig

CONFIG_DIR = ".tui-hierarchy"
CONFIG_FILE = "config.toml"


def _get_config_path(project_dir: Path) -> Path:
    return project_dir / CONFIG_DIR / CONFIG_FILE


def load_config(project_dir: Path) -> ProjectConfig:
    """Load project configuration from .tui-hierarchy/config.toml."""
    config_path = _get_config_path(project_dir)
    config = ProjectConfig()

    if not config_path.exists():
        return config

    try:
        content = config_path.read_text(encoding="utf-8")
        doc = tomlkit.parse(content)
    except Exception:
        return config

    # Parse [project] section
    project_section = doc.get("project", {})
    config.name = str(project_section.get("name", ""))
    data_file = str(project_section.get("data_file", "")).strip()
    if data_file:
        config.data_file = data_file
    config.grouped = bool(project_section.get("grouped", False))
    item_noun = str(project_section.get("item_noun", "")).strip()
    if item_noun:
        config.item_noun = item_noun
    uncategorized = str(project_section.get("uncategorized_title", "")).strip()
    if uncategorized:
        config.uncategorized_title = uncategorized

    # Parse [cycle] section
    cycle_section = doc.get("cycle", {})
    try:
        max_depth = int(cycle_section.get("max_depth", MAX_ANCESTOR_DEPTH))
    except (TypeError, ValueError):
        max_depth = MAX_ANCESTOR_DEPTH
    config.max_cycle_depth = max_depth if max_depth > 0 else MAX_ANCESTOR_DEPTH

    return config


def save_config(project_dir: Path, config: ProjectConfig) -> None:
    """Save project configuration to .tui-hierarchy/config.toml."""
    config_path = _get_config_path(project_dir)
    config_path.parent.mkdir(parents=True, exist_ok=True)

    doc = tomlkit.document()

    # [project]
    project_table = tomlkit.table()
    project_table.add("name", config.name)
    project_table.add("data_file", config.data_file)
    project_table.add("grouped", config.grouped)
    project_table.add("item_noun", config.item_noun)
    project_table.add("uncategorized_title", config.uncategorized_title)
    doc.add("project", project_table)

    # [cycle]
    cycle_table = tomlkit.table()
    cycle_table.add("max_depth", config.max_cycle_depth)
    doc.add("cycle", cycle_table)

    config_path.write_text(tomlkit.dumps(doc), encoding="utf-8")
