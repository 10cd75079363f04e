"""CLI entry point using Click."""

from __future__ import annotations

import logging
from pathlib import Path

import click

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


class _DefaultGroup(click.Group):
    """Insert 'run' when the first arg is not a registered subcommand."""

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.no_args_is_help = False  # bare `tui-hierarchy` routes to run

    def invoke(self, ctx):
        if not ctx._protected_args and not ctx.args:
            ctx._protected_args = ["run"]
        return super().invoke(ctx)

    def resolve_command(self, ctx, args):
        cmd_name = args[0] if args else None
        if cmd_name and cmd_name in self.commands:
            return super().resolve_command(ctx, args)
        return super().resolve_command(ctx, ["run"] + list(args))


def _configure_logging(log_file: str | None, log_level: str) -> None:
    # The TUI owns the terminal, so log records only go to a file.
    if not log_file:
        return
    handler = logging.FileHandler(log_file, encoding="utf-8")
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    package_logger = logging.getLogger("tui_hierarchy")
    package_logger.addHandler(handler)
    package_logger.setLevel(log_level.upper())


def _resolve_project_dir(path: str) -> Path:
    project_dir = Path(path).resolve()
    if not project_dir.exists():
        if click.confirm(f"'{project_dir}' does not exist. Create it?"):
            project_dir.mkdir(parents=True, exist_ok=True)
            click.echo(f"Created folder: {project_dir}")
        else:
            raise SystemExit(0)
    elif not project_dir.is_dir():
        click.echo(f"Error: '{project_dir}' is not a directory.", err=True)
        raise SystemExit(1)
    return project_dir


@click.group(cls=_DefaultGroup)
@click.option("--no-color", is_flag=True, help="Disable color output")
@click.option("--log-file", type=click.Path(dir_okay=False), default=None, help="Write log records to this file")
@click.option(
    "--log-level",
    type=click.Choice(["debug", "info", "warning", "error"], case_sensitive=False),
    default="info",
    show_default=True,
)
@click.version_option(package_name="tui-hierarchy")
@click.pass_context
def main(ctx, no_color: bool, log_file: str | None, log_level: str) -> None:
    """TUI Hierarchy - browse and edit a multi-parent hierarchy."""
    ctx.ensure_object(dict)
    ctx.obj["no_color"] = no_color
    _configure_logging(log_file, log_level)


@main.command()
@click.argument("path", default=".", type=click.Path())
@click.pass_context
def run(ctx, path: str) -> None:
    """Opens the hierarchy project in PATH."""
    from tui_hierarchy.app import HierarchyApp

    project_dir = _resolve_project_dir(path)
    app = HierarchyApp(project_dir=project_dir, no_color=ctx.obj["no_color"])
    app.run()


@main.command("init")
@click.argument("path", default=".", type=click.Path())
@click.option("--name", prompt="Project name", default="My Hierarchy", help="Project name")
def init_cmd(path: str, name: str) -> None:
    """Initialize a new project (config.toml + sample hierarchy.yaml)."""
    from tui_hierarchy.config import CONFIG_DIR, CONFIG_FILE, save_config
    from tui_hierarchy.models import ProjectConfig
    from tui_hierarchy.store import RecordStore, sample_records

    project_dir = Path(path).resolve()
    config = ProjectConfig(name=name)
    data_path = project_dir / config.data_file
    if data_path.exists():
        click.echo(f"Data file already exists: {data_path}", err=True)
        raise SystemExit(1)

    project_dir.mkdir(parents=True, exist_ok=True)
    save_config(project_dir, config)
    click.echo(f"Created {project_dir / CONFIG_DIR / CONFIG_FILE}")

    types, items = sample_records()
    RecordStore(data_path, items=items, types=types).save()
    click.echo(f"Created {data_path}")

    click.echo(f"\nProject initialized at {project_dir}")
    click.echo("Run 'tui-hierarchy' to open the project.")


@main.command("tree")
@click.argument("path", default=".", type=click.Path(exists=True, file_okay=False))
@click.option("--grouped", is_flag=True, help="Group root items under their type")
@click.pass_context
def tree_cmd(ctx, path: str, grouped: bool) -> None:
    """Print the hierarchy in PATH without opening the TUI."""
    from rich.console import Console
    from rich.text import Text
    from rich.tree import Tree

    from tui_hierarchy.builder import build_grouped_tree, build_tree
    from tui_hierarchy.config import load_config
    from tui_hierarchy.models import MULTI_PARENT_ICON, SUBTYPE_ICON, TYPE_ICON, Node, Relation
    from tui_hierarchy.store import RecordStore

    project_dir = Path(path).resolve()
    config = load_config(project_dir)
    store = RecordStore.load(project_dir, config.data_file, config.max_cycle_depth)
    for warning in store.warnings:
        click.echo(f"warning: {warning}", err=True)

    if grouped or config.grouped:
        forest = build_grouped_tree(
            store.items, store.types, uncategorized_title=config.uncategorized_title
        )
    else:
        forest = build_tree(store.items)

    def label(node: Node, subtype: bool) -> Text:
        if node.is_pseudo:
            return Text(f"{TYPE_ICON} {node.title}", style="bold")
        text = Text(f"{SUBTYPE_ICON} " if subtype else "")
        text.append(node.title or node.id)
        if node.has_multiple_parents:
            text.append(f" {MULTI_PARENT_ICON}")
        return text

    project_name = config.name or project_dir.name
    root = Tree(Text(project_name, style="bold"))
    # Flattened rows are pre-order, so the branch for a row at depth d hangs
    # off the last branch seen at depth d - 1.
    branches: list[Tree] = [root]
    for row in forest.flatten():
        del branches[row.depth + 1 :]
        subtype = row.relation is Relation.SUBTYPE
        branches.append(branches[row.depth].add(label(row.node, subtype)))

    console = Console(no_color=ctx.obj["no_color"])
    console.print(root)
