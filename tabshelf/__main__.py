"""Entry point for the tabshelf CLI."""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Any

from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.table import Table

from . import __version__
from .app import TabShelf
from .constants import KEY_LABEL, KEY_ORG, KEY_URL
from .core.container import TabContainer
from .core.sorting import SortKey
from .errors import ShelfError
from .log import logger


def _query(args: argparse.Namespace) -> dict[str, Any]:
    return {KEY_LABEL: args.label, KEY_URL: args.url, KEY_ORG: args.org}


def _render(container: TabContainer, console: Console) -> None:
    table = Table(title=f"{len(container)} tabs ({container.pinned} pinned)")
    table.add_column("#", justify="right")
    table.add_column("Label")
    table.add_column("URL")
    table.add_column("Org")
    table.add_column("Clicks", justify="right")
    for index, tab in enumerate(container):
        marker = "📌 " if index < container.pinned else ""
        table.add_row(
            str(index),
            marker + escape(tab.label),
            escape(tab.url),
            escape(tab.org or ""),
            str(tab.click_count or ""),
        )
    console.print(table)
    if container.is_sorted:
        direction = "ascending" if container.is_sorted_asc else "descending"
        console.print(f"sorted by {container.is_sorted_by.value} ({direction})")


# ---------------------------------------------------------------------------
# Subcommands
# ---------------------------------------------------------------------------


def _cmd_list(container: TabContainer, args: argparse.Namespace, console: Console) -> None:
    _render(container, console)


def _cmd_add(container: TabContainer, args: argparse.Namespace, console: Console) -> None:
    container.add_tab(
        {KEY_LABEL: args.label, KEY_URL: args.url, KEY_ORG: args.org},
        add_in_front=args.front,
    )
    console.print(f"added {escape(args.label)}")


def _cmd_remove(container: TabContainer, args: argparse.Namespace, console: Console) -> None:
    container.remove(_query(args))
    console.print("removed")


def _cmd_pin(container: TabContainer, args: argparse.Namespace, console: Console) -> None:
    container.pin_or_unpin(_query(args), True)
    console.print("pinned")


def _cmd_unpin(container: TabContainer, args: argparse.Namespace, console: Console) -> None:
    container.pin_or_unpin(_query(args), False)
    console.print("unpinned")


def _cmd_move(container: TabContainer, args: argparse.Namespace, console: Console) -> None:
    index = container.move_tab(
        _query(args), move_before=not args.after, full_movement=args.full
    )
    console.print(f"moved to position {index}")


def _cmd_sort(container: TabContainer, args: argparse.Namespace, console: Console) -> None:
    container.sort(args.by, sort_asc=not args.desc)
    _render(container, console)


def _cmd_click(container: TabContainer, args: argparse.Namespace, console: Console) -> None:
    container.handle_click_tab_by_data(_query(args))
    console.print("click recorded")


def _cmd_import(container: TabContainer, args: argparse.Namespace, console: Console) -> None:
    text = Path(args.file).read_text(encoding="utf-8")
    count = container.import_tabs(
        text,
        reset_tabs=args.reset,
        preserve_other_org=not args.drop_other_orgs,
        import_metadata=args.metadata,
    )
    console.print(f"imported {count} tab(s)")


def _cmd_export(container: TabContainer, args: argparse.Namespace, console: Console) -> None:
    text = json.dumps(container.export_tabs(), indent=4, ensure_ascii=False)
    if args.file:
        Path(args.file).write_text(text + "\n", encoding="utf-8")
        console.print(f"exported {len(container)} tab(s) to {escape(args.file)}")
    else:
        print(text)


def _cmd_reset(container: TabContainer, args: argparse.Namespace, console: Console) -> None:
    container.set_default_tabs()
    console.print("restored the default tabs")


_COMMANDS = {
    "list": _cmd_list,
    "add": _cmd_add,
    "remove": _cmd_remove,
    "pin": _cmd_pin,
    "unpin": _cmd_unpin,
    "move": _cmd_move,
    "sort": _cmd_sort,
    "click": _cmd_click,
    "import": _cmd_import,
    "export": _cmd_export,
    "reset": _cmd_reset,
}


def _add_query_args(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--label", help="Match on the tab label")
    parser.add_argument("--url", help="Match on the tab url")
    parser.add_argument("--org", help="Org the tab belongs to")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="tabshelf", description="Manage saved Setup shortcuts")
    parser.add_argument("--version", "-V", action="version", version=f"tabshelf {__version__}")
    parser.add_argument("--data", type=Path, help="Tabs file (default from preferences)")
    parser.add_argument("--prefs", type=Path, help="Preferences file")
    parser.add_argument("--verbose", "-v", action="store_true", help="Show debug logging")
    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("list", help="Show the saved tabs")

    add = sub.add_parser("add", help="Save a new tab")
    add.add_argument("label")
    add.add_argument("url")
    add.add_argument("--org", help="Only show the tab for this org")
    add.add_argument("--front", action="store_true", help="Insert right after the pinned tabs")

    for name, help_text in (
        ("remove", "Remove a tab"),
        ("pin", "Pin a tab"),
        ("unpin", "Unpin a tab"),
        ("click", "Record a click on a tab"),
    ):
        _add_query_args(sub.add_parser(name, help=help_text))

    move = sub.add_parser("move", help="Move a tab within its section")
    _add_query_args(move)
    move.add_argument("--after", action="store_true", help="Move right instead of left")
    move.add_argument("--full", action="store_true", help="Move to the edge of the section")

    sort = sub.add_parser("sort", help="Sort the unpinned tabs")
    sort.add_argument("--by", default=SortKey.LABEL.value, choices=[k.value for k in SortKey])
    sort.add_argument("--desc", action="store_true", help="Sort in descending order")

    imp = sub.add_parser("import", help="Import tabs from an exported file")
    imp.add_argument("file")
    imp.add_argument("--reset", action="store_true", help="Drop the generic tabs first")
    imp.add_argument("--drop-other-orgs", action="store_true", help="Drop org tabs first")
    imp.add_argument("--metadata", action="store_true", help="Keep clicks and pinned tabs")

    exp = sub.add_parser("export", help="Export the tabs as JSON")
    exp.add_argument("file", nargs="?", help="Output file (default: stdout)")

    sub.add_parser("reset", help="Replace everything with the default tabs")
    return parser


def main(argv: list[str] | None = None) -> int:
    """Run the tabshelf CLI."""
    args = build_parser().parse_args(argv)
    console = Console()
    if args.verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(message)s",
            handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        )

    try:
        shelf = TabShelf.from_paths(args.data, args.prefs)
        container = shelf.initialize()
        _COMMANDS[args.command](container, args, console)
    except (ShelfError, OSError) as exc:
        logger.debug("command %s failed", args.command, exc_info=True)
        Console(stderr=True).print(f"[red]error:[/red] {escape(str(exc))}")
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
