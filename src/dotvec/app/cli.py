from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from pathlib import Path
from typing import Optional, Sequence

from rich.console import Console
from rich.markup import escape
from rich.table import Table

from dotvec.app.container import Container, build_container
from dotvec.app.pipeline import index_text, search_text
from dotvec.domain.errors import VectorStoreError
from dotvec.settings import load_settings

console = Console()

MAX_TOP_K = 50


def _top_k(raw: str) -> int:
    try:
        k = int(raw)
    except ValueError:
        raise argparse.ArgumentTypeError(f"not an integer: {raw!r}") from None
    if not 0 <= k <= MAX_TOP_K:
        raise argparse.ArgumentTypeError(f"must be between 0 and {MAX_TOP_K}, got {k}")
    return k


def build_argparser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(prog="dotvec", description="Tiny persistent cosine-similarity vector store.")
    ap.add_argument("--settings", default="settings.toml", help="Path to settings.toml (default: settings.toml)")
    ap.add_argument("--store", default=None, help="Store name (overrides settings)")
    ap.add_argument("-v", "--verbose", action="store_true", help="Debug logging")

    sub = ap.add_subparsers(dest="command", required=True)

    add = sub.add_parser("add", help="Embed and store text, one vector per paragraph")
    add.add_argument("text", nargs="?", default=None, help="Text to add (paragraphs separated by blank lines)")
    add.add_argument("--file", type=Path, default=None, help="Read text from a file instead")

    search = sub.add_parser("search", help="Search stored paragraphs")
    search.add_argument("query", help="Query text")
    search.add_argument("--top-k", type=_top_k, default=None, help=f"Results to show (0-{MAX_TOP_K})")

    sub.add_parser("list", help="List stored vectors")

    delete = sub.add_parser("delete", help="Delete vectors by id")
    delete.add_argument("ids", nargs="+")

    return ap


def _preview(text: object, limit: int = 100) -> str:
    s = str(text or "")
    return escape(s if len(s) <= limit else s[: limit - 1] + "…")


async def _cmd_add(c: Container, args: argparse.Namespace) -> None:
    if args.file is not None:
        text = args.file.read_text(encoding="utf-8")
    elif args.text is not None:
        text = args.text
    else:
        text = sys.stdin.read()

    ids = await index_text(text, engine=c.engine, embedder=c.embedder)
    console.print(f"[bold]Added {len(ids)} paragraph(s)[/bold] (store count: {c.engine.count()})")


def _cmd_search(c: Container, args: argparse.Namespace) -> None:
    top_k = args.top_k if args.top_k is not None else min(c.settings.search.top_k, MAX_TOP_K)
    results = search_text(
        args.query,
        engine=c.engine,
        embedder=c.embedder,
        top_k=top_k,
        query_prefix=c.settings.embeddings.query_prefix,
    )

    if not results:
        console.print("[yellow]No results.[/yellow]")
        return

    table = Table(title=f"Top {len(results)} for: {escape(args.query)}")
    table.add_column("#", justify="right")
    table.add_column("Score", justify="right")
    table.add_column("Text")
    table.add_column("Id", style="dim")
    for i, res in enumerate(results, start=1):
        text = (res.vector.metadata or {}).get("text")
        table.add_row(str(i), f"{res.score:.4f}", _preview(text), res.vector.id)
    console.print(table)


def _cmd_list(c: Container) -> None:
    vectors = c.engine.get_all()
    table = Table(title=f"{len(vectors)} vector(s) in {c.engine.name}")
    table.add_column("Id", style="dim")
    table.add_column("Text")
    for v in vectors:
        table.add_row(v.id, _preview((v.metadata or {}).get("text")))
    console.print(table)


async def run(args: argparse.Namespace) -> None:
    settings = load_settings(args.settings)
    c = build_container(settings)

    name = args.store or settings.store.name
    result = await c.engine.connect(name)
    if result.is_new:
        console.print(f"[dim]Created new store {name!r}[/dim]")

    if args.command == "add":
        await _cmd_add(c, args)
    elif args.command == "search":
        _cmd_search(c, args)
    elif args.command == "list":
        _cmd_list(c)
    elif args.command == "delete":
        await c.engine.delete_many(args.ids)
        console.print(f"[bold]Deleted {len(args.ids)} id(s)[/bold] (store count: {c.engine.count()})")


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_argparser().parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    try:
        asyncio.run(run(args))
    except (VectorStoreError, FileNotFoundError, KeyError, ValueError) as e:
        console.print(f"[red]Error:[/red] {escape(str(e))}")
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
