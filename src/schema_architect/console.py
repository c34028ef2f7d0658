"""Console output helpers for the CLI (rich-based)."""

from __future__ import annotations

from contextlib import AbstractContextManager
from typing import Any

from rich.console import Console
from rich.markup import escape

console = Console()
err_console = Console(stderr=True)


def header(text: str) -> None:
    console.print(f"\n[bold]{escape(text)}[/bold]")
    console.print("[dim]" + "─" * len(text) + "[/dim]")


def key_value(key: str, value: Any, indent: int = 0) -> None:
    pad = " " * indent
    console.print(f"{pad}[dim]{escape(key)}:[/dim] {escape(str(value))}")


def info(text: str) -> None:
    console.print(escape(text))


def dim(text: str) -> None:
    console.print(f"[dim]{escape(text)}[/dim]")


def success(text: str) -> None:
    console.print(f"[green]✓[/green] {escape(text)}")


def warning(text: str) -> None:
    err_console.print(f"[yellow]warning:[/yellow] {escape(text)}")


def error(text: str) -> None:
    err_console.print(f"[red]error:[/red] {escape(text)}")


def status(text: str) -> AbstractContextManager[Any]:
    return err_console.status(text)
