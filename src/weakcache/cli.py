"""Typer-based CLI entry point."""

from __future__ import annotations

import functools
import gc
import logging
import threading
import time
from collections import Counter
from pathlib import Path
from typing import Optional

import typer
from rich import print
from rich.console import Console
from rich.table import Table

from .cache import WeakCache
from .errors import SettingsError, WeakCacheError
from .settings import load_settings

app = typer.Typer(help="Exercise a weak-keyed, single-flight memoizing cache")


def _handle_errors(func):
    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except SettingsError as exc:
            typer.echo(f"Error: {exc}", err=True)
            raise typer.Exit(1) from exc
        except WeakCacheError as exc:
            typer.echo(f"Unexpected error: {exc}", err=True)
            raise typer.Exit(1) from exc

    return wrapper


@app.callback()
def main(verbose: bool = typer.Option(False, "--verbose", "-v", help="Log cache internals")) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


class _Key:
    """Weakly referenceable key whose equality is by name."""

    def __init__(self, name: str) -> None:
        self.name = name

    def __eq__(self, other: object) -> bool:
        return isinstance(other, _Key) and other.name == self.name

    def __hash__(self) -> int:
        return hash(self.name)

    def __repr__(self) -> str:
        return f"_Key({self.name!r})"


class _Product:
    def __init__(self, key: Optional[_Key], parameter: int) -> None:
        self.key = key
        self.parameter = parameter

    def __repr__(self) -> str:
        return f"_Product({self.key!r}, {self.parameter})"


@app.command()
@_handle_errors
def demo(settings: Optional[Path] = typer.Option(None, help="Settings JSON file")) -> None:
    """Walk through memoization and reclamation of one key."""

    cache: WeakCache[_Key, int, _Product] = WeakCache(
        lambda key, parameter: parameter,
        _Product,
        settings=load_settings(settings),
    )

    key = _Key("K1")
    first = cache.get(key, 5)
    second = cache.get(key, 5)
    print(f"get(K1, 5) twice -> same instance: [bold]{first is second}[/bold]")
    other = cache.get(key, 6)
    print(f"get(K1, 6) -> distinct instance: [bold]{other is not first}[/bold]")
    print(f"size with K1 alive: {cache.size()}")

    # The products reference the key, so they have to go too.
    del first, second, other, key
    gc.collect()
    print(f"size after K1 was collected: {cache.size()}")

    replacement = _Key("K1")
    fresh = cache.get(replacement, 5)
    print(f"get(equal-but-new K1, 5) recomputed: [bold]{fresh.key is replacement}[/bold] ({fresh!r})")
    print(f"stats: {cache.stats}")


@app.command()
@_handle_errors
def stress(
    threads: int = typer.Option(8, min=1, help="Concurrent worker threads"),
    keys: int = typer.Option(4, min=1, help="Distinct keys"),
    params: int = typer.Option(4, min=1, help="Distinct parameters per key"),
    rounds: int = typer.Option(100, min=1, help="Requests per thread per coordinate"),
    settings: Optional[Path] = typer.Option(None, help="Settings JSON file"),
) -> None:
    """Hammer one cache from many threads and check single-flight."""

    computed: Counter = Counter()
    produced: list[_Product] = []
    lock = threading.Lock()

    def value_factory(key: _Key, parameter: int) -> _Product:
        product = _Product(key, parameter)
        with lock:
            computed[(key.name, parameter)] += 1
            # Keep values alive so a collected value is never mistaken for
            # a duplicate computation.
            produced.append(product)
        return product

    cache: WeakCache[_Key, int, _Product] = WeakCache(
        lambda key, parameter: parameter,
        value_factory,
        settings=load_settings(settings),
    )
    key_objects = [_Key(f"K{i}") for i in range(keys)]
    barrier = threading.Barrier(threads)
    errors: list[BaseException] = []

    def worker() -> None:
        barrier.wait()
        try:
            for _ in range(rounds):
                for key in key_objects:
                    for parameter in range(params):
                        cache.get(key, parameter)
        except Exception as exc:
            with lock:
                errors.append(exc)

    started = time.perf_counter()
    pool = [threading.Thread(target=worker, name=f"stress-{i}") for i in range(threads)]
    for thread in pool:
        thread.start()
    for thread in pool:
        thread.join()
    elapsed = time.perf_counter() - started

    stats = cache.stats
    duplicates = sum(1 for count in computed.values() if count > 1)
    table = Table(title="weakcache stress")
    table.add_column("metric")
    table.add_column("value", justify="right")
    table.add_row("threads", str(threads))
    table.add_row("requests", str(threads * rounds * keys * params))
    table.add_row("coordinates", str(keys * params))
    table.add_row("computations", str(sum(computed.values())))
    table.add_row("duplicate computations", str(duplicates))
    table.add_row("hits", str(stats.hits))
    table.add_row("misses", str(stats.misses))
    table.add_row("size", str(cache.size()))
    table.add_row("errors", str(len(errors)))
    table.add_row("elapsed (s)", f"{elapsed:.3f}")
    Console().print(table)

    if duplicates or errors:
        raise typer.Exit(1)


if __name__ == "__main__":
    app()
