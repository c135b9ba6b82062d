"""Progress display for multi-restart fits."""

from __future__ import annotations

import sys
from collections.abc import Iterable, Iterator
from typing import TypeVar

import progressbar

T = TypeVar("T")


def restart_widgets(n_restarts: int) -> list:
    """progressbar2 widgets showing ``restart i/n``, a bar and the ETA."""
    return [
        "restart ",
        progressbar.Counter(),
        f"/{n_restarts} ",
        progressbar.Bar(),
        " ",
        progressbar.ETA(),
    ]


def progress_iterator(
    iterable: Iterable[T], total: int, *, enabled: bool = True
) -> Iterator[T]:
    """Yield from ``iterable``, advancing a stdout progress bar after each item.

    With ``enabled=False`` the items pass through and no bar is created.
    The bar is finished when the generator exits for any reason, including
    ``break`` in the caller or an exception from ``iterable``.
    """
    if not enabled:
        yield from iterable
        return

    bar = progressbar.ProgressBar(
        max_value=total, widgets=restart_widgets(total), fd=sys.stdout
    )
    bar.start()
    try:
        for done, item in enumerate(iterable, start=1):
            yield item
            bar.update(done)
    finally:
        bar.finish()
