from __future__ import annotations

import sys
from typing import Any

from tqdm import tqdm
from tqdm.std import tqdm as TqdmType

"""Progress display with tqdm (TTY only).

One bar per generation run, advanced once per filled bond. In non-TTY
environments (CI, redirected output) the bar is disabled so the log stays free
of control sequences.
"""

__all__ = [
    "ProgressTracker",
    "is_tty_enabled",
]


def is_tty_enabled() -> bool:
    """True when stdout is a TTY and a progress bar should be drawn."""
    return sys.stdout.isatty()


class ProgressTracker:
    """Per-bond fill progress.

    Usable as a context manager; the bar is closed on exit.
    """

    def __init__(self, total_bonds: int, *, description: str = "Filling bonds") -> None:
        """Initialize progress tracker.

        Args:
            total_bonds: Number of bonds that will be filled
            description: Description for the progress bar
        """
        self.total_bonds = total_bonds
        self.description = description
        self.completed = 0

        self.enabled = is_tty_enabled()
        self.pbar: TqdmType[Any] | None
        if self.enabled:
            self.pbar = tqdm(
                total=total_bonds,
                desc=description,
                unit="bond",
                disable=False,
                leave=True,
                position=0,
                ncols=80,
                ascii=True,
            )
        else:
            self.pbar = None

    def finish_bond(self, bond_number: str | None = None) -> None:
        """Advance the bar by one bond and show its number."""
        self.completed += 1
        if self.enabled and self.pbar is not None:
            self.pbar.update(1)
            if bond_number:
                self.pbar.set_postfix(bond=bond_number)

    def set_postfix(self, **kwargs: Any) -> None:
        """Show key/value stats after the bar."""
        if self.enabled and self.pbar is not None:
            self.pbar.set_postfix(**kwargs)

    def close(self) -> None:
        if self.enabled and self.pbar is not None:
            self.pbar.close()
            self.pbar = None

    def __enter__(self) -> ProgressTracker:
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        self.close()
