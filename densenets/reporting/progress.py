"""Single-line console progress bar for training epochs."""

from __future__ import annotations

import sys
from typing import Mapping, TextIO


class ConsoleProgress:
    """Redraw ``Epoch e/n: [====    ] 40% - Loss: 0.123`` after every epoch.

    The line is redrawn in place with a carriage return and terminated with a
    newline once the last epoch has been reported.
    """

    def __init__(self, total_epochs: int, stream: TextIO | None = None, width: int = 50) -> None:
        self.total_epochs = int(total_epochs)
        self.stream = stream if stream is not None else sys.stdout
        self.width = int(width)

    def render(self, epoch: int, loss: float) -> str:
        fraction = epoch / self.total_epochs if self.total_epochs else 1.0
        filled = int(fraction * self.width)
        bar = "=" * filled + " " * (self.width - filled)
        percent = int(fraction * 100)
        return f"Epoch {epoch}/{self.total_epochs}: [{bar}] {percent}% - Loss: {loss:.3f}"

    def on_epoch(self, epoch: int, metrics: Mapping[str, float]) -> None:
        line = self.render(epoch, float(metrics.get("loss", 0.0)))
        end = "\n" if epoch >= self.total_epochs else ""
        self.stream.write("\r" + line + end)
        self.stream.flush()

    __call__ = on_epoch


__all__ = ["ConsoleProgress"]
