"""Terminal prompter."""

from __future__ import annotations

import sys
from typing import TextIO

from deployease.core.reporting import render_analysis
from deployease.models.analysis import AnalysisResult

AFFIRMATIVE = frozenset({"y", "yes"})


class ConsolePrompter:
    """Prints analyses to a stream and reads y/N answers from stdin."""

    def __init__(self, out: TextIO | None = None, input_stream: TextIO | None = None) -> None:
        self._out = out or sys.stdout
        self._in = input_stream or sys.stdin

    async def show_analysis(self, analysis: AnalysisResult) -> None:
        self._out.write("\n" + render_analysis(analysis) + "\n\n")
        self._out.flush()

    async def confirm(self, question: str) -> bool:
        """Ask a yes/no question; anything but y/yes is a no.

        Raises:
            EOFError: If stdin is closed
        """
        self._out.write(f"{question} [y/N] ")
        self._out.flush()
        line = self._in.readline()
        if not line:
            raise EOFError("No input available for confirmation")
        return line.strip().lower() in AFFIRMATIVE
