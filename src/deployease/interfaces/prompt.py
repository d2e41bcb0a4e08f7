"""Abstract interface for talking to the person running the build."""

from typing import Protocol

from ..models.analysis import AnalysisResult


class Prompter(Protocol):
    """Presents analysis results and asks yes/no questions."""

    async def show_analysis(self, analysis: AnalysisResult) -> None:
        """Display detected issues and suggested fixes."""
        ...

    async def confirm(self, question: str) -> bool:
        """
        Ask a yes/no question and wait for the answer.

        There is no timeout; the call blocks until the user answers.

        Returns:
            True only for an affirmative answer

        Raises:
            KeyboardInterrupt: If the user interrupts the prompt
            EOFError: If input is closed
        """
        ...
