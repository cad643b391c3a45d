"""
Console reporting for processed emails and portfolio suggestions.

The reporter writes human-oriented status lines through an injected logger,
so pipeline code never prints directly and tests can capture output with
caplog instead of patching stdout.
"""

import logging
import sys
from typing import Iterable, Optional, TextIO

SEPARATOR = "━" * 80

_RESET = "\033[0m"
PRIORITY_STYLES = {
    "Urgent": "\033[1;31m",
    "Important": "\033[33m",
    "Normal": "\033[32m",
}


def colorize_priority(priority: str, enabled: bool = True) -> str:
    """Wrap a priority label in its ANSI color when color output is enabled."""
    style = PRIORITY_STYLES.get(priority)
    if not enabled or style is None:
        return priority
    return f"{style}{priority}{_RESET}"


class ConsoleReporter:
    """Formats pipeline results for the operator's console."""

    def __init__(self, logger: Optional[logging.Logger] = None,
                 stream: Optional[TextIO] = None):
        self.logger = logger or logging.getLogger("inbox_insights.console")
        stream = stream if stream is not None else sys.stderr
        self.use_color = bool(getattr(stream, "isatty", lambda: False)())

    def email_processed(self, subject: str, priority: str) -> None:
        self.logger.info(SEPARATOR)
        self.logger.info(f"\U0001f4e7 Processed: {subject}")
        self.logger.info(f"Priority: {colorize_priority(priority, self.use_color)}")

    def email_failed(self, subject: str, error: Exception) -> None:
        self.logger.error(f"❌ Error processing email: {subject}: {error}")

    def portfolio_suggestions(self, suggestions: Iterable) -> None:
        """
        Display portfolio suggestions one block per project.

        Args:
            suggestions: PortfolioProjectSuggestion instances in display order
        """
        suggestions = list(suggestions)
        for index, project in enumerate(suggestions, start=1):
            self.logger.info(f"Project {index}: {project.project_title}")
            self.logger.info(f"Description: {project.project_description}")
            self.logger.info(f"Skills: {', '.join(project.relevant_skills)}")
            self.logger.info(f"Difficulty: {project.difficulty_level.value}")
            self.logger.info(f"Estimated Time: {project.estimated_time_to_complete}")
            self.logger.info(f"Why Relevant: {project.why_relevant}")
            if index < len(suggestions):
                self.logger.info(SEPARATOR)
