"""
Upwork aggregate pipeline.

Turns the fetched mailbox into portfolio project ideas in four steps:
vendor filter, optional date window, one skill-demand call over the whole
batch and one generation call over the resulting analysis.
"""

import logging
from datetime import datetime
from typing import List, Optional, Sequence

from inbox_insights.email_processing.base import StageName, StageRegistry
from inbox_insights.email_processing.models import EmailMessage
from inbox_insights.market_analysis.analyzers import PortfolioRequest, SkillDemandRequest
from inbox_insights.market_analysis.filters import (
    filter_by_date_range,
    filter_vendor_emails,
    format_for_analysis,
)
from inbox_insights.market_analysis.models import PortfolioProjectSuggestion, SkillDemandAnalysis
from inbox_insights.storage.results import ResultStore
from inbox_insights.utils.console import ConsoleReporter

logger = logging.getLogger(__name__)


class UpworkPipeline:
    """
    Skill-demand analysis and portfolio generation over vendor emails.

    Attributes:
        stages: Registry with SKILL_DEMAND and PORTFOLIO bound
        store: Receives both JSON artifacts
        window_start: Inclusive window start, or None to skip narrowing
        window_end: Inclusive window end
    """

    def __init__(
        self,
        stages: StageRegistry,
        store: ResultStore,
        reporter: Optional[ConsoleReporter] = None,
        window_start: Optional[datetime] = None,
        window_end: Optional[datetime] = None,
        vendor_domains: Optional[Sequence[str]] = None,
        logger: Optional[logging.Logger] = None
    ):
        self.stages = stages
        self.store = store
        self.reporter = reporter
        self.window_start = window_start
        self.window_end = window_end
        self.vendor_domains = vendor_domains
        self.logger = logger or logging.getLogger(__name__)

    def select_emails(self, messages: Sequence[EmailMessage]) -> List[EmailMessage]:
        """
        Apply the vendor filter and, if configured, the date window.

        An empty window result falls back to the full vendor set.
        """
        vendor_emails = filter_vendor_emails(messages, self.vendor_domains)
        if not vendor_emails or self.window_start is None or self.window_end is None:
            return vendor_emails

        windowed = filter_by_date_range(vendor_emails, self.window_start, self.window_end)
        if not windowed:
            self.logger.warning("No vendor emails in the configured date window, using all vendor emails")
            return vendor_emails
        return windowed

    async def analyze_skill_demand(self, messages: Sequence[EmailMessage]) -> SkillDemandAnalysis:
        self.logger.info(f"Analyzing skill demand across {len(messages)} emails")
        return await self.stages.get(StageName.SKILL_DEMAND).run(
            SkillDemandRequest(emails=format_for_analysis(messages))
        )

    async def generate_projects(self, analysis: SkillDemandAnalysis) -> List[PortfolioProjectSuggestion]:
        return await self.stages.get(StageName.PORTFOLIO).run(PortfolioRequest(analysis=analysis))

    async def generate_portfolio_projects(
        self,
        messages: Sequence[EmailMessage]
    ) -> List[PortfolioProjectSuggestion]:
        """
        Run the whole pipeline over a fetched batch.

        Args:
            messages: All fetched messages, vendor or not

        Returns:
            Generated suggestions; empty when there are no vendor emails
            (no model calls are made) or generation failed
        """
        selected = self.select_emails(messages)
        if not selected:
            self.logger.info("No Upwork emails found, skipping market analysis")
            return []

        analysis = await self.analyze_skill_demand(selected)
        if analysis.is_empty():
            self.logger.warning("Skill demand analysis is empty, generating projects from an empty analysis")
        self.store.save_skill_demand(analysis)

        suggestions = await self.generate_projects(analysis)
        self.store.save_portfolio_suggestions(suggestions)
        self.logger.info(f"Generated {len(suggestions)} portfolio project suggestions")

        if self.reporter is not None:
            self.reporter.portfolio_suggestions(suggestions)
        return suggestions
