import asyncio
import logging
import sys
from typing import List, Optional

from dotenv import load_dotenv

from inbox_insights.config import ANALYZER_CONFIG, AppSettings, load_settings
from inbox_insights.email_processing import EmailMessage, EmailProcessor, build_email_stage_registry
from inbox_insights.errors import AdapterError, ConfigurationError
from inbox_insights.integrations.gmail import GmailAuthenticationManager, GmailClient
from inbox_insights.integrations.groq import EnhancedGroqClient
from inbox_insights.integrations.openai_chat import OpenAIChatClient
from inbox_insights.market_analysis import UpworkPipeline, build_market_stage_registry
from inbox_insights.storage import ResultStore
from inbox_insights.utils import ConsoleReporter, configure_logging

logger = logging.getLogger(__name__)

# Number of most recent messages fetched per run
MAX_MESSAGES = ANALYZER_CONFIG["mailbox"]["fetch_limit"]


async def process_email_batch(
    settings: AppSettings,
    messages: List[EmailMessage],
    store: ResultStore,
    reporter: ConsoleReporter
) -> int:
    """Run the triage pipeline over the fetched messages. Returns the count processed."""
    groq_client = EnhancedGroqClient(api_key=settings.GROQ_API_KEY.get_secret_value())
    processor = EmailProcessor(
        stages=build_email_stage_registry(
            groq_client,
            settings.EMAIL_MODEL,
            debug_sink=store.save_debug_text
        ),
        result_store=store,
        reporter=reporter
    )

    store.load_results()
    results = await processor.process_batch(messages)

    logger.info(f"Processed {len(results)} emails")
    logger.debug(f"Groq metrics: {groq_client.get_performance_metrics()}")
    return len(results)


async def run_upwork_pipeline(
    settings: AppSettings,
    messages: List[EmailMessage],
    store: ResultStore,
    reporter: ConsoleReporter
) -> int:
    """Generate portfolio suggestions from the Upwork notifications in the batch."""
    openai_client = OpenAIChatClient(api_key=settings.OPENAI_API_KEY.get_secret_value())
    pipeline = UpworkPipeline(
        stages=build_market_stage_registry(openai_client, settings.MARKET_MODEL, store=store),
        store=store,
        reporter=reporter,
        window_start=settings.UPWORK_WINDOW_START,
        window_end=settings.UPWORK_WINDOW_END
    )

    logger.info("Starting Upwork market analysis")
    suggestions = await pipeline.generate_portfolio_projects(messages)
    logger.info(f"Generated {len(suggestions)} portfolio projects")
    return len(suggestions)


async def main(env_file: Optional[str] = ".env") -> int:
    """
    Fetch recent mail and run the enabled pipelines once.

    Returns:
        Process exit status: 1 for invalid configuration, otherwise 0, even
        when individual emails or the mailbox fetch failed
    """
    load_dotenv(env_file, override=True)

    try:
        settings = load_settings(env_file)
    except ConfigurationError as e:
        configure_logging()
        logger.error(f"Configuration error: {str(e)}")
        return 1

    configure_logging(settings.log_level_value, settings.LOG_FILE or None)
    store = ResultStore(settings.OUTPUT_DIR)
    reporter = ConsoleReporter()

    try:
        gmail_client = GmailClient(GmailAuthenticationManager(
            token_path=settings.GMAIL_TOKEN_PATH,
            credentials_path=settings.GMAIL_CREDENTIALS_PATH
        ))
        await gmail_client.initialize()

        messages = await gmail_client.fetch_recent_messages(MAX_MESSAGES)
        logger.info(f"Fetched {len(messages)} emails")
    except AdapterError as e:
        logger.error(f"Mailbox error, ending run: {str(e)}")
        return 0
    except Exception as e:
        logger.error(f"Error fetching emails: {str(e)}", exc_info=True)
        return 0

    # A failing pipeline does not skip the other
    if settings.RUN_EMAIL_PIPELINE:
        try:
            await process_email_batch(settings, messages, store, reporter)
        except Exception as e:
            logger.error(f"Error in email pipeline: {str(e)}", exc_info=True)
    if settings.RUN_UPWORK_PIPELINE:
        try:
            await run_upwork_pipeline(settings, messages, store, reporter)
        except Exception as e:
            logger.error(f"Error in Upwork pipeline: {str(e)}", exc_info=True)

    logger.info("Processing complete")
    return 0


def run():
    sys.exit(asyncio.run(main()))


if __name__ == "__main__":
    run()
