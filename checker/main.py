"""
Command-line entrypoint for the Ripley delivery-commitment checker.

Reads configuration from the environment (a local .env is loaded first),
runs the check for TARGET_SKU with whole-workflow retries and prints the
result records as a JSON array on stdout.
"""

from __future__ import annotations

import asyncio
import json
import signal
import sys

from dotenv import load_dotenv

from checker.browser.evasion import build_evasion_profile
from checker.browser.humanize import HumanSimulator
from checker.browser.session import browser_session
from checker.errors import ValidationError
from checker.models import Credentials, ResultRecord
from checker.orchestrator import RunStats, log_run_summary, run_with_retries, run_workflow
from checker.validators import validate_config
from shared.config import AppConfig, get_config
from shared.logging import clear_run_context, configure_logging, get_logger, level_from_name

load_dotenv()

EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_INTERRUPTED = 130

logger = get_logger(__name__)


def load_config() -> AppConfig:
    """Build and validate the startup configuration; exit 1 when it is unusable."""
    try:
        config = get_config()
        validate_config(config)
    except (ValueError, ValidationError) as e:
        logger.error("config_invalid", error=str(e))
        print(f"ERROR: Invalid configuration: {e}", file=sys.stderr)
        sys.exit(EXIT_FAILURE)
    return config


def _install_signal_handlers(task: asyncio.Task) -> None:
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, task.cancel)
        except NotImplementedError:
            # Windows event loops have no signal handler support.
            logger.debug("signal_handler_unavailable", signal=sig.name)


async def main(config: AppConfig) -> list[ResultRecord]:
    """Run the check once (with retries) inside a single browser session."""
    task = asyncio.current_task()
    if task is not None:
        _install_signal_handlers(task)

    stats = RunStats()
    credentials = Credentials(email=config.email, password=config.password)
    profile = build_evasion_profile(config.base_url, jitter_ms=config.evasion_jitter_ms)
    simulator = HumanSimulator(jitter_ms=profile.jitter_ms)

    logger.info(
        "run_started",
        sku=config.target_sku,
        max_retries=config.max_retries,
        retry_delay_ms=config.retry_delay_ms,
        headless=config.headless,
        credentials=credentials.masked,
    )

    async with browser_session(config, profile) as session:

        async def workflow() -> ResultRecord:
            return await run_workflow(
                session.page,
                config.target_sku,
                credentials,
                simulator,
                base_url=config.base_url,
                nav_timeout_ms=config.page_timeout_ms,
                screenshot_dir=config.screenshot_dir,
            )

        records = await run_with_retries(
            workflow,
            config.target_sku,
            config.max_retries,
            config.retry_delay_ms,
            stats=stats,
        )

    clear_run_context()
    for record in records:
        logger.info("result_record", record=record.to_dict())
    log_run_summary(records, stats)
    return records


def run() -> None:
    """Console script entry: exit 0 on a completed run, 1 on crash, 130 on interrupt."""
    config = load_config()
    configure_logging(
        level=level_from_name(config.log_level),
        log_file=config.log_file,
        log_stdout=config.log_stdout,
    )

    try:
        records = asyncio.run(main(config))
    except (asyncio.CancelledError, KeyboardInterrupt):
        logger.warning("run_interrupted")
        print("\nInterrupted.", file=sys.stderr)
        sys.exit(EXIT_INTERRUPTED)
    except Exception as e:
        logger.error("run_crashed", error=str(e), error_type=type(e).__name__, exc_info=True)
        print(f"ERROR: {e}", file=sys.stderr)
        sys.exit(EXIT_FAILURE)

    print(json.dumps([record.to_dict() for record in records], ensure_ascii=False, indent=2))
    sys.exit(EXIT_OK)


if __name__ == "__main__":
    run()
