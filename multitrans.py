"""Console front end for multitrans.

Probes the configured translation providers, then reads lines from stdin and prints the
translation of every available provider for each line.

Commands:
    /target <code>  Change the target language.
    /probe          Probe the providers again.
    /quit           Exit.
"""

from __future__ import annotations

import argparse
import asyncio
import sys
from contextlib import suppress
from pathlib import Path
from typing import TYPE_CHECKING, Final, NoReturn

from config.loader import Config, ConfigLoader, ConfigLoaderError
from core.shared_data import SharedData
from core.trans.interface import TranslateExceptionError
from core.trans.language import SUPPORTED_LANGUAGES, language_name
from core.version import VERSION
from models.event_models import ProbeResolved, ProbingCompleted, ProbingStarted
from utils.file_utils import FileUtils
from utils.logger_utils import LoggerUtils

if TYPE_CHECKING:
    import logging

    from core.trans.aggregator import AggregateView, ResultAggregator
    from core.trans.manager import TransManager
    from models.event_models import TransEvent

CFG_FILE: Final[str] = "multitrans.ini"
PROMPT: Final[str] = "> "

logger: logging.Logger = LoggerUtils.get_logger(__name__)


def check_python_version() -> None:
    """Check if Python version is 3.13 or later.

    Raises:
        RuntimeError: If Python version is below 3.13.
    """
    if sys.version_info < (3, 13):
        msg = "Python 3.13 or later is required"
        raise RuntimeError(msg)


class _ArgumentParser(argparse.ArgumentParser):
    def error(self, message: str) -> NoReturn:
        print(f"\n{message}\n", file=sys.stderr)
        self.print_help(sys.stderr)
        raise SystemExit(2)


def parse_arguments() -> argparse.Namespace:
    """Parse command-line arguments.

    Returns:
        argparse.Namespace: Parsed arguments.
    """
    parser = _ArgumentParser(
        description="Translate text with several providers at once",
        epilog="Example: python multitrans.py --target de",
    )
    parser.add_argument("--config", dest="config", metavar="FILE", default=CFG_FILE, help="Configuration file")
    parser.add_argument(
        "--target",
        dest="target",
        metavar="LANG",
        choices=SUPPORTED_LANGUAGES,
        help="Override target language",
    )
    parser.add_argument("--debug", dest="debug", action="store_true", help="Enable debug logging")
    parser.add_argument("--version", action="version", version=f"%(prog)s {VERSION}")
    return parser.parse_args()


def load_config(args: argparse.Namespace) -> Config:
    """Load configuration file and apply CLI overrides.

    Raises:
        ConfigLoaderError: If configuration file cannot be loaded.
    """
    script_name: str = Path(sys.argv[0]).stem
    return ConfigLoader(
        config_filename=args.config,
        script_name=script_name,
        target=args.target,
        debug=args.debug,
    ).config


def setup_logging(config: Config) -> None:
    log_file: str = config.GENERAL.LOG_FILE
    log_path: str | Path = FileUtils.resolve_path(log_file) if log_file else ""
    logger_utils: LoggerUtils = LoggerUtils(log_path)
    if config.GENERAL.DEBUG:
        logger_utils.set_level("DEBUG")


def print_probe_progress(aggregator: ResultAggregator, event: TransEvent) -> None:
    """Rewrite the probe progress line after each probe event."""
    if not isinstance(event, ProbingStarted | ProbeResolved | ProbingCompleted):
        return
    view: AggregateView = aggregator.snapshot()
    if view.probes_total == 0:
        return
    end: str = "\n" if view.probing_done else ""
    print(f"\rProbing providers: {view.probes_resolved}/{view.probes_total}", end=end, flush=True)


def print_results(view: AggregateView) -> None:
    for provider in view.providers:
        if provider.name not in view.available:
            continue
        print(f"[{provider.name}]")
        print(provider.display.rstrip())
    print("-" * 50)


async def probe(trans_manager: TransManager) -> None:
    names: list[str] = await trans_manager.probe_providers()
    await trans_manager.drain()
    if names:
        print(f"Available providers: {', '.join(names)}")
    else:
        print("No translation providers are available.", file=sys.stderr)


async def run_console(trans_manager: TransManager, target: str) -> None:
    """Read submissions from stdin until EOF or /quit."""
    print(f"Target language: {language_name(target)} ({target})")
    while True:
        line: str = (await asyncio.to_thread(input, PROMPT)).strip()
        if not line:
            continue
        if line == "/quit":
            return
        if line == "/probe":
            await probe(trans_manager)
            continue
        if line.startswith("/target"):
            code: str = line.removeprefix("/target").strip().lower()
            if code not in SUPPORTED_LANGUAGES:
                print(f"Supported languages: {', '.join(SUPPORTED_LANGUAGES)}", file=sys.stderr)
                continue
            target = code
            print(f"Target language: {language_name(target)} ({target})")
            continue

        try:
            await trans_manager.translate(line, target)
        except TranslateExceptionError as err:
            print(f"Error: {err}", file=sys.stderr)
            continue
        await trans_manager.drain()
        print_results(trans_manager.aggregator.snapshot())


async def main() -> None:
    """Main entry point.

    Performs the following steps:
    1. Check Python version
    2. Parse command-line arguments and load configuration
    3. Build the shared services
    4. Probe the providers
    5. Translate console input until exit
    """
    check_python_version()
    args: argparse.Namespace = parse_arguments()
    try:
        config: Config = load_config(args)
    except ConfigLoaderError as err:
        print("\nError: Failed to load configuration file.", file=sys.stderr)
        print(f"Details: {err}", file=sys.stderr)
        return

    setup_logging(config)
    logger.info("multitrans %s started", VERSION)

    shared_data: SharedData = SharedData(config)
    await shared_data.async_init()
    trans_manager: TransManager = shared_data.trans_manager
    aggregator: ResultAggregator = trans_manager.aggregator
    aggregator.subscribe(lambda event: print_probe_progress(aggregator, event))

    await trans_manager.start()
    try:
        await probe(trans_manager)
        await run_console(trans_manager, config.TRANSLATION.TARGET_LANGUAGE)
    except EOFError:
        print()
    finally:
        await trans_manager.shutdown()
        logger.info("multitrans stopped")


def cli() -> None:
    with suppress(KeyboardInterrupt):
        asyncio.run(main())


if __name__ == "__main__":
    cli()
