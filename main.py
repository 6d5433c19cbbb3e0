#!/usr/bin/env python3
"""Fuzzy Search - Main Entry Point

Builds phonetic (Soundex) codes for selected fields of a collection, indexes
them and runs "sounds like" searches against them.

Phases run in this order, each only when requested:
    ping -> back-fill (--build) -> index (--index) -> search (--search)

Progress and timings are logged to stderr; matching documents are written to
stdout as Extended JSON, one per line.

Exit codes:
    0  success
    1  configuration error or fatal store error
    2  back-fill incomplete (some batches were abandoned after retries)
"""

import argparse
import sys
import time
from pathlib import Path
from typing import Callable, TextIO

from bson import json_util

from core.settings import Settings, SettingsError, get_effective_settings
from core.trace import TraceContext
from core.types import FieldPathError, parse_field_paths
from ingestion.soundex import BackfillAbortedError, BackfillPipeline, IndexManager
from libs.document_store import (
    BaseDocumentStore,
    DocumentStoreError,
    DocumentStoreFactory,
    IndexConflictError,
    MongoDocumentStore,
)
from observability.logger import configure_logger, get_logger
from retrieval import SearchExecutor

logger = get_logger(__name__)

VERSION = "Fuzzy Search Demo 1.0"

# Default settings path
SETTINGS_PATH = Path(__file__).parent / "config" / "settings.yaml"

EXIT_OK = 0
EXIT_ERROR = 1
EXIT_INCOMPLETE = 2


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="fuzzy-search",
        description="Build, index and query phonetic (Soundex) values in a collection",
    )
    parser.add_argument("-V", "--version", action="version", version=VERSION)
    parser.add_argument(
        "--settings", type=Path, default=SETTINGS_PATH,
        help="path to settings.yaml (default: %(default)s)",
    )
    parser.add_argument(
        "--uri", metavar="<uri>",
        help="connection string for destination MongoDB",
    )
    parser.add_argument(
        "-d", "--dbName", dest="db_name", metavar="<database name>",
        help="name of destination database, used when the URI names none",
    )
    parser.add_argument(
        "-c", "--collectionName", dest="collection_name", metavar="<collection name>",
        help="name of destination collection",
    )
    parser.add_argument(
        "-b", "--build", dest="fields", action="append", metavar="<field to soundex>",
        help="path of field to build soundex values for; repeat for more fields",
    )
    parser.add_argument(
        "-s", "--search", dest="predicates", action="append", metavar="<search predicate>",
        help="soundex search predicate; repeat for more predicates",
    )
    parser.add_argument(
        "-i", "--index", action="store_true", default=None,
        help="build the soundex index",
    )
    parser.add_argument(
        "--log-level", choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="override observability.log_level",
    )
    return parser


def overrides_from_args(args: argparse.Namespace) -> dict:
    """Settings overrides for the options given on the command line."""
    return {
        "store": {
            "uri": args.uri,
            "database": args.db_name,
            "collection": args.collection_name,
        },
        "soundex": {"fields": args.fields},
        "search": {"predicates": args.predicates},
        "index": {"build": args.index},
        "observability": {"log_level": args.log_level},
    }


def register_providers() -> None:
    if not DocumentStoreFactory.has_provider("mongodb"):
        DocumentStoreFactory.register("mongodb", MongoDocumentStore)


def ping(store: BaseDocumentStore) -> float:
    """Force a connection and return the round-trip time in milliseconds."""
    logger.info("Pinging database...")
    start_time = time.perf_counter()
    store.ping()
    duration_ms = (time.perf_counter() - start_time) * 1000
    logger.info(f"Ping time: {duration_ms:.0f}ms")
    return duration_ms


def run(
    settings: Settings,
    store_factory: Callable[[Settings], BaseDocumentStore] = DocumentStoreFactory.create,
    out: TextIO | None = None,
    sleep: Callable[[float], None] = time.sleep,
) -> int:
    """Run the requested phases against the configured collection.

    Args:
        settings: Effective settings.
        store_factory: Builds the document store from settings.
        out: Stream receiving search results (stdout by default).
        sleep: Wait function used between bulk-write retries.

    Returns:
        Process exit code.
    """
    out = out or sys.stdout

    try:
        parse_field_paths(settings.soundex.fields)
    except FieldPathError as e:
        logger.error(f"Configuration error: {e}")
        return EXIT_ERROR

    try:
        store = store_factory(settings)
    except DocumentStoreError as e:
        logger.error(f"Configuration error: {e}")
        return EXIT_ERROR

    trace = TraceContext()
    exit_code = EXIT_OK

    with store:
        try:
            ping(store)

            if settings.soundex.fields:
                pipeline = BackfillPipeline.from_settings(store, settings, sleep=sleep)
                report = pipeline.run(trace)
                if not report.complete:
                    exit_code = EXIT_INCOMPLETE

            if settings.index.build:
                IndexManager.from_settings(settings).ensure_index(store, trace)

            if settings.search.predicates:
                executor = SearchExecutor.from_settings(store, settings)
                matches = 0
                for document in executor.search(settings.search.predicates, trace):
                    out.write(json_util.dumps(document) + "\n")
                    matches += 1
                logger.info(f"Matching documents: {matches}")

        except BackfillAbortedError:
            # Already logged with traceback by the pipeline
            return EXIT_ERROR
        except IndexConflictError as e:
            logger.error(f"Index error: {e}")
            return EXIT_ERROR
        except DocumentStoreError as e:
            logger.exception(f"Document store error: {e}")
            return EXIT_ERROR

    logger.debug(f"Run finished: {trace}")
    return exit_code


def main(argv: list[str] | None = None) -> int:
    """Main entry point.

    Args:
        argv: Command-line arguments (defaults to sys.argv[1:]).

    Returns:
        Exit code (0 for success, non-zero for error)
    """
    args = build_parser().parse_args(argv)

    try:
        settings = get_effective_settings(args.settings, overrides_from_args(args))
    except SettingsError as e:
        logger.error(f"Configuration error: {e}")
        return EXIT_ERROR

    configure_logger(
        level=settings.observability.log_level,
        log_file=settings.observability.log_file,
    )
    register_providers()

    return run(settings)


def cli() -> None:
    sys.exit(main())


if __name__ == "__main__":
    cli()
