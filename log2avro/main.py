"""log2avro: read JSON logs, write an Avro container file."""

from __future__ import annotations

import argparse
import logging
import signal
import sys
import threading
from contextlib import ExitStack

from log2avro.config import load_config, load_yaml_config
from log2avro.errors import (
    CancellationError,
    ConfigResolutionError,
    EncodeError,
    Log2AvroError,
    MappingError,
    SchemaParseError,
    SourceDecodeError,
)
from log2avro.pipeline import ConvertConfig, convert
from log2avro.reader import read_json_logs
from log2avro.schema import SIMPLE_LOG_SCHEMA

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_CANCELLED = 130


def build_cli_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="log2avro",
        description="Convert structured JSON logs into an Avro container file.",
    )
    parser.add_argument(
        "--input", default=None,
        help="JSON log file to read (default: stdin)",
    )
    parser.add_argument(
        "--output", default=None,
        help="Avro file to write (default: stdout)",
    )
    parser.add_argument(
        "--config", default=None,
        help="Path to YAML config file (env vars take precedence)",
    )
    parser.add_argument(
        "--schema", default=None,
        help="Path to an Avro schema replacing the embedded one",
    )
    return parser


def _stage(exc: Log2AvroError) -> str:
    if isinstance(exc, SourceDecodeError):
        return "reading input"
    if isinstance(exc, MappingError):
        return "mapping record"
    if isinstance(exc, (SchemaParseError, EncodeError)):
        return "encoding record"
    return "converting"


def _read_schema(path: str | None) -> str:
    if not path:
        return SIMPLE_LOG_SCHEMA
    try:
        with open(path, "r", encoding="utf-8") as f:
            return f.read()
    except OSError as exc:
        raise ConfigResolutionError(f"cannot read schema file {path}: {exc}") from exc


def main(argv: list[str] | None = None) -> int:
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s [log2avro] %(levelname)s %(message)s",
        stream=sys.stderr,
    )
    args = build_cli_parser().parse_args(argv)

    try:
        config = load_config(load_yaml_config(args.config))
        schema = _read_schema(args.schema)
    except ConfigResolutionError as exc:
        logger.error("Configuration error: %s", exc)
        return EXIT_FAILURE

    logging.getLogger().setLevel(config.log_level)
    logger.debug(
        "Config: time_key=%s, level_key=%s, body_key=%s, time_format=%s, codec=%s",
        config.time_key, config.level_key, config.body_key,
        config.time_format, config.codec,
    )

    cancel_event = threading.Event()

    def _signal_handler(sig, _frame):
        logger.info("Shutdown signal received (signal %d), stopping...", sig)
        cancel_event.set()

    previous = {
        sig: signal.signal(sig, _signal_handler)
        for sig in (signal.SIGINT, signal.SIGTERM)
    }

    try:
        with ExitStack() as stack:
            if args.input:
                source = stack.enter_context(open(args.input, "r", encoding="utf-8"))
            else:
                source = sys.stdin
            if args.output:
                sink = stack.enter_context(open(args.output, "wb"))
            else:
                sink = sys.stdout.buffer

            convert(
                read_json_logs(source),
                sink,
                ConvertConfig.from_config(config, schema=schema),
                cancel_event=cancel_event,
            )
    except CancellationError as exc:
        logger.warning("Cancelled: %s", exc)
        return EXIT_CANCELLED
    except Log2AvroError as exc:
        logger.error("Failed while %s: %s", _stage(exc), exc)
        return EXIT_FAILURE
    except OSError as exc:
        logger.error("I/O error: %s", exc)
        return EXIT_FAILURE
    finally:
        for sig, handler in previous.items():
            signal.signal(sig, handler)

    return EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
