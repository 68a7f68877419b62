"""Avro Object Container File encoder built on fastavro."""

from __future__ import annotations

import json
import logging
from contextlib import contextmanager
from typing import Any, BinaryIO, Iterator

from fastavro import parse_schema
from fastavro.schema import SchemaParseException, UnknownType
from fastavro.validation import ValidationError
from fastavro.write import Writer

from log2avro.config import CODECS
from log2avro.errors import EncodeError, SchemaParseError

logger = logging.getLogger(__name__)


def load_schema(schema_text: str) -> dict:
    """Parse Avro schema JSON text and check it is a valid schema.

    Returns:
        The schema as a plain dict, suitable for :class:`fastavro.write.Writer`.

    Raises:
        SchemaParseError: If the text is not JSON or not a valid Avro schema.
    """
    try:
        schema = json.loads(schema_text)
        parse_schema(schema)
    except (ValueError, TypeError, KeyError, SchemaParseException, UnknownType) as exc:
        raise SchemaParseError(f"invalid schema: {exc}") from exc
    return schema


class AvroEncoder:
    """Writes rows to *sink* as one Avro container file.

    The header is written when the encoder is created. Rows are validated
    against the schema before being buffered, so a row that fails leaves
    nothing behind in the pending block. The sink is flushed but never
    closed: whoever opened it owns it.
    """

    def __init__(self, schema_text: str, sink: BinaryIO, codec: str = "null"):
        if codec not in CODECS:
            raise ValueError(f"Unsupported codec: {codec}")
        schema = load_schema(schema_text)
        self._writer = Writer(sink, schema, codec=codec, validator=True)
        self._closed = False
        self.records_written = 0
        logger.debug("Opened Avro encoder (codec=%s)", codec)

    @property
    def closed(self) -> bool:
        return self._closed

    def encode(self, row: dict[str, Any]) -> None:
        if self._closed:
            raise EncodeError("encoder is closed")
        try:
            self._writer.write(row)
        except (ValidationError, TypeError, ValueError, OverflowError) as exc:
            raise EncodeError(f"cannot encode record: {exc}") from exc
        self.records_written += 1

    def flush(self) -> None:
        """Write the pending block (if any) and flush the sink."""
        self._writer.flush()

    def close(self) -> None:
        if self._closed:
            return
        self.flush()
        self._closed = True
        logger.debug("Closed Avro encoder after %d record(s)", self.records_written)


@contextmanager
def open_encoder(
    schema_text: str, sink: BinaryIO, codec: str = "null"
) -> Iterator[AvroEncoder]:
    """Open an :class:`AvroEncoder` that is closed on every exit path.

    When the body raises, a failure to flush on the way out is logged and
    the original exception keeps propagating.
    """
    encoder = AvroEncoder(schema_text, sink, codec)
    try:
        yield encoder
    except BaseException:
        try:
            encoder.close()
        except (OSError, ValueError):
            logger.exception("Failed to flush Avro output while handling an earlier error")
        raise
    encoder.close()
