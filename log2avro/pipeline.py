"""Pipeline driver: records in, Avro container file out."""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from typing import Any, BinaryIO, Iterable

from log2avro.attributes import collect_attributes, to_schema_value
from log2avro.config import Config
from log2avro.encoder import open_encoder
from log2avro.errors import CancellationError
from log2avro.mapper import Mapper, MapperConfig, to_unix_micros
from log2avro.schema import SIMPLE_LOG_SCHEMA

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ConvertConfig:
    """Everything the driver needs besides the records and the sink."""

    schema: str = SIMPLE_LOG_SCHEMA
    mapper: Mapper = field(default_factory=Mapper)
    codec: str = "null"

    @classmethod
    def from_config(cls, config: Config, schema: str = SIMPLE_LOG_SCHEMA) -> ConvertConfig:
        return cls(
            schema=schema,
            mapper=MapperConfig.from_config(config).to_mapper(),
            codec=config.codec,
        )


@dataclass(frozen=True)
class ConversionResult:
    records_written: int


def build_row(record: dict[str, Any], mapper: Mapper) -> dict[str, Any]:
    """Assemble one output row from *record*.

    The mapper works on a shallow copy, so *record* itself is left intact.

    Raises:
        MappingError: If the time or level field is missing or invalid.
    """
    remaining = dict(record)
    timestamp = mapper.extract_time(remaining)
    level = mapper.extract_level(remaining)
    body = mapper.extract_body(remaining)
    return {
        "time": to_unix_micros(timestamp),
        "level": level,
        "body": to_schema_value(body),
        "attributes": collect_attributes(remaining),
    }


def convert(
    logs: Iterable[dict[str, Any]],
    sink: BinaryIO,
    convert_config: ConvertConfig | None = None,
    cancel_event: threading.Event | None = None,
) -> ConversionResult:
    """Encode every record of *logs* into *sink*, one Avro record each.

    Records are pulled one at a time. The first error from the source, the
    mapper or the encoder stops the run and propagates; records encoded
    before it are still flushed to *sink* when the encoder closes.
    Cancellation is checked once per record, before it is mapped.

    Raises:
        CancellationError: If *cancel_event* is set between records.
        SchemaParseError: If the configured schema is invalid.
        Log2AvroError: Any source, mapping or encoding failure.
    """
    convert_config = convert_config or ConvertConfig()
    mapper = convert_config.mapper

    with open_encoder(convert_config.schema, sink, convert_config.codec) as encoder:
        for record in logs:
            if cancel_event is not None and cancel_event.is_set():
                raise CancellationError(
                    f"conversion cancelled after {encoder.records_written} record(s)"
                )
            encoder.encode(build_row(record, mapper))
            logger.debug("Encoded record %d", encoder.records_written)

    logger.info("Converted %d record(s)", encoder.records_written)
    return ConversionResult(records_written=encoder.records_written)
