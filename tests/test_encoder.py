"""Tests for log2avro.encoder."""

from __future__ import annotations

import io

import fastavro
import pytest

from log2avro.encoder import AvroEncoder, load_schema, open_encoder
from log2avro.errors import EncodeError, SchemaParseError
from log2avro.schema import SIMPLE_LOG_SCHEMA


class _FailingFlushSink(io.BytesIO):
    """In-memory sink whose flush can be made to fail."""

    fail_flush = False

    def flush(self) -> None:
        if self.fail_flush:
            raise OSError("disk full")
        super().flush()


def _row(**overrides) -> dict:
    row = {
        "time": 1_704_164_645_000_000,
        "level": "INFO",
        "body": "hello",
        "attributes": [{"key": "user", "val": "alice"}],
    }
    row.update(overrides)
    return row


# ---------------------------------------------------------------------------
# Schema loading
# ---------------------------------------------------------------------------


class TestLoadSchema:
    def test_embedded_schema_is_valid(self) -> None:
        schema = load_schema(SIMPLE_LOG_SCHEMA)
        assert schema["name"] == "SimpleLog"
        assert [f["name"] for f in schema["fields"]] == [
            "time", "level", "body", "attributes",
        ]

    def test_not_json(self) -> None:
        with pytest.raises(SchemaParseError):
            load_schema("{not json")

    def test_unknown_type(self) -> None:
        with pytest.raises(SchemaParseError):
            load_schema('{"type": "no-such-type"}')

    def test_encoder_rejects_bad_schema(self) -> None:
        sink = io.BytesIO()
        with pytest.raises(SchemaParseError):
            AvroEncoder('{"type": "no-such-type"}', sink)
        assert sink.getvalue() == b""


# ---------------------------------------------------------------------------
# Encoding
# ---------------------------------------------------------------------------


class TestAvroEncoder:
    def test_empty_container_is_valid(self, decode_avro) -> None:
        sink = io.BytesIO()
        with open_encoder(SIMPLE_LOG_SCHEMA, sink):
            pass
        assert sink.getvalue().startswith(b"Obj\x01")
        assert decode_avro(sink.getvalue()) == []

    def test_single_row(self, decode_avro) -> None:
        sink = io.BytesIO()
        with open_encoder(SIMPLE_LOG_SCHEMA, sink) as encoder:
            encoder.encode(_row())
        assert encoder.records_written == 1
        assert decode_avro(sink.getvalue()) == [_row()]

    def test_body_union_branches(self, decode_avro) -> None:
        bodies = [None, True, 42, 1.5, "text", [1, "a", None], {"k": "v", "n": 2}]
        sink = io.BytesIO()
        with open_encoder(SIMPLE_LOG_SCHEMA, sink) as encoder:
            for body in bodies:
                encoder.encode(_row(body=body))
        assert [r["body"] for r in decode_avro(sink.getvalue())] == bodies

    def test_bool_stays_bool(self, decode_avro) -> None:
        sink = io.BytesIO()
        with open_encoder(SIMPLE_LOG_SCHEMA, sink) as encoder:
            encoder.encode(_row(body=False))
        assert decode_avro(sink.getvalue())[0]["body"] is False

    def test_deflate_codec(self, decode_avro) -> None:
        sink = io.BytesIO()
        with open_encoder(SIMPLE_LOG_SCHEMA, sink, codec="deflate") as encoder:
            encoder.encode(_row())
        reader = fastavro.reader(io.BytesIO(sink.getvalue()))
        assert reader.metadata["avro.codec"] == "deflate"
        assert decode_avro(sink.getvalue()) == [_row()]

    def test_unsupported_codec(self) -> None:
        with pytest.raises(ValueError):
            AvroEncoder(SIMPLE_LOG_SCHEMA, io.BytesIO(), codec="lz4")

    @pytest.mark.parametrize(
        "body",
        [
            {"outer": {"inner": 1}},   # map nested in map
            [[1, 2]],                  # array nested in array
            object(),
        ],
    )
    def test_unrepresentable_body(self, body) -> None:
        with open_encoder(SIMPLE_LOG_SCHEMA, io.BytesIO()) as encoder:
            with pytest.raises(EncodeError):
                encoder.encode(_row(body=body))
            assert encoder.records_written == 0

    def test_missing_level(self) -> None:
        row = _row()
        del row["level"]
        with open_encoder(SIMPLE_LOG_SCHEMA, io.BytesIO()) as encoder:
            with pytest.raises(EncodeError):
                encoder.encode(row)

    def test_failed_row_leaves_no_partial_data(self, decode_avro) -> None:
        sink = io.BytesIO()
        with pytest.raises(EncodeError):
            with open_encoder(SIMPLE_LOG_SCHEMA, sink) as encoder:
                encoder.encode(_row(level="first"))
                encoder.encode(_row(body={"bad": {"nested": True}}))
        records = decode_avro(sink.getvalue())
        assert [r["level"] for r in records] == ["first"]

    def test_encode_after_close(self) -> None:
        encoder = AvroEncoder(SIMPLE_LOG_SCHEMA, io.BytesIO())
        encoder.close()
        assert encoder.closed
        with pytest.raises(EncodeError):
            encoder.encode(_row())

    def test_close_is_idempotent(self, decode_avro) -> None:
        sink = io.BytesIO()
        encoder = AvroEncoder(SIMPLE_LOG_SCHEMA, sink)
        encoder.encode(_row())
        encoder.close()
        encoder.close()
        assert len(decode_avro(sink.getvalue())) == 1

    def test_sink_left_open(self) -> None:
        sink = io.BytesIO()
        with open_encoder(SIMPLE_LOG_SCHEMA, sink):
            pass
        assert not sink.closed


class TestFlushFailures:
    def test_flush_failure_surfaces_on_clean_exit(self) -> None:
        sink = _FailingFlushSink()
        with pytest.raises(OSError, match="disk full"):
            with open_encoder(SIMPLE_LOG_SCHEMA, sink) as encoder:
                encoder.encode(_row())
                sink.fail_flush = True

    def test_original_error_kept_when_flush_fails(self, caplog) -> None:
        sink = _FailingFlushSink()
        with pytest.raises(EncodeError):
            with open_encoder(SIMPLE_LOG_SCHEMA, sink) as encoder:
                encoder.encode(_row())
                sink.fail_flush = True
                encoder.encode(_row(body=object()))
        assert "Failed to flush" in caplog.text

    def test_failed_close_can_be_retried(self, decode_avro) -> None:
        sink = _FailingFlushSink()
        encoder = AvroEncoder(SIMPLE_LOG_SCHEMA, sink)
        encoder.encode(_row())
        sink.fail_flush = True
        with pytest.raises(OSError):
            encoder.close()
        assert not encoder.closed

        sink.fail_flush = False
        encoder.close()
        assert encoder.closed
        assert len(decode_avro(sink.getvalue())) == 1
