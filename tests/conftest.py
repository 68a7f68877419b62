"""Shared pytest fixtures for the log2avro test suite."""

from __future__ import annotations

import io
from typing import Callable

import fastavro
import pytest

from log2avro.config import ENV_VARS
from log2avro.mapper import Mapper, to_unix_micros


@pytest.fixture()
def mapper() -> Mapper:
    """Return a mapper using the default key names."""
    return Mapper()


@pytest.fixture()
def sample_record() -> dict:
    return {
        "time": "2024-01-02T03:04:05Z",
        "level": "INFO",
        "body": "hello",
        "user": "alice",
    }


@pytest.fixture()
def clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Remove every log2avro environment variable for the test."""
    for var in ENV_VARS.values():
        monkeypatch.delenv(var, raising=False)


@pytest.fixture()
def decode_avro() -> Callable[[bytes], list[dict]]:
    """Return a helper decoding container bytes into plain record dicts.

    ``time`` comes back from fastavro as a datetime; the helper turns it
    back into microseconds since the epoch.
    """

    def _decode(data: bytes) -> list[dict]:
        records = list(fastavro.reader(io.BytesIO(data)))
        for record in records:
            record["time"] = to_unix_micros(record["time"])
        return records

    return _decode
