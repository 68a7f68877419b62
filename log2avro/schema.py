"""Embedded Avro schema for converted log records."""

from __future__ import annotations

# Downstream readers depend on this text; keep it byte-identical.
SIMPLE_LOG_SCHEMA = """{
  "type": "record",
  "name": "SimpleLog",
  "namespace": "log2avro",
  "fields": [
    {"name": "time", "type": {"type": "long", "logicalType": "timestamp-micros"}},
    {"name": "level", "type": "string"},
    {"name": "body", "type": [
      "null", "boolean", "long", "double", "string",
      {"type": "array", "items": ["null", "boolean", "long", "double", "string"]},
      {"type": "map", "values": ["null", "boolean", "long", "double", "string"]}
    ]},
    {"name": "attributes", "type": {"type": "array", "items": {
      "type": "record",
      "name": "Attribute",
      "fields": [
        {"name": "key", "type": "string"},
        {"name": "val", "type": [
          "null", "boolean", "long", "double", "string",
          {"type": "array", "items": ["null", "boolean", "long", "double", "string"]},
          {"type": "map", "values": ["null", "boolean", "long", "double", "string"]}
        ]}
      ]
    }}}
  ]
}
"""
