"""Convert structured JSON logs into Avro Object Container Files."""

__version__ = "0.1.0"
