"""Generator-based JSON record source."""

from __future__ import annotations

import json
import re
from typing import Any, Generator, TextIO

from log2avro.errors import SourceDecodeError

StructuredLog = dict[str, Any]
Logs = Generator[StructuredLog, None, None]

_decoder = json.JSONDecoder()
_WHITESPACE = re.compile(r"[ \t\n\r]*")


def read_json_logs(stream: TextIO) -> Logs:
    """Yield one dict per JSON object read from *stream*.

    Objects are separated by any JSON whitespace; several may share a line
    and one may span many lines. Text is buffered only until the object it
    holds is complete. End of input ends the generator.

    Raises:
        SourceDecodeError: On undecodable text, invalid JSON, an object cut
            off by end of input, or a value that is not an object. The
            reported line is where the offending value starts. The
            generator is finished afterwards.
    """
    lines = iter(stream)
    lineno = 0
    buffer = ""
    buffer_line = 1
    at_eof = False

    while not at_eof:
        try:
            line = next(lines)
        except StopIteration:
            at_eof = True
        except UnicodeDecodeError as exc:
            raise SourceDecodeError(str(exc), line=lineno + 1) from exc
        else:
            lineno += 1
            if not buffer:
                buffer_line = lineno
            buffer += line

        pos = 0
        while True:
            pos = _WHITESPACE.match(buffer, pos).end()
            if pos == len(buffer):
                buffer = ""
                break
            start_line = buffer_line + buffer.count("\n", 0, pos)
            try:
                value, pos = _decoder.raw_decode(buffer, pos)
            except json.JSONDecodeError as exc:
                # Failing past the last non-blank character means the value
                # is merely incomplete; anything earlier is a syntax error.
                if at_eof or exc.pos < len(buffer.rstrip()):
                    raise SourceDecodeError(exc.msg, line=start_line) from exc
                buffer = buffer[pos:]
                buffer_line = start_line
                break
            if not isinstance(value, dict):
                raise SourceDecodeError(
                    f"expected a JSON object, got {type(value).__name__}",
                    line=start_line,
                )
            yield value
