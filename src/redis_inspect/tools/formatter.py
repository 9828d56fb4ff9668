"""Display formatting for stored values, including binary-safe escaping."""

import json
import re
from typing import Dict, Tuple

from ..models import ContentFormat, PayloadError

_NAMED_ESCAPES = {
    "\a": "\\a",
    "\b": "\\b",
    "\f": "\\f",
    "\n": "\\n",
    "\r": "\\r",
    "\t": "\\t",
    "\v": "\\v",
    "\\": "\\\\",
    '"': '\\"',
}

_SIMPLE_UNESCAPES = {
    "a": b"\a",
    "b": b"\b",
    "f": b"\f",
    "n": b"\n",
    "r": b"\r",
    "t": b"\t",
    "v": b"\v",
    "\\": b"\\",
    '"': b'"',
    "'": b"'",
    "/": b"/",
}

_HEX_ESCAPE = re.compile(r"\\x([0-9a-f]{2})")

# Lone surrogates U+DC80..U+DCFF stand for undecodable bytes (surrogateescape)
_ESCAPED_BYTE_LOW = 0xDC80
_ESCAPED_BYTE_HIGH = 0xDCFF


def is_printable(text: str) -> bool:
    """Return True if every character renders as visible text or a plain space."""
    return all(ch.isprintable() for ch in text)


def quote(text: str) -> str:
    """Quote text as a double-quoted literal with backslash escapes.

    Printable characters are kept as they are. Control characters below
    U+0080 and undecodable bytes become ``\\xHH``, other non-printable
    characters ``\\uHHHH`` or ``\\UHHHHHHHH``.
    """
    out = ['"']
    for ch in text:
        if ch in _NAMED_ESCAPES:
            out.append(_NAMED_ESCAPES[ch])
            continue
        if ch.isprintable():
            out.append(ch)
            continue

        code = ord(ch)
        if _ESCAPED_BYTE_LOW <= code <= _ESCAPED_BYTE_HIGH:
            out.append(f"\\x{code - 0xDC00:02x}")
        elif code < 0x80:
            out.append(f"\\x{code:02x}")
        elif code < 0x10000:
            out.append(f"\\u{code:04x}")
        else:
            out.append(f"\\U{code:08x}")
    out.append('"')
    return "".join(out)


def unquote(quoted: str) -> bytes:
    """Turn a double-quoted literal back into the bytes it denotes.

    Accepts everything :func:`quote` produces, plus the JSON escapes
    ``\\/`` and surrogate pairs written as two ``\\u`` escapes.

    Raises:
        PayloadError: If the literal is malformed
    """
    if len(quoted) < 2 or quoted[0] != '"' or quoted[-1] != '"':
        raise PayloadError("invalid syntax: value is not a quoted string")

    body = quoted[1:-1]
    out = bytearray()
    i = 0
    while i < len(body):
        ch = body[i]
        if ch == '"' or ch == "\n":
            raise PayloadError("invalid syntax: unescaped character in quoted string")
        if ch != "\\":
            out += ch.encode("utf-8", errors="surrogateescape")
            i += 1
            continue

        if i + 1 >= len(body):
            raise PayloadError("invalid syntax: dangling escape")
        esc = body[i + 1]
        i += 2

        if esc in _SIMPLE_UNESCAPES:
            out += _SIMPLE_UNESCAPES[esc]
        elif esc == "x":
            out.append(_parse_hex(body[i:i + 2], 2))
            i += 2
        elif esc in ("u", "U"):
            width = 4 if esc == "u" else 8
            code = _parse_hex(body[i:i + width], width)
            i += width
            if 0xD800 <= code < 0xDC00 and body[i:i + 2] == "\\u":
                low = _parse_hex(body[i + 2:i + 6], 4)
                if 0xDC00 <= low < 0xE000:
                    code = 0x10000 + ((code - 0xD800) << 10) + (low - 0xDC00)
                    i += 6
            if _ESCAPED_BYTE_LOW <= code <= _ESCAPED_BYTE_HIGH:
                out.append(code - 0xDC00)
                continue
            if 0xD800 <= code < 0xE000 or code > 0x10FFFF:
                raise PayloadError(f"invalid syntax: bad code point U+{code:04X}")
            out += chr(code).encode("utf-8")
        elif esc in "01234567":
            digits = body[i - 1:i + 2]
            if len(digits) != 3 or any(d not in "01234567" for d in digits):
                raise PayloadError("invalid syntax: bad octal escape")
            value = int(digits, 8)
            if value > 0xFF:
                raise PayloadError("invalid syntax: octal escape out of range")
            out.append(value)
            i += 2
        else:
            raise PayloadError(f"invalid syntax: unknown escape \\{esc}")

    return bytes(out)


def _parse_hex(digits: str, width: int) -> int:
    if len(digits) != width:
        raise PayloadError("invalid syntax: truncated escape")
    if any(d not in "0123456789abcdefABCDEF" for d in digits):
        raise PayloadError(f"invalid syntax: bad hex digits {digits!r}")
    return int(digits, 16)


def _reject_constant(name: str):
    raise ValueError(f"{name} is not valid JSON")


def is_json(text: str) -> bool:
    """Return True for a JSON object or array document."""
    if not text or text[0] not in "{[":
        return False
    try:
        json.loads(text, parse_constant=_reject_constant)
    except (ValueError, RecursionError):
        return False
    return True


def json_pretty_print(text: str) -> str:
    """Re-indent a JSON document with tabs.

    Only whitespace between tokens changes. Numbers, string escapes and
    repeated keys are copied through as written. Text that is not a JSON
    object or array comes back unchanged.
    """
    if not is_json(text):
        return text

    out = []
    depth = 0
    opened = False
    pos = 0
    while pos < len(text):
        ch = text[pos]
        if ch in " \t\r\n":
            pos += 1
            continue
        if opened and ch not in "]}":
            opened = False
            depth += 1
            out.append("\n" + "\t" * depth)

        if ch == '"':
            end = pos + 1
            while text[end] != '"':
                end += 2 if text[end] == "\\" else 1
            out.append(text[pos:end + 1])
            pos = end + 1
            continue

        if ch in "{[":
            opened = True
            out.append(ch)
        elif ch in "}]":
            if opened:
                opened = False
            else:
                depth -= 1
                out.append("\n" + "\t" * depth)
            out.append(ch)
        elif ch == ",":
            out.append(",\n" + "\t" * depth)
        elif ch == ":":
            out.append(": ")
        else:
            out.append(ch)
        pos += 1
    return "".join(out)


def parse_string_format(text: str) -> Tuple[str, ContentFormat]:
    """Pick a display format for a string value and render it.

    The first rule that applies wins:

    1. empty text is returned as is, format ``UNKNOWN``;
    2. a JSON object or array is pretty-printed, format ``JSON``;
    3. fully printable text is returned as is, format ``NORMAL``;
    4. anything else is quote-escaped without the outer quotes, and each
       ``\\xHH`` escape is shortened to ``HH `` for readability, format
       ``UNKNOWN``.
    """
    if text == "":
        return text, ContentFormat.UNKNOWN

    if is_json(text):
        return json_pretty_print(text), ContentFormat.JSON

    if is_printable(text):
        return text, ContentFormat.NORMAL

    quoted = _HEX_ESCAPE.sub(r"\1 ", quote(text))
    return quoted[1:-1], ContentFormat.UNKNOWN


def convert_string(text: str) -> str:
    """Escape a hash field or value for display.

    Unlike :func:`parse_string_format`, ``\\xHH`` escapes are left intact.
    """
    if text == "" or is_printable(text):
        return text
    return quote(text)[1:-1]


def parse_hash_content(mapping: Dict[str, str]) -> Dict[str, str]:
    """Apply :func:`convert_string` to every field and value of a hash."""
    return {convert_string(field): convert_string(value) for field, value in mapping.items()}
