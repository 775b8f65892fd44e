"""
Codec for the ledger's self-describing binary value format.

Decoding produces the same JSON-like tree the ledger's own read API uses:
every node is ``{"type": <signature>, "value": ...}``, integers are decimal
strings and responses additionally carry ``success``. Encoding builds the
hex arguments accepted by read-only contract calls.

Malformed input never raises out of the public decode helpers: the event
log is an uncontrolled input stream, so a bad record degrades to ``None``
or an empty mapping instead of aborting the caller.
"""

from __future__ import annotations

import hashlib
from typing import Any

# Type prefixes of the wire format
TYPE_INT = 0x00
TYPE_UINT = 0x01
TYPE_BUFFER = 0x02
TYPE_TRUE = 0x03
TYPE_FALSE = 0x04
TYPE_PRINCIPAL_STANDARD = 0x05
TYPE_PRINCIPAL_CONTRACT = 0x06
TYPE_RESPONSE_OK = 0x07
TYPE_RESPONSE_ERR = 0x08
TYPE_OPTIONAL_NONE = 0x09
TYPE_OPTIONAL_SOME = 0x0A
TYPE_LIST = 0x0B
TYPE_TUPLE = 0x0C
TYPE_STRING_ASCII = 0x0D
TYPE_STRING_UTF8 = 0x0E

C32_ALPHABET = "0123456789ABCDEFGHJKMNPQRSTVWXYZ"
_C32_NORMALIZE = str.maketrans({"O": "0", "L": "1", "I": "1"})

_INT128_MIN = -(2**127)
_INT128_MAX = 2**127 - 1
_UINT128_MAX = 2**128 - 1
_MAX_DEPTH = 64


class ClarityDecodeError(ValueError):
    """Raised internally when an encoded value is malformed."""


# ---------------------------------------------------------------------------
# c32check addresses
# ---------------------------------------------------------------------------
def _checksum(data: bytes) -> bytes:
    return hashlib.sha256(hashlib.sha256(data).digest()).digest()[:4]


def c32_encode(data: bytes) -> str:
    """Encode bytes as c32, keeping one leading '0' per leading zero byte."""
    number = int.from_bytes(data, "big")
    digits: list[str] = []
    while number:
        number, remainder = divmod(number, 32)
        digits.append(C32_ALPHABET[remainder])
    leading_zeros = len(data) - len(data.lstrip(b"\x00"))
    return "0" * leading_zeros + "".join(reversed(digits))


def c32_decode(text: str) -> bytes:
    """Decode a c32 string back into bytes."""
    normalized = text.upper().translate(_C32_NORMALIZE)
    stripped = normalized.lstrip("0")
    leading_zeros = len(normalized) - len(stripped)
    number = 0
    for char in stripped:
        index = C32_ALPHABET.find(char)
        if index < 0:
            msg = f"Invalid c32 character: {char!r}"
            raise ValueError(msg)
        number = number * 32 + index
    body = number.to_bytes((number.bit_length() + 7) // 8, "big") if number else b""
    return b"\x00" * leading_zeros + body


def c32_address(version: int, hash160: bytes) -> str:
    """Render a (version, hash160) pair as an ``S``-prefixed address."""
    if not 0 <= version < 32:
        msg = f"Invalid address version: {version}"
        raise ValueError(msg)
    payload = hash160 + _checksum(bytes([version]) + hash160)
    return "S" + C32_ALPHABET[version] + c32_encode(payload)


def c32_address_decode(address: str) -> tuple[int, bytes]:
    """Parse an address into its version and 20-byte hash160."""
    if len(address) < 5 or address[0] != "S":
        msg = f"Invalid address: {address!r}"
        raise ValueError(msg)
    version = C32_ALPHABET.find(address[1].upper())
    if version < 0:
        msg = f"Invalid address version character: {address[1]!r}"
        raise ValueError(msg)
    decoded = c32_decode(address[2:])
    if len(decoded) < 4:
        msg = f"Invalid address: {address!r}"
        raise ValueError(msg)
    hash160, checksum = decoded[:-4], decoded[-4:]
    if len(hash160) != 20:
        msg = f"Invalid address length: {address!r}"
        raise ValueError(msg)
    if _checksum(bytes([version]) + hash160) != checksum:
        msg = f"Address checksum mismatch: {address!r}"
        raise ValueError(msg)
    return version, hash160


# ---------------------------------------------------------------------------
# Decoding
# ---------------------------------------------------------------------------
class _Reader:
    """Cursor over an encoded byte string."""

    def __init__(self, data: bytes) -> None:
        self._data = data
        self._pos = 0

    def take(self, size: int) -> bytes:
        end = self._pos + size
        if size < 0 or end > len(self._data):
            raise ClarityDecodeError("Unexpected end of input")
        chunk = self._data[self._pos : end]
        self._pos = end
        return chunk

    def byte(self) -> int:
        return self.take(1)[0]

    def u32(self) -> int:
        return int.from_bytes(self.take(4), "big")

    @property
    def exhausted(self) -> bool:
        return self._pos == len(self._data)


def _read_principal(reader: _Reader) -> str:
    version = reader.byte()
    hash160 = reader.take(20)
    try:
        return c32_address(version, hash160)
    except ValueError as exc:
        raise ClarityDecodeError(str(exc)) from exc


def _read_value(reader: _Reader, depth: int) -> dict[str, Any]:
    if depth > _MAX_DEPTH:
        raise ClarityDecodeError("Value nested too deeply")

    prefix = reader.byte()

    if prefix == TYPE_INT:
        return {"type": "int", "value": str(int.from_bytes(reader.take(16), "big", signed=True))}
    if prefix == TYPE_UINT:
        return {"type": "uint", "value": str(int.from_bytes(reader.take(16), "big"))}
    if prefix == TYPE_BUFFER:
        raw = reader.take(reader.u32())
        return {"type": f"(buff {len(raw)})", "value": "0x" + raw.hex()}
    if prefix in (TYPE_TRUE, TYPE_FALSE):
        return {"type": "bool", "value": prefix == TYPE_TRUE}
    if prefix == TYPE_PRINCIPAL_STANDARD:
        return {"type": "principal", "value": _read_principal(reader)}
    if prefix == TYPE_PRINCIPAL_CONTRACT:
        address = _read_principal(reader)
        name = reader.take(reader.byte())
        try:
            contract_name = name.decode("ascii")
        except UnicodeDecodeError as exc:
            raise ClarityDecodeError("Invalid contract name") from exc
        return {"type": "principal", "value": f"{address}.{contract_name}"}
    if prefix in (TYPE_RESPONSE_OK, TYPE_RESPONSE_ERR):
        inner = _read_value(reader, depth + 1)
        success = prefix == TYPE_RESPONSE_OK
        signature = (
            f"(response {inner['type']} UnknownType)"
            if success
            else f"(response UnknownType {inner['type']})"
        )
        return {"type": signature, "value": inner, "success": success}
    if prefix == TYPE_OPTIONAL_NONE:
        return {"type": "(optional none)", "value": None}
    if prefix == TYPE_OPTIONAL_SOME:
        inner = _read_value(reader, depth + 1)
        return {"type": f"(optional {inner['type']})", "value": inner}
    if prefix == TYPE_LIST:
        count = reader.u32()
        items = [_read_value(reader, depth + 1) for _ in range(count)]
        item_type = items[0]["type"] if items else "UnknownType"
        return {"type": f"(list {count} {item_type})", "value": items}
    if prefix == TYPE_TUPLE:
        count = reader.u32()
        fields: dict[str, Any] = {}
        for _ in range(count):
            try:
                key = reader.take(reader.byte()).decode("ascii")
            except UnicodeDecodeError as exc:
                raise ClarityDecodeError("Invalid tuple key") from exc
            fields[key] = _read_value(reader, depth + 1)
        signature = " ".join(f"({key} {node['type']})" for key, node in fields.items())
        return {"type": f"(tuple {signature})" if signature else "(tuple)", "value": fields}
    if prefix in (TYPE_STRING_ASCII, TYPE_STRING_UTF8):
        raw = reader.take(reader.u32())
        encoding = "ascii" if prefix == TYPE_STRING_ASCII else "utf-8"
        try:
            text = raw.decode(encoding)
        except UnicodeDecodeError as exc:
            raise ClarityDecodeError(f"Invalid {encoding} string") from exc
        kind = "string-ascii" if prefix == TYPE_STRING_ASCII else "string-utf8"
        return {"type": f"({kind} {len(raw)})", "value": text}

    raise ClarityDecodeError(f"Unknown type prefix: {prefix:#04x}")


def deserialize(data: bytes) -> dict[str, Any]:
    """
    Decode a single encoded value.

    Raises:
        ClarityDecodeError: On truncated input, unknown type prefixes,
            invalid text or trailing bytes.
    """
    reader = _Reader(data)
    node = _read_value(reader, 0)
    if not reader.exhausted:
        raise ClarityDecodeError("Trailing bytes after value")
    return node


def decode_result(hex_value: str | None) -> dict[str, Any] | None:
    """Decode a hex-encoded value, returning ``None`` for malformed input."""
    if not isinstance(hex_value, str):
        return None
    text = hex_value[2:] if hex_value.startswith(("0x", "0X")) else hex_value
    try:
        return deserialize(bytes.fromhex(text))
    except ValueError:
        return None


# ---------------------------------------------------------------------------
# Tree helpers
# ---------------------------------------------------------------------------
def unwrap_optional(node: Any) -> Any:
    """
    Return the inner value of an optional node.

    ``None`` for absent values; the inner node for present ones; any other
    input is returned unchanged so already-unwrapped values pass through.
    """
    if not node:
        return None
    if not isinstance(node, dict):
        return node
    type_tag = node.get("type") if isinstance(node.get("type"), str) else ""
    if type_tag in ("(none)", "none") or node.get("value") is None:
        return None
    if type_tag.startswith("(optional") or type_tag in ("some", "(some)"):
        return node["value"]
    return node


def unwrap_response(node: Any) -> Any:
    """Return the ok value of a response node, ``None`` for err or absent."""
    if not isinstance(node, dict):
        return None
    type_tag = node.get("type")
    if isinstance(type_tag, str) and type_tag.startswith("(response"):
        if node.get("success") is True:
            return node.get("value")
        return None
    return node


def flatten_tuple(node: Any) -> dict[str, Any]:
    """
    Flatten a tuple node into ``{field: inner value}``.

    One level of ``{"type", "value"}`` wrapping is removed per field.
    Absent or malformed input yields an empty mapping.
    """
    if not isinstance(node, dict):
        return {}
    fields = node.get("value")
    if not isinstance(fields, dict):
        return {}
    result: dict[str, Any] = {}
    for key, value in fields.items():
        if isinstance(value, dict) and "value" in value:
            result[key] = value["value"]
        else:
            result[key] = value
    return result


def parse_event_payload(event: Any) -> dict[str, Any] | None:
    """Decode and flatten the printed payload of a contract log event."""
    if not isinstance(event, dict):
        return None
    contract_log = event.get("contract_log")
    if not isinstance(contract_log, dict):
        return None
    value = contract_log.get("value")
    if not isinstance(value, dict):
        return None
    decoded = decode_result(value.get("hex"))
    if decoded is None:
        return None
    return flatten_tuple(decoded)


# ---------------------------------------------------------------------------
# Encoding
# ---------------------------------------------------------------------------
def _length_prefixed(prefix: int, raw: bytes) -> bytes:
    return bytes([prefix]) + len(raw).to_bytes(4, "big") + raw


def encode_int(value: int) -> bytes:
    if not _INT128_MIN <= value <= _INT128_MAX:
        msg = f"int out of 128-bit range: {value}"
        raise ValueError(msg)
    return bytes([TYPE_INT]) + value.to_bytes(16, "big", signed=True)


def encode_uint(value: int) -> bytes:
    if not 0 <= value <= _UINT128_MAX:
        msg = f"uint out of 128-bit range: {value}"
        raise ValueError(msg)
    return bytes([TYPE_UINT]) + value.to_bytes(16, "big")


def encode_bool(value: bool) -> bytes:
    return bytes([TYPE_TRUE if value else TYPE_FALSE])


def encode_buffer(value: bytes) -> bytes:
    return _length_prefixed(TYPE_BUFFER, value)


def encode_principal(principal: str) -> bytes:
    """Encode a standard (``ST...``) or contract (``ST....name``) principal."""
    address, _, contract_name = principal.partition(".")
    version, hash160 = c32_address_decode(address)
    if not contract_name:
        return bytes([TYPE_PRINCIPAL_STANDARD, version]) + hash160
    name = contract_name.encode("ascii")
    if len(name) > 128:
        msg = f"Contract name too long: {contract_name!r}"
        raise ValueError(msg)
    return bytes([TYPE_PRINCIPAL_CONTRACT, version]) + hash160 + bytes([len(name)]) + name


def encode_string_ascii(value: str) -> bytes:
    return _length_prefixed(TYPE_STRING_ASCII, value.encode("ascii"))


def encode_string_utf8(value: str) -> bytes:
    return _length_prefixed(TYPE_STRING_UTF8, value.encode("utf-8"))


def encode_none() -> bytes:
    return bytes([TYPE_OPTIONAL_NONE])


def encode_some(inner: bytes) -> bytes:
    return bytes([TYPE_OPTIONAL_SOME]) + inner


def encode_ok(inner: bytes) -> bytes:
    return bytes([TYPE_RESPONSE_OK]) + inner


def encode_err(inner: bytes) -> bytes:
    return bytes([TYPE_RESPONSE_ERR]) + inner


def encode_list(items: list[bytes]) -> bytes:
    return bytes([TYPE_LIST]) + len(items).to_bytes(4, "big") + b"".join(items)


def encode_tuple(fields: dict[str, bytes]) -> bytes:
    """Encode a tuple; keys are written in sorted order as the ledger expects."""
    parts = [bytes([TYPE_TUPLE]), len(fields).to_bytes(4, "big")]
    for key in sorted(fields):
        raw_key = key.encode("ascii")
        parts.append(bytes([len(raw_key)]) + raw_key + fields[key])
    return b"".join(parts)


def cv_to_hex(encoded: bytes) -> str:
    """Render encoded bytes in the ``0x``-prefixed form the read API expects."""
    return "0x" + encoded.hex()
