"""DAG-PB wire codec — protobuf encode/decode for the fixed PBNode schema.

    message PBLink {
      optional bytes Hash = 1;
      optional string Name = 2;
      optional uint64 Tsize = 3;
    }

    message PBNode {
      repeated PBLink Links = 2;
      optional bytes Data = 1;
    }

Only the slice of protobuf this schema needs is implemented: varints,
length-delimited fields, and skipping of unknown fields.

Byte layout of a node: every link (field 2) in list order, then the data
(field 1) if present.  Inside a link, fields are written in ascending field
number.  Absent fields are never written.
"""

from __future__ import annotations

from typing import Any, List, Optional, Tuple

from multiformats import CID

from ._constants import (
    INT64_MAX,
    LINK_HASH_FIELD,
    LINK_NAME_FIELD,
    LINK_TSIZE_FIELD,
    MAX_VARINT_BYTES,
    NODE_DATA_FIELD,
    NODE_LINKS_FIELD,
    UINT64_MASK,
    WIRE_FIXED32,
    WIRE_FIXED64,
    WIRE_LEN,
    WIRE_VARINT,
)
from ._errors import ERR_LINK_HASH, ERR_WIRE, DecodeError
from ._model import PBLink, PBNode, get_field
from ._validate import validate


# ── Varint / key encode ──────────────────────────────────────
# Negative integers are written as their 64-bit two's complement, which
# always takes ten bytes.  That is what protobuf does for int64, and it is
# what lets a negative Tsize survive a round-trip.

def _varint(n: int) -> bytes:
    if n < 0:
        n &= UINT64_MASK
    out = bytearray()
    while n > 0x7F:
        out.append((n & 0x7F) | 0x80)
        n >>= 7
    out.append(n)
    return bytes(out)


def _key(field: int, wire: int) -> bytes:
    return _varint((field << 3) | wire)


def _len_field(field: int, payload: bytes) -> bytes:
    return _key(field, WIRE_LEN) + _varint(len(payload)) + payload


# ── Encode ────────────────────────────────────────────────────

def _encode_link(link: Any) -> bytes:
    parts: List[bytes] = [_len_field(LINK_HASH_FIELD, bytes(get_field(link, "Hash")))]

    name = get_field(link, "Name")
    if name is not None:
        parts.append(_len_field(LINK_NAME_FIELD, name.encode("utf-8")))

    tsize = get_field(link, "Tsize")
    if tsize is not None:
        parts.append(_key(LINK_TSIZE_FIELD, WIRE_VARINT) + _varint(tsize))

    return b"".join(parts)


def encode(node: Any) -> bytes:
    """Encode a DAG-PB node to bytes.

    The node is validated first; a FormError propagates before any byte is
    produced.  Accepts a PBNode or a Mapping with the same property names.
    """
    validate(node)

    parts: List[bytes] = []
    for link in get_field(node, "Links"):
        parts.append(_len_field(NODE_LINKS_FIELD, _encode_link(link)))

    data = get_field(node, "Data")
    if data is not None:
        parts.append(_len_field(NODE_DATA_FIELD, data))

    return b"".join(parts)


# ── Varint / key decode ──────────────────────────────────────

def _read_varint(buf: bytes, off: int) -> Tuple[int, int]:
    result = 0
    shift = 0
    for _ in range(MAX_VARINT_BYTES):
        if off >= len(buf):
            raise DecodeError(ERR_WIRE, "truncated varint")
        b = buf[off]
        off += 1
        result |= (b & 0x7F) << shift
        if not b & 0x80:
            if result > UINT64_MASK:
                raise DecodeError(ERR_WIRE, "varint exceeds 64 bits")
            return result, off
        shift += 7
    raise DecodeError(ERR_WIRE, "varint too long")


def _read_key(buf: bytes, off: int) -> Tuple[int, int, int]:
    key, off = _read_varint(buf, off)
    field = key >> 3
    wire = key & 0x07
    if field == 0 or field > 0x1FFFFFFF:
        raise DecodeError(ERR_WIRE, "invalid field number {}".format(field))
    return field, wire, off


def _read_len(buf: bytes, off: int) -> Tuple[bytes, int]:
    n, off = _read_varint(buf, off)
    if off + n > len(buf):
        raise DecodeError(ERR_WIRE, "truncated length-delimited field")
    return buf[off:off + n], off + n


def _skip(buf: bytes, off: int, wire: int) -> int:
    """Skip an unknown field.  Groups and reserved wire types are errors."""
    if wire == WIRE_VARINT:
        _, off = _read_varint(buf, off)
        return off
    if wire == WIRE_LEN:
        _, off = _read_len(buf, off)
        return off
    if wire in (WIRE_FIXED64, WIRE_FIXED32):
        width = 8 if wire == WIRE_FIXED64 else 4
        if off + width > len(buf):
            raise DecodeError(ERR_WIRE, "truncated fixed-width field")
        return off + width
    raise DecodeError(ERR_WIRE, "unsupported wire type {}".format(wire))


def _expect_wire(wire: int, expected: int, what: str) -> None:
    if wire != expected:
        raise DecodeError(ERR_WIRE, "{} has wire type {}, expected {}".format(
            what, wire, expected))


# ── Decode ────────────────────────────────────────────────────

def _decode_link(buf: bytes, i: int, legacy: bool) -> PBLink:
    hash_bytes: Optional[bytes] = None
    name: Optional[str] = None
    tsize: Optional[int] = None

    off = 0
    while off < len(buf):
        field, wire, off = _read_key(buf, off)
        if field == LINK_HASH_FIELD:
            _expect_wire(wire, WIRE_LEN, "link Hash")
            hash_bytes, off = _read_len(buf, off)
        elif field == LINK_NAME_FIELD:
            _expect_wire(wire, WIRE_LEN, "link Name")
            raw, off = _read_len(buf, off)
            try:
                name = raw.decode("utf-8")
            except UnicodeDecodeError as e:
                raise DecodeError(ERR_WIRE, "link {}: Name is not utf-8".format(i)) from e
        elif field == LINK_TSIZE_FIELD:
            _expect_wire(wire, WIRE_VARINT, "link Tsize")
            tsize, off = _read_varint(buf, off)
            if tsize > INT64_MAX:
                tsize -= UINT64_MASK + 1
        else:
            off = _skip(buf, off, wire)

    if hash_bytes is None:
        raise DecodeError(ERR_LINK_HASH, "link {}: missing Hash".format(i))
    try:
        cid = CID.decode(hash_bytes)
    except (ValueError, LookupError, TypeError) as e:
        raise DecodeError(ERR_LINK_HASH,
                          "link {}: Hash is not a valid CID ({})".format(i, e)) from e

    if legacy:
        name = "" if name is None else name
        tsize = 0 if tsize is None else tsize

    return PBLink(Hash=cid, Name=name, Tsize=tsize)


def decode(data: Any, *, legacy: bool = False) -> PBNode:
    """Decode DAG-PB bytes into a PBNode.

    Fields absent on the wire are absent (None) in the result.  With
    legacy=True the older revision's policy applies instead: Name defaults
    to "", Tsize to 0, and Data to b"".

    The result is not re-validated; unknown fields are skipped.
    """
    if not isinstance(data, (bytes, bytearray, memoryview)):
        raise DecodeError(ERR_WIRE, "expected bytes, got {}".format(type(data).__name__))
    buf = bytes(data)

    links: List[PBLink] = []
    node_data: Optional[bytes] = None

    off = 0
    while off < len(buf):
        field, wire, off = _read_key(buf, off)
        if field == NODE_LINKS_FIELD:
            _expect_wire(wire, WIRE_LEN, "node Links")
            raw, off = _read_len(buf, off)
            links.append(_decode_link(raw, len(links), legacy))
        elif field == NODE_DATA_FIELD:
            _expect_wire(wire, WIRE_LEN, "node Data")
            node_data, off = _read_len(buf, off)
        else:
            off = _skip(buf, off, wire)

    if legacy and node_data is None:
        node_data = b""

    return PBNode(Data=node_data, Links=tuple(links))
