"""DAG-PB constants — format identity, protobuf field numbers, wire types.

The field numbers are part of the external contract.  Every DAG-PB
implementation agrees on them, and changing one silently produces bytes
that no other implementation can read.
"""

from __future__ import annotations

# ── Format identity (multicodec table) ───────────────────────
CODE: int = 0x70
NAME: str = "dag-pb"

# ── Protobuf wire types ──────────────────────────────────────
# Groups (3, 4) are deprecated in protobuf and never valid here.
WIRE_VARINT: int = 0
WIRE_FIXED64: int = 1
WIRE_LEN: int = 2
WIRE_FIXED32: int = 5

# ── PBNode fields ────────────────────────────────────────────
NODE_DATA_FIELD: int = 1   # bytes, optional
NODE_LINKS_FIELD: int = 2  # repeated PBLink

# ── PBLink fields ────────────────────────────────────────────
LINK_HASH_FIELD: int = 1   # bytes (binary CID)
LINK_NAME_FIELD: int = 2   # string
LINK_TSIZE_FIELD: int = 3  # varint

# ── Record shapes (closed schema) ────────────────────────────
NODE_PROPERTIES = ("Data", "Links")
LINK_PROPERTIES = ("Hash", "Name", "Tsize")

# ── Signed 64-bit integer range ──────────────────────────────
# Tsize travels as a 64-bit varint.  Python ints are unbounded, so the
# range check has to be explicit.
INT64_MIN: int = -(2**63)
INT64_MAX: int = 2**63 - 1
UINT64_MASK: int = 2**64 - 1

# A 64-bit value never needs more than ten 7-bit groups.
MAX_VARINT_BYTES: int = 10
