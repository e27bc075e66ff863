"""DAG-PB data model and the canonical link comparator.

    PBLink(Hash, Name=None, Tsize=None)
    PBNode(Data=None, Links=())

Field names follow the protobuf schema every DAG-PB implementation shares,
so a PBNode and the equivalent plain dict ({"Data": ..., "Links": [...]})
use the same keys.  None always means "absent": there are no implicit
default values.

Both records are NamedTuples, so they are immutable and cannot grow extra
attributes.  Dynamically typed input (dicts) can, which is why the
validator still has to check for extraneous keys on Mappings.
"""

from __future__ import annotations

from functools import cmp_to_key
from typing import Any, Mapping, NamedTuple, Optional, Sequence

from multiformats import CID


class PBLink(NamedTuple):
    Hash: CID
    Name: Optional[str] = None
    Tsize: Optional[int] = None


class PBNode(NamedTuple):
    Data: Optional[bytes] = None
    Links: Sequence[PBLink] = ()


def get_field(record: Any, name: str) -> Any:
    """Read a field from a PBNode/PBLink or a Mapping.  Absent → None."""
    if isinstance(record, Mapping):
        return record.get(name)
    return getattr(record, name, None)


def has_field(record: Any, name: str) -> bool:
    """True when the field is present (a key mapped to None is absent)."""
    return get_field(record, name) is not None


def record_keys(record: Any) -> Sequence[str]:
    """Return the property names of a record, present or not."""
    if isinstance(record, Mapping):
        return list(record.keys())
    return list(record._fields)


# ── Canonical ordering ────────────────────────────────────────
# Links sort by the raw UTF-8 bytes of their Name, compared as unsigned
# octets (memcmp).  Not code-point order, not locale collation.  "a" and
# "ab" share a prefix, so the shorter one sorts first.

def _name_bytes(link: Any) -> bytes:
    name = get_field(link, "Name")
    if name is None:
        return b""
    return name.encode("utf-8")


def _bytes_cmp(a: bytes, b: bytes) -> int:
    for x, y in zip(a, b):
        if x != y:
            return -1 if x < y else 1
    if len(a) == len(b):
        return 0
    return -1 if len(a) < len(b) else 1


def compare(a: Any, b: Any) -> int:
    """Compare two links by Name bytes.  Returns -1, 0 or 1.

    Ties are not broken: two links with the same name compare equal, and
    either relative order is canonical.
    """
    if a is b:
        return 0
    return _bytes_cmp(_name_bytes(a), _name_bytes(b))


link_sort_key = cmp_to_key(compare)
