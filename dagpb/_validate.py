"""DAG-PB strict form validation.

validate() is the single gate encode() passes through.  It is deliberately
stricter than prepare(): a Hash given as text or bytes is rejected here even
though prepare() would have parsed it, because a value that reaches the
encoder must already be exactly what will be written.

The checks run in a fixed order and the first failure raises.  Schema, as
the rest of the DAG-PB world writes it:

    type PBLink struct {
      Hash Link
      Name optional String
      Tsize optional Int
    }

    type PBNode struct {
      Links [PBLink]
      Data optional Bytes
    }
"""

from __future__ import annotations

from typing import Any, Mapping

from multiformats import CID

from ._constants import INT64_MAX, INT64_MIN, LINK_PROPERTIES, NODE_PROPERTIES
from ._errors import (
    ERR_DATA_TYPE,
    ERR_EXTRANEOUS,
    ERR_FORM,
    ERR_LINK_EXTRANEOUS,
    ERR_LINK_FORM,
    ERR_LINK_HASH,
    ERR_LINK_HASH_MISSING,
    ERR_LINK_NAME,
    ERR_LINK_ORDER,
    ERR_LINK_TSIZE,
    ERR_LINKS_TYPE,
    FormError,
)
from ._model import PBLink, PBNode, compare, get_field, has_field, record_keys


def _has_only(record: Any, allowed: tuple) -> bool:
    return all(k in allowed for k in record_keys(record))


def _is_int64(val: Any) -> bool:
    # bool is an int subclass; True is not a size.
    if isinstance(val, bool) or not isinstance(val, int):
        return False
    return INT64_MIN <= val <= INT64_MAX


def _validate_link(link: Any, i: int) -> None:
    if not isinstance(link, (PBLink, Mapping)):
        raise FormError(ERR_LINK_FORM, "link {}: not a link record".format(i))

    if not _has_only(link, LINK_PROPERTIES):
        raise FormError(ERR_LINK_EXTRANEOUS,
                        "link {}: extraneous properties on link".format(i))

    if not has_field(link, "Hash"):
        raise FormError(ERR_LINK_HASH_MISSING, "link {}: missing Hash".format(i))

    if not isinstance(get_field(link, "Hash"), CID):
        raise FormError(ERR_LINK_HASH, "link {}: Hash must be a CID".format(i))

    name = get_field(link, "Name")
    if name is not None and not isinstance(name, str):
        raise FormError(ERR_LINK_NAME, "link {}: Name must be a string".format(i))

    tsize = get_field(link, "Tsize")
    if tsize is not None and not _is_int64(tsize):
        raise FormError(ERR_LINK_TSIZE,
                        "link {}: Tsize must be a 64-bit integer".format(i))


def validate(node: Any) -> None:
    """Raise FormError unless `node` is a canonical DAG-PB node.

    Accepts a PBNode or a Mapping using the same property names.  Never
    mutates its argument.

    Tsize must be an int in the signed 64-bit range [-2**63, 2**63 - 1].
    A uint64 size at or above 2**63 is rejected with ERR_LINK_TSIZE even
    though the wire field is a varint; such values read back from the wire
    decode as negative numbers.
    """
    if not isinstance(node, (PBNode, Mapping)):
        raise FormError(ERR_FORM, "node must be a PBNode or a mapping, got {}".format(
            type(node).__name__))

    if not _has_only(node, NODE_PROPERTIES):
        raise FormError(ERR_EXTRANEOUS, "extraneous properties on node")

    data = get_field(node, "Data")
    if data is not None and not isinstance(data, bytes):
        raise FormError(ERR_DATA_TYPE, "Data must be bytes")

    links = get_field(node, "Links")
    if not isinstance(links, (list, tuple)) or isinstance(links, (PBLink, PBNode)):
        raise FormError(ERR_LINKS_TYPE, "Links must be a list")

    for i, link in enumerate(links):
        _validate_link(link, i)
        if i > 0 and compare(link, links[i - 1]) == -1:
            raise FormError(ERR_LINK_ORDER,
                            "link {}: links must be sorted by Name bytes".format(i))


def is_valid(node: Any) -> bool:
    """Non-raising form of validate()."""
    try:
        validate(node)
    except FormError:
        return False
    return True
