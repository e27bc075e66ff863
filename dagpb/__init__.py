"""dagpb — DAG-PB codec and canonical-form validator.

Encode and decode DAG-PB merkle-DAG nodes: an optional data blob plus an
ordered list of links to other nodes by CID.  Output is byte-exact with
every other DAG-PB implementation; input that does not have the strict
canonical form is rejected.

Quick start:
    >>> from dagpb import prepare, encode, decode
    >>> node = prepare({"Data": b"hello", "Links": []})
    >>> encode(node)
    b'\\n\\x05hello'
    >>> decode(b'\\n\\x05hello')
    PBNode(Data=b'hello', Links=())

Links must be sorted by the UTF-8 bytes of their Name.  prepare() sorts
them for you; validate() and encode() refuse unsorted input.
"""

from __future__ import annotations

from ._codec import decode, encode
from ._constants import CODE, NAME
from ._errors import (
    ERR_DATA_TYPE,
    ERR_EXTRANEOUS,
    ERR_FORM,
    ERR_JSON,
    ERR_LINK_EXTRANEOUS,
    ERR_LINK_FORM,
    ERR_LINK_HASH,
    ERR_LINK_HASH_MISSING,
    ERR_LINK_NAME,
    ERR_LINK_ORDER,
    ERR_LINK_TSIZE,
    ERR_LINKS_TYPE,
    ERR_WIRE,
    DagPbError,
    DecodeError,
    FormError,
)
from ._json_adapter import node_from_json, node_to_json
from ._model import PBLink, PBNode, compare, link_sort_key
from ._prepare import prepare
from ._validate import is_valid, validate

__version__ = "1.0.0"

__all__ = [
    # Format identity
    "CODE",
    "NAME",
    # Data model
    "PBNode",
    "PBLink",
    "compare",
    "link_sort_key",
    # Public API functions
    "prepare",
    "validate",
    "is_valid",
    "encode",
    "decode",
    "node_from_json",
    "node_to_json",
    # Exceptions
    "DagPbError",
    "FormError",
    "DecodeError",
    # Error codes
    "ERR_FORM",
    "ERR_EXTRANEOUS",
    "ERR_DATA_TYPE",
    "ERR_LINKS_TYPE",
    "ERR_LINK_FORM",
    "ERR_LINK_EXTRANEOUS",
    "ERR_LINK_HASH_MISSING",
    "ERR_LINK_HASH",
    "ERR_LINK_NAME",
    "ERR_LINK_TSIZE",
    "ERR_LINK_ORDER",
    "ERR_JSON",
    "ERR_WIRE",
]
