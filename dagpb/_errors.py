"""DAG-PB error codes and exception classes.

Two kinds of failure exist and callers are expected to branch on them:

    FormError    the caller handed us a value that is not a canonical node
                 (raised by prepare, validate, encode and the JSON adapter)
    DecodeError  the bytes we were asked to decode are not a DAG-PB node

Both carry a `.code` attribute with one of the ERR_* strings below, which
is what tests and the CLI compare against.
"""

from __future__ import annotations

# ── Form error codes (validator order) ───────────────────────
ERR_FORM: str = "ERR_FORM"                        # node is not a record
ERR_EXTRANEOUS: str = "ERR_EXTRANEOUS"            # unknown node property
ERR_DATA_TYPE: str = "ERR_DATA_TYPE"              # Data is not bytes
ERR_LINKS_TYPE: str = "ERR_LINKS_TYPE"            # Links missing / not a list
ERR_LINK_FORM: str = "ERR_LINK_FORM"              # link is not a record
ERR_LINK_EXTRANEOUS: str = "ERR_LINK_EXTRANEOUS"  # unknown link property
ERR_LINK_HASH_MISSING: str = "ERR_LINK_HASH_MISSING"
ERR_LINK_HASH: str = "ERR_LINK_HASH"              # Hash is not a (valid) CID
ERR_LINK_NAME: str = "ERR_LINK_NAME"              # Name is not a string
ERR_LINK_TSIZE: str = "ERR_LINK_TSIZE"            # Tsize is not an int64
ERR_LINK_ORDER: str = "ERR_LINK_ORDER"            # links not sorted by Name bytes
ERR_JSON: str = "ERR_JSON"                        # malformed JSON input

# ── Decode error codes ───────────────────────────────────────
ERR_WIRE: str = "ERR_WIRE"                        # malformed protobuf bytes
# ERR_LINK_HASH is shared: on decode it means the Hash bytes are not a CID.


class DagPbError(Exception):
    """Base class for every error raised by this package."""

    def __init__(self, code: str, msg: str = "") -> None:
        super().__init__(msg or code)
        self.code = code


class FormError(DagPbError, TypeError):
    """The value does not have the DAG-PB form."""


class DecodeError(DagPbError, ValueError):
    """The byte sequence is not a decodable DAG-PB node."""
