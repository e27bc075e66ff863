"""DAG-PB prepare() — best-effort normalization into the canonical shape.

Application code rarely builds PBNode values by hand.  prepare() accepts the
loose shapes people actually have lying around and turns them into a PBNode:

  - bytes / str         → data-only node (str is UTF-8 encoded)
  - mapping / PBNode    → Data and Links picked out, other keys ignored
  - Hash as CID         → kept
  - Hash as str         → parsed (multibase string or base58 CIDv0)
  - Hash as bytes       → decoded as a binary CID
  - a bare CID as link  → {Hash: cid}
  - Links               → sorted into canonical order

prepare() is advisory.  It never replaces validation: encode() still runs
validate() on whatever it is given.
"""

from __future__ import annotations

from typing import Any, List, Mapping, Optional

from multiformats import CID

from ._errors import ERR_FORM, ERR_LINK_FORM, ERR_LINK_HASH, ERR_LINKS_TYPE, FormError
from ._model import PBLink, PBNode, get_field, link_sort_key

_BYTES_LIKE = (bytes, bytearray, memoryview)


def _as_cid(value: Any, i: int) -> CID:
    if isinstance(value, CID):
        return value
    if isinstance(value, (str,) + _BYTES_LIKE):
        raw = bytes(value) if isinstance(value, _BYTES_LIKE) else value
        try:
            return CID.decode(raw)
        except (ValueError, LookupError, TypeError) as e:
            raise FormError(ERR_LINK_HASH,
                            "link {}: bad Hash/CID ({})".format(i, e)) from e
    raise FormError(ERR_LINK_HASH, "link {}: bad Hash/CID".format(i))


def _as_tsize(value: Any) -> Any:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        # Integral floats (3.0) are sizes; fractional ones stay floats so
        # validate() can reject them.
        return int(value) if value.is_integer() else value
    return None


def _prepare_link(link: Any, i: int, legacy: bool) -> PBLink:
    if isinstance(link, CID):
        link = {"Hash": link}
    if not isinstance(link, (PBLink, Mapping)):
        raise FormError(ERR_LINK_FORM, "link {}: not a link record".format(i))

    cid = _as_cid(get_field(link, "Hash"), i)

    name = get_field(link, "Name")
    if not isinstance(name, str):
        name = None
    tsize = _as_tsize(get_field(link, "Tsize"))

    if legacy:
        # Older schema revision: Name and Tsize are implicit, always present.
        name = "" if name is None else name
        tsize = 0 if tsize is None else tsize

    return PBLink(Hash=cid, Name=name, Tsize=tsize)


def _prepare_data(data: Any) -> Optional[bytes]:
    if isinstance(data, str):
        data = data.encode("utf-8")
    elif isinstance(data, _BYTES_LIKE):
        data = bytes(data)
    else:
        return None
    # Zero-length data must be absent, never b"".
    return data or None


def prepare(node: Any, *, legacy: bool = False) -> PBNode:
    """Normalize a loosely-shaped value into a PBNode.

    With legacy=True, links get the older revision's implicit defaults
    (Name "" and Tsize 0) instead of being left absent.

    Example:
        >>> prepare({"Data": "hi", "Links": [{"Hash": "bafk...", "Name": "b"},
        ...                                  {"Hash": b"...", "Name": "a"}]})
        PBNode(Data=b'hi', Links=(PBLink(Hash=..., Name='a', ...), ...))
    """
    if isinstance(node, (str,) + _BYTES_LIKE):
        node = {"Data": node}

    if not isinstance(node, (PBNode, Mapping)):
        raise FormError(ERR_FORM, "cannot prepare {} as a node".format(type(node).__name__))

    data = _prepare_data(get_field(node, "Data"))

    raw_links = get_field(node, "Links")
    links: List[PBLink] = []
    if raw_links:
        if not isinstance(raw_links, (list, tuple)):
            raise FormError(ERR_LINKS_TYPE, "Links must be a list")
        links = [_prepare_link(link, i, legacy) for i, link in enumerate(raw_links)]
        links.sort(key=link_sort_key)

    return PBNode(Data=data, Links=tuple(links))
