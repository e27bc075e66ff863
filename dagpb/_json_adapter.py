"""DAG-PB JSON adapter.

Converts between DAG-PB nodes and a DAG-JSON style text form:

    {"Data": {"/": {"bytes": "aGVsbG8"}},
     "Links": [{"Hash": {"/": "bafy..."}, "Name": "a", "Tsize": 5}]}

Bytes are standard base64 without padding; CIDs use their string form.

Input arriving this way is dynamically typed, so it goes through validate()
as a plain dict (extraneous keys and all) before being coerced into a
PBNode.  JSON numbers with a fraction or exponent ("5.0", "5e0") parse as
floats, and validate() rejects any float Tsize even when it is integral.
The CLI's --prepare path hands the same floats to prepare(), which turns
integral ones into ints and leaves fractional ones for validate() to reject.
"""

from __future__ import annotations

import base64
import binascii
import json
from typing import Any, Dict

from multiformats import CID

from ._errors import ERR_JSON, ERR_LINK_HASH, FormError
from ._model import PBLink, PBNode
from ._validate import validate


def _reject_constant(token: str) -> Any:
    raise FormError(ERR_JSON, "JSON constant not allowed: {}".format(token))


def _pairs_hook(pairs: list) -> dict:
    result: dict = {}
    for key, value in pairs:
        if key in result:
            raise FormError(ERR_JSON, "duplicate key {!r} in JSON".format(key))
        result[key] = value
    return result


def json_strict_parse(raw: bytes) -> Any:
    """Parse raw JSON bytes, rejecting duplicate keys and NaN/Infinity."""
    try:
        text = raw.decode("utf-8")
    except UnicodeDecodeError as e:
        raise FormError(ERR_JSON, "invalid UTF-8 in JSON input") from e

    try:
        return json.loads(
            text,
            object_pairs_hook=_pairs_hook,
            parse_constant=_reject_constant,
        )
    except json.JSONDecodeError as e:
        raise FormError(ERR_JSON, "JSON parse error: {}".format(e)) from e


# ── JSON value → dynamically typed node ───────────────────────

def _b64decode(s: str) -> bytes:
    try:
        return base64.b64decode(s + "=" * (-len(s) % 4), validate=True)
    except binascii.Error as e:
        raise FormError(ERR_JSON, "bad base64 in Data") from e


def _data_from_json(val: Any) -> Any:
    if isinstance(val, dict) and list(val) == ["/"]:
        inner = val["/"]
        if isinstance(inner, dict) and list(inner) == ["bytes"] and isinstance(inner["bytes"], str):
            return _b64decode(inner["bytes"])
    # Anything else is passed through for validate() to reject.
    return val


def _hash_from_json(val: Any, i: int) -> Any:
    if isinstance(val, dict) and list(val) == ["/"] and isinstance(val["/"], str):
        try:
            return CID.decode(val["/"])
        except (ValueError, LookupError, TypeError) as e:
            raise FormError(ERR_LINK_HASH,
                            "link {}: bad CID string {!r}".format(i, val["/"])) from e
    return val


def json_to_node_value(obj: Any) -> Any:
    """Replace {"/": ...} forms with bytes and CIDs.  Shape is not checked."""
    if not isinstance(obj, dict):
        return obj
    out: Dict[str, Any] = dict(obj)
    if "Data" in out:
        out["Data"] = _data_from_json(out["Data"])
    links = out.get("Links")
    if isinstance(links, list):
        converted = []
        for i, link in enumerate(links):
            if isinstance(link, dict) and "Hash" in link:
                link = dict(link)
                link["Hash"] = _hash_from_json(link["Hash"], i)
            converted.append(link)
        out["Links"] = converted
    return out


def node_from_json(raw: bytes) -> PBNode:
    """Parse a JSON node, validate it, and return it as a PBNode."""
    value = json_to_node_value(json_strict_parse(raw))
    validate(value)
    links = tuple(
        PBLink(Hash=link["Hash"], Name=link.get("Name"), Tsize=link.get("Tsize"))
        for link in value["Links"]
    )
    return PBNode(Data=value.get("Data"), Links=links)


# ── PBNode → JSON ─────────────────────────────────────────────

def node_to_json(node: PBNode) -> str:
    """Render a node as compact JSON with sorted keys."""
    out: Dict[str, Any] = {}
    if node.Data is not None:
        b64 = base64.b64encode(node.Data).decode("ascii").rstrip("=")
        out["Data"] = {"/": {"bytes": b64}}
    links = []
    for link in node.Links:
        entry: Dict[str, Any] = {"Hash": {"/": str(link.Hash)}}
        if link.Name is not None:
            entry["Name"] = link.Name
        if link.Tsize is not None:
            entry["Tsize"] = link.Tsize
        links.append(entry)
    out["Links"] = links
    return json.dumps(out, sort_keys=True, separators=(",", ":"), ensure_ascii=False)
