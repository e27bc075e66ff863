"""Tests for the JSON adapter and the command-line interface."""

from __future__ import annotations

import base64
import contextlib
import io
import json
import os
import sys
import tempfile
import unittest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from multiformats import CID

from dagpb import (
    ERR_EXTRANEOUS,
    ERR_JSON,
    ERR_LINK_EXTRANEOUS,
    ERR_LINK_HASH,
    ERR_LINK_ORDER,
    ERR_LINK_TSIZE,
    FormError,
    PBLink,
    PBNode,
    decode,
    encode,
    node_from_json,
    node_to_json,
)
from dagpb._cli import main

CID_V1 = CID.decode(bytes.fromhex("01701220" + "cc" * 32))
CID_V0 = CID.decode(bytes.fromhex("1220" + "bb" * 32))


def _json(obj) -> bytes:
    return json.dumps(obj).encode("utf-8")


def _link_json(cid=CID_V1, **extra):
    d = {"Hash": {"/": str(cid)}}
    d.update(extra)
    return d


# ── node_from_json ────────────────────────────────────────────

class TestNodeFromJson(unittest.TestCase):
    def test_empty(self):
        self.assertEqual(node_from_json(b'{"Links": []}'), PBNode())

    def test_data(self):
        node = node_from_json(b'{"Data": {"/": {"bytes": "aGVsbG8"}}, "Links": []}')
        self.assertEqual(node.Data, b"hello")

    def test_padded_base64_accepted(self):
        node = node_from_json(b'{"Data": {"/": {"bytes": "aGVsbG8="}}, "Links": []}')
        self.assertEqual(node.Data, b"hello")

    def test_links(self):
        node = node_from_json(_json({"Links": [
            _link_json(CID_V0, Name="a", Tsize=3),
            _link_json(Name="b"),
        ]}))
        self.assertEqual([l.Name for l in node.Links], ["a", "b"])
        self.assertEqual(bytes(node.Links[0].Hash), bytes(CID_V0))
        self.assertEqual(node.Links[0].Tsize, 3)
        self.assertIsNone(node.Links[1].Tsize)

    def test_extraneous_node_key(self):
        with self.assertRaises(FormError) as ctx:
            node_from_json(b'{"Links": [], "Extra": 1}')
        self.assertEqual(ctx.exception.code, ERR_EXTRANEOUS)

    def test_extraneous_link_key(self):
        with self.assertRaises(FormError) as ctx:
            node_from_json(_json({"Links": [_link_json(Extra=True)]}))
        self.assertEqual(ctx.exception.code, ERR_LINK_EXTRANEOUS)

    def test_float_tsize_rejected(self):
        """5.0 is integral but it is still a JSON float."""
        raw = _json({"Links": [_link_json()]})[:-3] + b', "Tsize": 5.0}]}'
        with self.assertRaises(FormError) as ctx:
            node_from_json(raw)
        self.assertEqual(ctx.exception.code, ERR_LINK_TSIZE)

    def test_bare_string_hash_rejected(self):
        with self.assertRaises(FormError) as ctx:
            node_from_json(_json({"Links": [{"Hash": str(CID_V1)}]}))
        self.assertEqual(ctx.exception.code, ERR_LINK_HASH)

    def test_bad_cid_string(self):
        with self.assertRaises(FormError) as ctx:
            node_from_json(_json({"Links": [{"Hash": {"/": "zzzz"}}]}))
        self.assertEqual(ctx.exception.code, ERR_LINK_HASH)

    def test_truncated_cid_string(self):
        with self.assertRaises(FormError) as ctx:
            node_from_json(_json({"Links": [{"Hash": {"/": "z"}}]}))
        self.assertEqual(ctx.exception.code, ERR_LINK_HASH)

    def test_unsorted(self):
        with self.assertRaises(FormError) as ctx:
            node_from_json(_json({"Links": [_link_json(Name="b"), _link_json(Name="a")]}))
        self.assertEqual(ctx.exception.code, ERR_LINK_ORDER)

    def test_duplicate_key(self):
        with self.assertRaises(FormError) as ctx:
            node_from_json(b'{"Links": [], "Links": []}')
        self.assertEqual(ctx.exception.code, ERR_JSON)

    def test_nan_rejected(self):
        with self.assertRaises(FormError) as ctx:
            node_from_json(b'{"Links": [], "Data": NaN}')
        self.assertEqual(ctx.exception.code, ERR_JSON)

    def test_parse_error(self):
        with self.assertRaises(FormError) as ctx:
            node_from_json(b'{"Links": [')
        self.assertEqual(ctx.exception.code, ERR_JSON)

    def test_invalid_utf8(self):
        with self.assertRaises(FormError) as ctx:
            node_from_json(b'{"Links": [], "\xff": 1}')
        self.assertEqual(ctx.exception.code, ERR_JSON)


# ── node_to_json ──────────────────────────────────────────────

class TestNodeToJson(unittest.TestCase):
    def test_empty(self):
        self.assertEqual(node_to_json(PBNode()), '{"Links":[]}')

    def test_data_unpadded(self):
        out = json.loads(node_to_json(PBNode(Data=b"hello")))
        self.assertEqual(out["Data"], {"/": {"bytes": "aGVsbG8"}})

    def test_absent_fields_omitted(self):
        out = json.loads(node_to_json(PBNode(Links=[PBLink(Hash=CID_V1)])))
        self.assertEqual(out["Links"], [{"Hash": {"/": str(CID_V1)}}])

    def test_round_trip_through_json(self):
        node = PBNode(Data=b"\x00\x01", Links=[
            PBLink(Hash=CID_V0, Name="a", Tsize=-5),
            PBLink(Hash=CID_V1, Name="é"),
        ])
        again = node_from_json(node_to_json(node).encode("utf-8"))
        self.assertEqual(encode(again), encode(node))


# ── CLI ───────────────────────────────────────────────────────

class TestCli(unittest.TestCase):
    def setUp(self):
        self.tmp = tempfile.TemporaryDirectory()
        self.addCleanup(self.tmp.cleanup)

    def _write(self, name: str, data: bytes) -> str:
        path = os.path.join(self.tmp.name, name)
        with open(path, "wb") as f:
            f.write(data)
        return path

    def _run(self, argv):
        out, err = io.StringIO(), io.StringIO()
        code = 0
        with contextlib.redirect_stdout(out), contextlib.redirect_stderr(err):
            try:
                main(argv)
            except SystemExit as e:
                code = e.code
        return code, out.getvalue(), err.getvalue()

    def test_version(self):
        code, out, _ = self._run(["version"])
        self.assertEqual(code, 0)
        self.assertTrue(out.startswith("dagpb "))

    def test_decode_hex(self):
        path = self._write("node.hex", b"0a0568656c6c6f\n")
        code, out, _ = self._run(["decode", "--hex", "--input", path])
        self.assertEqual(code, 0)
        self.assertEqual(json.loads(out), {"Data": {"/": {"bytes": "aGVsbG8"}}, "Links": []})

    def test_decode_raw_legacy(self):
        path = self._write("node.bin", encode(PBNode(Links=[PBLink(Hash=CID_V1)])))
        code, out, _ = self._run(["decode", "--legacy", "--input", path])
        self.assertEqual(code, 0)
        parsed = json.loads(out)
        self.assertEqual(parsed["Links"][0]["Name"], "")
        self.assertEqual(parsed["Links"][0]["Tsize"], 0)
        self.assertEqual(parsed["Data"], {"/": {"bytes": ""}})

    def test_decode_error(self):
        path = self._write("bad.bin", b"\x0a\x05he")
        code, _, err = self._run(["decode", "--input", path])
        self.assertEqual(code, 2)
        self.assertIn("[ERR_WIRE]", err)

    def test_encode_base64(self):
        path = self._write("node.json", b'{"Data": {"/": {"bytes": "aGVsbG8"}}, "Links": []}')
        code, out, _ = self._run(["encode", "--input", path])
        self.assertEqual(code, 0)
        self.assertEqual(base64.b64decode(out.strip()), b"\x0a\x05hello")

    def test_encode_prepare_sorts(self):
        raw = _json({"Links": [_link_json(Name="b"), _link_json(Name="a")]})
        path = self._write("node.json", raw)
        code, _, err = self._run(["encode", "--input", path])
        self.assertEqual(code, 2)
        self.assertIn("[ERR_LINK_ORDER]", err)

        code, out, _ = self._run(["encode", "--prepare", "--hex", "--input", path])
        self.assertEqual(code, 0)
        node = decode(bytes.fromhex(out.strip()))
        self.assertEqual([l.Name for l in node.Links], ["a", "b"])

    def test_truncated_cid_string_exits_2(self):
        path = self._write("short.json", _json({"Links": [{"Hash": {"/": "z"}}]}))
        for argv in (["validate", "--input", path],
                     ["encode", "--input", path],
                     ["encode", "--prepare", "--input", path]):
            with self.subTest(argv=argv[:-2]):
                code, _, err = self._run(argv)
                self.assertEqual(code, 2)
                self.assertIn("[ERR_LINK_HASH]", err)

    def test_encode_prepare_integral_float_tsize(self):
        raw = _json({"Links": [_link_json()]})[:-3] + b', "Tsize": 5.0}]}'
        path = self._write("float.json", raw)
        code, _, err = self._run(["encode", "--input", path])
        self.assertEqual(code, 2)
        self.assertIn("[ERR_LINK_TSIZE]", err)

        code, out, _ = self._run(["encode", "--prepare", "--hex", "--input", path])
        self.assertEqual(code, 0)
        self.assertEqual(decode(bytes.fromhex(out.strip())).Links[0].Tsize, 5)

    def test_encode_prepare_fractional_tsize_rejected(self):
        raw = _json({"Links": [_link_json()]})[:-3] + b', "Tsize": 5.5}]}'
        path = self._write("frac.json", raw)
        code, _, err = self._run(["encode", "--prepare", "--input", path])
        self.assertEqual(code, 2)
        self.assertIn("[ERR_LINK_TSIZE]", err)

    def test_validate(self):
        ok = self._write("ok.json", b'{"Links": []}')
        bad = self._write("bad.json", b'{"Links": [], "Extra": 1}')
        self.assertEqual(self._run(["validate", "--input", ok])[:2], (0, "OK\n"))
        code, _, err = self._run(["validate", "--input", bad])
        self.assertEqual(code, 2)
        self.assertIn("[ERR_EXTRANEOUS]", err)

    def test_no_command(self):
        code, _, _ = self._run([])
        self.assertEqual(code, 1)


if __name__ == "__main__":
    unittest.main()
