#!/usr/bin/env python3
# tools/fuzz_runner.py
#
# Decode fuzzing for the dagpb codec.
#
# Generates three fuzz categories:
#   A) random VALID nodes -> encode -> decode -> encode, bytes must match
#   B) encoded nodes with random byte flips / truncation / insertion ->
#      decode must return a node or raise DecodeError, nothing else
#   C) short random Hash text -> prepare must return a node or raise
#      FormError, nothing else
#
# Any failure prints a minimal repro payload and exits non-zero.

import os, sys, json, random
from typing import Any, Dict, List

ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
sys.path.insert(0, ROOT)

from multiformats import CID

from dagpb import DecodeError, FormError, PBNode, decode, encode, prepare

SEED = int(os.environ.get("DAGPB_SEED", "4242"))
ROUNDS = int(os.environ.get("DAGPB_FUZZ_ROUNDS", "5000"))

random.seed(SEED)

def fail(label: str, raw: bytes, ctx: Dict[str, Any]) -> None:
    print("FAIL:", label)
    print("HEX :", raw.hex())
    print("CTX :", json.dumps(ctx, ensure_ascii=False, default=str)[:4000])
    raise SystemExit(1)

# --- generators ---

def rand_bytes(nmax: int) -> bytes:
    return bytes(random.getrandbits(8) for _ in range(random.randint(0, nmax)))

def rand_name() -> str:
    n = random.randint(0, 8)
    # Mostly ASCII, with the occasional multi-byte code point.
    pool = [chr(random.randint(0x20, 0x7E)) for _ in range(n)]
    if random.random() < 0.2:
        pool.append(random.choice(["é", "ÿ", "｡", "\U0001f600"]))
    return "".join(pool)

def rand_cid() -> CID:
    digest = bytes(random.getrandbits(8) for _ in range(32))
    if random.random() < 0.3:
        return CID.decode(b"\x12\x20" + digest)
    codec = random.choice([0x55, 0x70, 0x71])
    return CID.decode(bytes([0x01, codec, 0x12, 0x20]) + digest)

def rand_node() -> PBNode:
    links: List[Dict[str, Any]] = []
    for _ in range(random.randint(0, 6)):
        link: Dict[str, Any] = {"Hash": rand_cid()}
        if random.random() < 0.8:
            link["Name"] = rand_name()
        if random.random() < 0.7:
            link["Tsize"] = random.choice([0, 1, 300, 2**32, 2**63 - 1, -1, -5])
        links.append(link)
    data = rand_bytes(40) if random.random() < 0.6 else None
    return prepare({"Data": data, "Links": links})

def rand_hash_text() -> str:
    # Multibase prefixes followed by a few characters, often nothing at all.
    prefix = random.choice(["b", "z", "m", "u", "f", "Q", "\x00", ""])
    tail = "".join(random.choice("abcdefz0123Qm=") for _ in range(random.randint(0, 4)))
    return prefix + tail

def mutate(raw: bytes) -> bytes:
    buf = bytearray(raw)
    op = random.random()
    if op < 0.4 and buf:
        for _ in range(random.randint(1, 3)):
            buf[random.randrange(len(buf))] = random.getrandbits(8)
    elif op < 0.7 and buf:
        del buf[random.randrange(len(buf)):]
    else:
        pos = random.randint(0, len(buf))
        buf[pos:pos] = rand_bytes(6)
    return bytes(buf)

def main() -> int:
    for i in range(ROUNDS):
        node = rand_node()
        raw = encode(node)

        # C) malformed Hash text through prepare
        if random.random() < 0.2:
            text = rand_hash_text()
            try:
                prepare({"Links": [{"Hash": text}]})
            except FormError:
                pass
            except Exception as e:
                fail("C unexpected {}".format(type(e).__name__), text.encode("utf-8"),
                     {"round": i, "hash": text, "error": str(e)})
            continue

        # A) canonical round-trip
        if random.random() < 0.5:
            again = encode(decode(raw))
            if again != raw:
                fail("A round-trip", raw, {"round": i, "again": again.hex()})
            continue

        # B) mutated input
        bad = mutate(raw)
        try:
            decode(bad)
        except DecodeError:
            pass
        except Exception as e:
            fail("B unexpected {}".format(type(e).__name__), bad, {"round": i, "error": str(e)})

    print(f"OK: fuzz rounds={ROUNDS} seed={SEED} (no failures)")
    return 0

if __name__ == "__main__":
    raise SystemExit(main())
