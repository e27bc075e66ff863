#!/usr/bin/env python3
# tools/invariants_runner.py
#
# Determinism invariants (property tests) for the dagpb codec.
#
# This runner:
# - generates random link sets with tricky UTF-8 names
# - checks the comparator is a total order consistent with bytes ordering
# - checks that any permutation of the same links prepares to identical bytes
# - checks that prepare() output always passes validate()
#
# Exit code:
#   0 -> all checks passed
#   1 -> invariant violation

import os, sys, random
from typing import Any, List

ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
sys.path.insert(0, ROOT)

from multiformats import CID

from dagpb import PBLink, compare, encode, is_valid, prepare

SEED = int(os.environ.get("DAGPB_SEED", "1337"))
TRIALS = int(os.environ.get("DAGPB_TRIALS", "2000"))
MAX_LINKS = int(os.environ.get("DAGPB_GEN_MAX_LINKS", "8"))
MAX_NAME = int(os.environ.get("DAGPB_GEN_MAX_NAME", "6"))

random.seed(SEED)

def violation(msg: str, ctx: Any) -> None:
    print("VIOLATION:", msg)
    print("CTX:", repr(ctx)[:4000])
    raise SystemExit(1)

def rand_utf8_string() -> str:
    # Scalars only; small alphabet so prefixes and ties are common.
    out = []
    for _ in range(random.randint(0, MAX_NAME)):
        r = random.random()
        if r < 0.70:
            out.append(random.choice("aAb~"))
        elif r < 0.85:
            out.append(chr(random.randint(0xA0, 0xFF)))
        elif r < 0.95:
            out.append(chr(random.randint(0x0100, 0xD7FF)))
        else:
            out.append(chr(random.randint(0x10000, 0x10FFFF)))
    return "".join(out)

def rand_link() -> PBLink:
    digest = bytes(random.getrandbits(8) for _ in range(32))
    name = rand_utf8_string() if random.random() < 0.9 else None
    return PBLink(Hash=CID.decode(b"\x12\x20" + digest), Name=name,
                  Tsize=random.randint(-5, 1 << 20))

def check_comparator(a: PBLink, b: PBLink) -> None:
    ab, ba = compare(a, b), compare(b, a)
    if ab != -ba:
        violation("comparator not antisymmetric", (a, b))
    ka = (a.Name or "").encode("utf-8")
    kb = (b.Name or "").encode("utf-8")
    if ab != (ka > kb) - (ka < kb):
        violation("comparator disagrees with bytes ordering", (a, b))

def main() -> int:
    for t in range(TRIALS):
        links: List[PBLink] = [rand_link() for _ in range(random.randint(0, MAX_LINKS))]

        for i in range(len(links)):
            for j in range(len(links)):
                check_comparator(links[i], links[j])

        # Names are made unique so permutations cannot reorder ties.
        seen = set()
        uniq = []
        for link in links:
            if (link.Name or "") not in seen:
                seen.add(link.Name or "")
                uniq.append(link)

        node = prepare({"Links": uniq})
        if not is_valid(node):
            violation("prepare() output failed validate()", node)
        expected = encode(node)

        shuffled = uniq[:]
        random.shuffle(shuffled)
        if encode(prepare({"Links": shuffled})) != expected:
            violation("permutation changed encoded bytes", (t, shuffled))

    print(f"OK: invariants trials={TRIALS} seed={SEED}")
    return 0

if __name__ == "__main__":
    raise SystemExit(main())
