#!/usr/bin/env python3
# tools/invariants_runner.py
#
# Codec invariants (property tests) over randomly generated values.
#
# This runner:
# - generates random host values (maps, lists, tables, scalars) within limits
# - checks decode(encode(v)) == v for every mode, delimiter and compression flag
# - checks encode(decode(encode(v))) == encode(v)
# - mutates encoded documents and checks decode either succeeds or raises AxonError
#
# Exit code:
#   0 -> all checks passed
#   1 -> invariant violation

import os, sys, json, random
from typing import Any, Dict, List

ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
sys.path.insert(0, ROOT)

from axon import AxonError, MODES, decode, encode

SEED = int(os.environ.get("AXON_SEED", "1337"))
TRIALS = int(os.environ.get("AXON_TRIALS", "500"))
MAX_GEN_DEPTH = int(os.environ.get("AXON_GEN_MAX_DEPTH", "5"))
MAX_KEYS = int(os.environ.get("AXON_GEN_MAX_KEYS", "6"))
MAX_LIST = int(os.environ.get("AXON_GEN_MAX_LIST", "6"))
MAX_STR = int(os.environ.get("AXON_GEN_MAX_STR", "16"))
MAX_ROWS = int(os.environ.get("AXON_GEN_MAX_ROWS", "120"))
MUTATIONS = int(os.environ.get("AXON_MUTATIONS", "4"))

DELIMITERS = ("pipe", "comma", "tab")
FIELD_NAMES = ["id", "name", "ts", "created", "value", "status", "note", "x", "y", "start_time"]
MUTATION_CHARS = "|,:[]{}@~*+-\"\n\t#0123456789ax"

random.seed(SEED)

def rand_utf8_string() -> str:
    # Generate scalars excluding surrogate range; include tricky chars occasionally.
    out = []
    n = random.randint(0, MAX_STR)
    for _ in range(n):
        r = random.random()
        if r < 0.70:
            out.append(chr(random.randint(0x20, 0x7E)))
        elif r < 0.80:
            out.append(random.choice("\n\t\r"))
        elif r < 0.90:
            out.append(chr(random.randint(0xA0, 0xFF)))
        elif r < 0.97:
            cp = random.randint(0x0100, 0xD7FF)  # exclude surrogates
            out.append(chr(cp))
        else:
            cp = random.randint(0x10000, 0x10FFFF)
            out.append(chr(cp))
    return "".join(out)

def rand_word() -> str:
    return random.choice(["active", "idle", "eu", "us", "true", "null", "", "a b", "x|y", "v1.2"])

def rand_scalar() -> Any:
    r = random.random()
    if r < 0.10:
        return None
    if r < 0.20:
        return random.random() < 0.5
    if r < 0.45:
        return random.choice([0, 1, -1, 255, 256, -129, 2**32, 2**64 - 1, -(2**63),
                              random.randint(-10**6, 10**6)])
    if r < 0.60:
        return random.choice([0.0, -0.0, 0.5, 1e-7, 1e20, random.uniform(-1e3, 1e3)])
    if r < 0.80:
        return rand_word()
    return rand_utf8_string()

def gen_column(n: int, name: str) -> List[Any]:
    kind = random.random()
    if kind < 0.2:
        # long runs
        out: List[Any] = []
        while len(out) < n:
            out.extend([rand_word()] * random.randint(1, 40))
        return out[:n]
    if kind < 0.35:
        base = random.randint(0, 2**31)
        out = [base]
        for _ in range(n - 1):
            out.append(out[-1] + random.choice([1, 1, 2, 60, -3]))
        return out
    if kind < 0.5:
        return [None if random.random() < 0.7 else rand_scalar() for _ in range(n)]
    if kind < 0.6:
        return [random.randint(0, 500) for _ in range(n)]
    return [rand_scalar() for _ in range(n)]

def gen_table() -> List[Dict[str, Any]]:
    n = random.randint(1, MAX_ROWS)
    fields = random.sample(FIELD_NAMES, random.randint(1, 5))
    columns = {f: gen_column(n, f) for f in fields}
    rows = [{f: columns[f][i] for f in fields} for i in range(n)]
    if random.random() < 0.1 and len(rows) > 1:
        # same keys, different order
        last = rows[-1]
        rows[-1] = {k: last[k] for k in reversed(list(last))}
    return rows

def gen_value(depth: int) -> Any:
    if depth >= MAX_GEN_DEPTH:
        return rand_scalar()
    r = random.random()
    if r < 0.35:
        n = random.randint(0, MAX_KEYS)
        keys = [rand_utf8_string() if random.random() < 0.3 else random.choice(FIELD_NAMES)
                for _ in range(n)]
        keys = list(dict.fromkeys(keys))  # de-dup
        d: Dict[str, Any] = {}
        for k in keys:
            d[k] = gen_value(depth + 1)
        return d
    if r < 0.55:
        n = random.randint(0, MAX_LIST)
        return [gen_value(depth + 1) for _ in range(n)]
    if r < 0.75:
        return gen_table()
    return rand_scalar()

def same(a: Any, b: Any) -> bool:
    if type(a) is not type(b):
        return False
    if isinstance(a, dict):
        return list(a) == list(b) and all(same(a[k], b[k]) for k in a)
    if isinstance(a, list):
        return len(a) == len(b) and all(same(x, y) for x, y in zip(a, b))
    if isinstance(a, float):
        return repr(a) == repr(b)
    return a == b

def mutate(text: str) -> str:
    if not text:
        return random.choice(MUTATION_CHARS)
    i = random.randrange(len(text))
    r = random.random()
    if r < 0.3:
        return text[:i] + text[i + 1:]
    if r < 0.6:
        return text[:i] + random.choice(MUTATION_CHARS) + text[i:]
    if r < 0.8:
        return text[:i] + random.choice(MUTATION_CHARS) + text[i + 1:]
    return text[:i]

def fail(label: str, context: Dict[str, Any]) -> None:
    print("INVARIANT FAIL:", label)
    print("CTX:", json.dumps(context, ensure_ascii=False, default=repr)[:2000])
    raise SystemExit(1)

def main() -> int:
    checked = 0
    for t in range(TRIALS):
        v = gen_value(0)
        for mode in MODES:
            delimiter = random.choice(DELIMITERS)
            compression = random.random() < 0.5
            opts = {"mode": mode, "delimiter": delimiter, "compression": compression}

            # (1) Round trip
            text = encode(v, **opts)
            back = decode(text)
            if not same(back, v):
                fail("round trip", {"trial": t, "opts": opts, "text": text})

            # (2) Idempotence
            if encode(back, **opts) != text:
                fail("encode idempotence", {"trial": t, "opts": opts, "text": text})

            # (3) Mutated documents decode fully or raise AxonError
            for _ in range(MUTATIONS):
                bad = mutate(text)
                try:
                    decode(bad)
                except AxonError:
                    pass
                except Exception as e:
                    fail("non-AxonError on malformed input",
                         {"trial": t, "error": repr(e), "text": bad})
            checked += 1

    print(f"OK: invariants passed for TRIALS={TRIALS} seed={SEED} ({checked} encodings)")
    return 0

if __name__ == "__main__":
    raise SystemExit(main())
