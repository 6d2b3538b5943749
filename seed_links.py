# seed_links.py
"""
Bulk-create links straight through the configured store (no HTTP hop).

Usage:
  GOLINKS_STORAGE_BACKEND=postgres GOLINKS_DB_DSN=postgresql://... \
      python seed_links.py --count 2000 --prefix mk --out mock_codes.jsonl
"""
import argparse
import json
import time
from datetime import datetime, timezone

from golinks.directory.generator import BASE62_ALPHABET
from golinks.errors import StoreError, UniquenessViolation
from golinks.storage.storage_factory import get_storage


def base62(n: int) -> str:
    if n == 0:
        return "0"
    out = []
    while n > 0:
        n, r = divmod(n, 62)
        out.append(BASE62_ALPHABET[r])
    return "".join(reversed(out))


def now_iso():
    return datetime.now(timezone.utc).isoformat()


def main():
    ap = argparse.ArgumentParser()
    ap.add_argument("--backend", default=None, help="memory or postgres (default: GOLINKS_STORAGE_BACKEND)")
    ap.add_argument("--dsn", default=None, help="overrides GOLINKS_DB_DSN")
    ap.add_argument("--count", type=int, default=2000, help="rows to insert")
    ap.add_argument("--prefix", default="mk", help="code prefix")
    ap.add_argument("--start", type=int, default=1_000_000, help="counter start")
    ap.add_argument("--out", default="mock_codes.jsonl")
    args = ap.parse_args()

    store = get_storage(args.backend, dsn=args.dsn)
    ensure_schema = getattr(store, "ensure_schema", None)
    if ensure_schema is not None:
        ensure_schema()

    start_iso = now_iso()
    t0 = time.perf_counter()
    ok = skipped = failed = 0

    with open(args.out, "w", encoding="utf-8") as outf:
        for i in range(args.count):
            n = args.start + i
            code = f"{args.prefix}{base62(n).rjust(6, '0')}"
            url = f"https://example.com/{n}"
            try:
                store.insert(code, url)
            except UniquenessViolation:
                skipped += 1
            except StoreError as exc:
                failed += 1
                print(f"insert {code} failed: {exc}")
                continue
            else:
                ok += 1
            outf.write(json.dumps({"code": code, "url": url}) + "\n")

    dt = time.perf_counter() - t0
    print(f"START: {start_iso}")
    print(f"END:   {now_iso()}")
    print(f"TOTAL: {dt:.3f} s")
    print(f"INSERTED: {ok}/{args.count} rows (existing={skipped}, failed={failed})")
    if dt > 0:
        print(f"RPS: {ok/dt:.1f} rows/s")

if __name__ == "__main__":
    main()
