"""
read_load.py - redirect load with click-count reconciliation

Hits GET /<code> for codes listed in a JSONL file (from write_load.py or
seed_links.py). Click counts are updated after the 301 has gone out, so the
run then polls GET /api/links until every code shows the redirects this run
served on top of its starting count, and reports any clicks still missing
when --settle-timeout runs out.

Usage:
  python read_load.py --base http://127.0.0.1:8000 --in links_created.jsonl --count 15000 --concurrency 200
"""
import argparse
import asyncio
import json
import random
import time
from collections import Counter
from typing import Dict, List, Mapping, Optional

import httpx

from write_load import latency_summary


def load_codes(path: str) -> List[str]:
    codes = []
    with open(path, "r", encoding="utf-8") as f:
        for line in f:
            if not line.strip():
                continue
            try:
                code = json.loads(line).get("code")
            except json.JSONDecodeError:
                continue
            if code:
                codes.append(code)
    return codes


async def fetch_click_counts(client: httpx.AsyncClient, base: str) -> Dict[str, int]:
    r = await client.get(f"{base}/api/links", timeout=30)
    r.raise_for_status()
    return {link["short_code"]: link["click_count"] for link in r.json()}


def reconcile_clicks(
    baseline: Mapping[str, int],
    served: Mapping[str, int],
    observed: Mapping[str, int],
) -> Dict[str, int]:
    """Clicks not yet visible per code: starting count + redirects served - current count."""
    missing = {}
    for code, hits in served.items():
        gap = baseline.get(code, 0) + hits - observed.get(code, 0)
        if gap > 0:
            missing[code] = gap
    return missing


async def wait_for_counts(
    client: httpx.AsyncClient,
    base: str,
    baseline: Mapping[str, int],
    served: Mapping[str, int],
    settle_timeout: float,
    poll_interval: float = 0.25,
) -> Dict[str, int]:
    deadline = time.monotonic() + settle_timeout
    while True:
        missing = reconcile_clicks(baseline, served, await fetch_click_counts(client, base))
        if not missing or time.monotonic() >= deadline:
            return missing
        await asyncio.sleep(poll_interval)


async def run(
    base: str,
    codes: List[str],
    count: int,
    concurrency: int,
    settle_timeout: float,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> dict:
    """Fire `count` redirects at random codes, then reconcile click counts."""
    statuses: Counter = Counter()
    served: Counter = Counter()
    latencies: List[float] = []

    limits = httpx.Limits(max_connections=concurrency, max_keepalive_connections=concurrency)
    async with httpx.AsyncClient(limits=limits, transport=transport) as client:
        baseline = await fetch_click_counts(client, base)
        sem = asyncio.Semaphore(concurrency)

        async def _hit(code):
            async with sem:
                started = time.perf_counter()
                try:
                    r = await client.get(f"{base}/{code}", follow_redirects=False, timeout=10)
                except httpx.HTTPError as exc:
                    statuses[type(exc).__name__] += 1
                    return
                latencies.append(time.perf_counter() - started)
                statuses[r.status_code] += 1
                if r.status_code == 301:
                    served[code] += 1

        t0 = time.perf_counter()
        await asyncio.gather(*(_hit(random.choice(codes)) for _ in range(count)))
        elapsed = time.perf_counter() - t0

        t1 = time.perf_counter()
        missing = await wait_for_counts(client, base, baseline, served, settle_timeout)
        settle = time.perf_counter() - t1

    return {
        "elapsed": elapsed,
        "settle": settle,
        "statuses": statuses,
        "served": served,
        "missing": missing,
        "latencies": latencies,
    }


def main():
    parser = argparse.ArgumentParser(description="Redirect load for GoLinks")
    parser.add_argument("--base", default="http://127.0.0.1:8000")
    parser.add_argument("--in", dest="codes_file", default="links_created.jsonl")
    parser.add_argument("--count", type=int, default=15000)
    parser.add_argument("--concurrency", type=int, default=200)
    parser.add_argument("--settle-timeout", type=float, default=30.0,
                        help="seconds to wait for click counts to catch up")
    args = parser.parse_args()

    codes = load_codes(args.codes_file)
    if not codes:
        print(f"No codes found in {args.codes_file}. Run write_load.py or seed_links.py first.")
        return

    result = asyncio.run(run(args.base, codes, args.count, args.concurrency, args.settle_timeout))

    served = sum(result["served"].values())
    lost = sum(result["missing"].values())
    print(f"TOTAL:    {result['elapsed']:.3f} s for {args.count} redirects")
    print(f"STATUSES: {dict(result['statuses'])}")
    print(f"LATENCY:  {latency_summary(result['latencies'])}")
    if result["elapsed"] > 0:
        print(f"RPS:      {served / result['elapsed']:.1f} redirects/s")
    print(f"CLICKS:   served={served} counted={served - lost} settle={result['settle']:.2f}s")
    for code, gap in sorted(result["missing"].items(), key=lambda kv: -kv[1])[:10]:
        print(f"  missing {gap} click(s) on {code}")


if __name__ == "__main__":
    main()
