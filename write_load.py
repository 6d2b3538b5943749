"""
write_load.py - create-path load for GoLinks

Mixes generated and custom short codes. A share of the requests re-claims a
custom code used earlier in the same run, so the run also drives the 409 path
concurrently: every contested code must end with exactly one winner.
Created links are written as JSONL ({"code", "url"}) for read_load.py.

Usage:
  python write_load.py --base http://127.0.0.1:8000 --count 2000 --concurrency 100 \
      --custom-share 0.3 --contested-share 0.1 --out links_created.jsonl
"""
import argparse
import asyncio
import json
import random
import statistics
import time
import uuid
from collections import Counter
from typing import Dict, List, Optional

import httpx


def plan_requests(
    count: int,
    custom_share: float,
    contested_share: float,
    run_id: str,
    rng: random.Random,
) -> List[Dict[str, str]]:
    """Build POST bodies; contested ones reuse a custom code claimed earlier in the plan."""
    bodies = []
    claimed: List[str] = []
    for i in range(count):
        body = {"target_url": f"https://load.example/{run_id}/{i}"}
        roll = rng.random()
        if claimed and roll < contested_share:
            body["short_code"] = rng.choice(claimed)
        elif roll < contested_share + custom_share:
            code = f"{run_id}-{i}"
            claimed.append(code)
            body["short_code"] = code
        bodies.append(body)
    return bodies


def expected_conflicts(bodies: List[Dict[str, str]]) -> int:
    """Requests that must lose with 409: every claim of a custom code but the first."""
    claims = Counter(b["short_code"] for b in bodies if "short_code" in b)
    return sum(n - 1 for n in claims.values())


def latency_summary(latencies: List[float]) -> str:
    if len(latencies) < 2:
        return "n/a"
    cuts = statistics.quantiles(latencies, n=100)
    return f"p50={cuts[49] * 1000:.1f}ms p95={cuts[94] * 1000:.1f}ms max={max(latencies) * 1000:.1f}ms"


async def run(
    base: str,
    bodies: List[Dict[str, str]],
    concurrency: int,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> dict:
    """POST every body; tally status codes and collect the links that were created."""
    statuses: Counter = Counter()
    created: List[Dict[str, str]] = []
    latencies: List[float] = []

    limits = httpx.Limits(max_connections=concurrency, max_keepalive_connections=concurrency)
    async with httpx.AsyncClient(limits=limits, transport=transport) as client:
        sem = asyncio.Semaphore(concurrency)

        async def _post(body):
            async with sem:
                started = time.perf_counter()
                try:
                    r = await client.post(f"{base}/api/links", json=body, timeout=10)
                except httpx.HTTPError as exc:
                    statuses[type(exc).__name__] += 1
                    return
                latencies.append(time.perf_counter() - started)
                statuses[r.status_code] += 1
                if r.status_code == 201:
                    created.append({"code": r.json()["short_code"], "url": body["target_url"]})

        t0 = time.perf_counter()
        await asyncio.gather(*(_post(body) for body in bodies))
        elapsed = time.perf_counter() - t0

    return {"elapsed": elapsed, "statuses": statuses, "created": created, "latencies": latencies}


def main():
    parser = argparse.ArgumentParser(description="Create-path load for GoLinks")
    parser.add_argument("--base", default="http://127.0.0.1:8000")
    parser.add_argument("--count", type=int, default=2000)
    parser.add_argument("--concurrency", type=int, default=100)
    parser.add_argument("--custom-share", type=float, default=0.3,
                        help="fraction of requests that claim a fresh custom code")
    parser.add_argument("--contested-share", type=float, default=0.1,
                        help="fraction of requests that re-claim an earlier custom code")
    parser.add_argument("--seed", type=int, default=None)
    parser.add_argument("--out", default="links_created.jsonl")
    args = parser.parse_args()

    run_id = uuid.uuid4().hex[:8]
    bodies = plan_requests(args.count, args.custom_share, args.contested_share, run_id, random.Random(args.seed))
    result = asyncio.run(run(args.base, bodies, args.concurrency))

    with open(args.out, "w", encoding="utf-8") as out_f:
        for row in result["created"]:
            out_f.write(json.dumps(row) + "\n")

    statuses = result["statuses"]
    conflicts = expected_conflicts(bodies)
    print(f"RUN:       {run_id}")
    print(f"TOTAL:     {result['elapsed']:.3f} s for {len(bodies)} requests")
    print(f"STATUSES:  {dict(statuses)}")
    print(f"CONFLICTS: expected={conflicts} observed={statuses.get(409, 0)}")
    print(f"LATENCY:   {latency_summary(result['latencies'])}")
    if result["elapsed"] > 0:
        print(f"TPS:       {len(result['created']) / result['elapsed']:.1f} created/s")
    print(f"OUT:       {len(result['created'])} links -> {args.out}")


if __name__ == "__main__":
    main()
