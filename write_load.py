"""
write_load.py - async load script that creates short links

Usage:
  python write_load.py --base http://127.0.0.1:8000 --count 2000 --concurrency 100 --out links_created.jsonl
  python write_load.py --alias-prefix load --count 500   # aliased links: load-0, load-1, ...
"""
import argparse
import asyncio
import json
import random
import string
import time
from datetime import datetime, timedelta, timezone

import httpx


def _now_iso():
    return datetime.now(timezone.utc).isoformat()


def _rand_host():
    tlds = ["com", "net", "org", "io", "ai"]
    names = ["example", "sample", "demo", "test", "alpha", "beta", "gamma"]
    return f"{random.choice(names)}.{random.choice(tlds)}"


def _rand_path(n=6):
    alphabet = string.ascii_letters + string.digits
    return "".join(random.choice(alphabet) for _ in range(n))


def _payload(idx: int, alias_prefix: str, expire_minutes: int):
    payload = {"originalUrl": f"https://{_rand_host()}/{_rand_path(8)}?q={idx}"}
    if alias_prefix:
        payload["alias"] = f"{alias_prefix}-{idx}"[:20]
    if expire_minutes:
        payload["expiresAt"] = (datetime.now(timezone.utc) + timedelta(minutes=expire_minutes)).isoformat()
    return payload


async def _create_one(client: httpx.AsyncClient, base: str, out_file, payload):
    try:
        r = await client.post(f"{base}/shorten", json=payload, timeout=10)
        r.raise_for_status()
        code = r.json().get("data", {}).get("shortCode")
        if code and out_file:
            out_file.write(json.dumps({"code": code, "url": payload["originalUrl"]}) + "\n")
        return True
    except (httpx.HTTPError, ValueError):
        return False


async def main():
    parser = argparse.ArgumentParser()
    parser.add_argument("--base", default="http://127.0.0.1:8000")
    parser.add_argument("--count", type=int, default=2000)
    parser.add_argument("--concurrency", type=int, default=100)
    parser.add_argument("--alias-prefix", default="", help="create aliased links instead of random codes")
    parser.add_argument("--expire-minutes", type=int, default=0, help="set expiresAt this far ahead")
    parser.add_argument("--out", default="links_created.jsonl")
    args = parser.parse_args()

    start_iso = _now_iso()
    t0 = time.perf_counter()
    success = 0

    limit = httpx.Limits(max_connections=args.concurrency, max_keepalive_connections=args.concurrency)
    # file uses normal "with"; client uses "async with" separately
    with open(args.out, "w", encoding="utf-8") as out_f:
        async with httpx.AsyncClient(limits=limit) as client:
            sem = asyncio.Semaphore(args.concurrency)

            async def _task(i):
                nonlocal success
                async with sem:
                    ok = await _create_one(client, args.base, out_f, _payload(i, args.alias_prefix, args.expire_minutes))
                    if ok:
                        success += 1

            await asyncio.gather(*(_task(i) for i in range(args.count)))

    dt = time.perf_counter() - t0
    end_iso = _now_iso()
    print(f"START: {start_iso}")
    print(f"END:   {end_iso}")
    print(f"TOTAL: {dt:.3f} s")
    print(f"OPS:   writes={args.count}, ok={success}, fail={args.count - success}")
    if dt > 0:
        print(f"TPS:   {success/dt:.1f} req/s")


if __name__ == "__main__":
    asyncio.run(main())
