#!/usr/bin/env python3
"""Load test script: shows the per-IP rate limit on a running service.

RUN:  python scripts/load_test_rate_limit.py [BASE_URL]

Sends TOTAL_REQUESTS issuance requests in rapid succession and prints how
many were issued (201) vs. throttled (429).  Start the service with a
small bucket to see the cutoff quickly:

    RATE_LIMIT_CAPACITY=20 SERVICE=issuance python -m credsvc

This is a demonstration, not a load testing tool; use locust or k6 for that.
"""

from __future__ import annotations

import sys
import time
from collections import Counter

import httpx

BASE_URL = "http://localhost:3001"
TOTAL_REQUESTS = 120


def main() -> None:
    base_url = sys.argv[1] if len(sys.argv) > 1 else BASE_URL
    print("Rate Limit Load Test")
    print("=" * 50)
    print(f"Target: {base_url}/issue")
    print(f"Total requests: {TOTAL_REQUESTS}")
    print()

    statuses: Counter[int] = Counter()
    first_throttled: int | None = None
    retry_after: str | None = None

    start = time.monotonic()
    with httpx.Client(base_url=base_url, timeout=10) as client:
        for i in range(TOTAL_REQUESTS):
            try:
                resp = client.post("/issue", json={"name": f"load-{i}"})
            except httpx.HTTPError as e:
                print(f"Request {i} failed: {e}")
                sys.exit(1)
            statuses[resp.status_code] += 1
            if resp.status_code == 429 and first_throttled is None:
                first_throttled = i + 1
                retry_after = resp.headers.get("retry-after")
    elapsed = time.monotonic() - start

    print(f"Finished in {elapsed:.2f}s")
    for status, count in sorted(statuses.items()):
        print(f"  {status}: {count}")
    if first_throttled is not None:
        print(f"First 429 on request #{first_throttled} (Retry-After: {retry_after}s)")
    else:
        print("No requests were throttled; raise TOTAL_REQUESTS or lower RATE_LIMIT_CAPACITY")


if __name__ == "__main__":
    main()
