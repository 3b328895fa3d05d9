#!/usr/bin/env python3
"""Load test / benchmark script for the recommendation API.

Usage:
    python scripts/benchmark.py --base-url http://localhost:8000 --concurrency 10 --requests 100
"""

import argparse
import asyncio
import statistics
import time

import httpx

USERS = ["user-001", "user-002", "user-003", "user-new"]

ENDPOINTS = [
    *[("GET", f"/api/v1/recommendations/{user_id}", {"count": "10"}) for user_id in USERS],
    ("POST", "/api/v1/interactions", {"user_id": "user-bench", "item_id": "prod-001", "action": "view"}),
    ("GET", "/api/v1/health", {}),
]


async def make_request(
    client: httpx.AsyncClient, method: str, url: str, payload: dict
) -> tuple[float, int]:
    start = time.perf_counter()
    try:
        if method == "GET":
            resp = await client.get(url, params=payload)
        else:
            resp = await client.post(url, json=payload)
        return time.perf_counter() - start, resp.status_code
    except httpx.HTTPError:
        return time.perf_counter() - start, 0


async def run_benchmark(base_url: str, concurrency: int, total_requests: int) -> None:
    results: dict[str, list[float]] = {path: [] for _, path, _ in ENDPOINTS}
    errors: dict[str, int] = {path: 0 for _, path, _ in ENDPOINTS}
    strategies: dict[str, int] = {}

    sem = asyncio.Semaphore(concurrency)

    async def bounded_request(client: httpx.AsyncClient, method: str, path: str, payload: dict) -> None:
        async with sem:
            duration, status = await make_request(client, method, f"{base_url}{path}", payload)
            if 200 <= status < 300:
                results[path].append(duration)
            else:
                errors[path] += 1

    async with httpx.AsyncClient(timeout=30.0) as client:
        tasks = []
        for i in range(total_requests):
            method, path, payload = ENDPOINTS[i % len(ENDPOINTS)]
            tasks.append(bounded_request(client, method, path, payload))

        overall_start = time.perf_counter()
        await asyncio.gather(*tasks)
        overall_duration = time.perf_counter() - overall_start

        for user_id in USERS:
            resp = await client.get(f"{base_url}/api/v1/recommendations/{user_id}")
            if resp.status_code == 200:
                strategy = resp.json()["strategy"]
                strategies[strategy] = strategies.get(strategy, 0) + 1

    # Print report
    print(f"\n{'=' * 70}")
    print("HYBRID RECOMMENDER - BENCHMARK REPORT")
    print(f"{'=' * 70}")
    print(f"Total requests: {total_requests} | Concurrency: {concurrency}")
    print(f"Total time: {overall_duration:.2f}s | RPS: {total_requests / overall_duration:.1f}")
    print(f"Strategies served: {strategies}")
    print(f"{'=' * 70}\n")

    for path, latencies in results.items():
        if not latencies:
            print(f"{path}: No successful requests (errors: {errors[path]})")
            continue
        sorted_lat = sorted(latencies)
        p95_idx = min(int(len(sorted_lat) * 0.95), len(sorted_lat) - 1)
        print(f"{path}")
        print(f"  Requests : {len(latencies)} OK, {errors[path]} errors")
        print(f"  Avg      : {statistics.mean(latencies) * 1000:.1f}ms")
        print(f"  P50      : {statistics.median(latencies) * 1000:.1f}ms")
        print(f"  P95      : {sorted_lat[p95_idx] * 1000:.1f}ms")
        print(f"  Min/Max  : {min(latencies) * 1000:.1f}ms / {max(latencies) * 1000:.1f}ms")
        print()


def main() -> None:
    parser = argparse.ArgumentParser(description="Benchmark the hybrid recommendation API")
    parser.add_argument("--base-url", default="http://localhost:8000")
    parser.add_argument("--concurrency", type=int, default=10)
    parser.add_argument("--requests", type=int, default=100)
    args = parser.parse_args()

    asyncio.run(run_benchmark(args.base_url, args.concurrency, args.requests))


if __name__ == "__main__":
    main()
