"""
Stress test for the scan path: many concurrent scans through one ScanService.

- Generates mock URLs (mixed benign-looking and phishing-looking) and HTML pages.
- Fires them concurrently through RequestRouter -> WorkerCoordinator -> worker.
- Measures latency percentiles and memory (tracemalloc; RSS via psutil if available).
- Checks that exactly one worker was created for the whole run.
- Uses a stub model unless --model is given; never needs real artifacts.

Run: python -m testing.stress_test
"""

from __future__ import annotations

import argparse
import asyncio
import random
import sys
import time
import tracemalloc
from pathlib import Path
from typing import Any

import numpy as np

# Ensure project root is on path when run as __main__
if __name__ == "__main__":
    _root = Path(__file__).resolve().parent.parent
    if str(_root) not in sys.path:
        sys.path.insert(0, str(_root))

_WORDS = ["login", "secure", "account", "verify", "update", "shop", "news", "blog", "docs", "pay"]
_TLDS = ["com", "net", "org", "tk", "xyz", "id", "io", "top"]


class StubModel:
    """Deterministic stand-in: P(legitimate) from the URL-length feature."""

    def predict(self, X: np.ndarray) -> np.ndarray:
        return np.array([[1.0 / (1.0 + np.exp(0.05 * (X[0, 0] - 40.0)))]])


def generate_mock_urls(n: int, seed: int = 42) -> list[str]:
    """n URLs with random hosts, paths and query strings (deterministic with seed)."""
    rng = random.Random(seed)
    out: list[str] = []
    for i in range(n):
        labels = [rng.choice(_WORDS) for _ in range(rng.randint(1, 3))]
        host = "-".join(labels) + f"{i}." + rng.choice(_TLDS)
        path = "/".join(rng.choice(_WORDS) for _ in range(rng.randint(0, 3)))
        query = f"?id={rng.randint(1, 99999)}" if rng.random() < 0.4 else ""
        scheme = "https" if rng.random() < 0.7 else "http"
        out.append(f"{scheme}://{host}/{path}{query}")
    return out


def generate_mock_page(url: str, rng: random.Random) -> str:
    """Small HTML page; about a third of pages carry a login form."""
    form = ""
    if rng.random() < 0.35:
        form = '<form action="https://collector.tk/x"><input type="password"><input type="submit"></form>'
    links = "".join(f'<a href="/{w}">{w}</a>' for w in rng.sample(_WORDS, 4))
    return (
        f"<html><head><title>{url.split('/')[2]}</title>"
        '<meta name="viewport" content="width=device-width"></head>'
        f"<body>{form}{links}<p>Copyright</p></body></html>"
    )


def percentile(sorted_values: list[float], p: float) -> float:
    """Linear interpolation percentile (e.g. p50, p95, p99)."""
    if not sorted_values:
        return 0.0
    k = (len(sorted_values) - 1) * (p / 100.0)
    f = int(k)
    c = f + 1 if f + 1 < len(sorted_values) else f
    return sorted_values[f] + (k - f) * (sorted_values[c] - sorted_values[f])


def _build_service(model_path: Path | None, timeout_sec: float):
    from guardnet.agent_worker.coordinator import WorkerCoordinator, pipeline_worker_factory
    from guardnet.agent_worker.router import RequestRouter
    from guardnet.ml.normalizer import ScalerStore
    from guardnet.ml.pipeline import PhishingPipeline
    from guardnet.ml.predictor import Classifier
    from guardnet.navigation.gate import NavigationGate
    from guardnet.scanner.service import ScanService

    if model_path is not None:
        classifier = Classifier(model_path)
    else:
        classifier = Classifier("stub", loader=lambda path: StubModel())
    pipeline = PhishingPipeline(classifier, ScalerStore(Path("/nonexistent/scaler.json")))
    coordinator = WorkerCoordinator(pipeline_worker_factory(pipeline))
    router = RequestRouter(coordinator, default_timeout_sec=timeout_sec)
    return ScanService(
        router,
        NavigationGate(),
        popup_timeout_sec=timeout_sec,
        page_scan_timeout_sec=timeout_sec,
        coordinator=coordinator,
    )


async def run_stress(
    num_urls: int = 500,
    concurrency: int = 32,
    with_content: bool = True,
    model_path: Path | None = None,
    timeout_sec: float = 15.0,
    seed: int = 42,
) -> dict[str, Any]:
    """
    Execute stress test: mock URLs scanned concurrently through one service.
    Returns dict with latency stats, memory stats, tier counts and worker creations.
    """
    rng = random.Random(seed + 1)
    urls = generate_mock_urls(num_urls, seed=seed)
    pages = {u: generate_mock_page(u, rng) if with_content else "" for u in urls}
    service = _build_service(model_path, timeout_sec)
    limit = asyncio.Semaphore(concurrency)
    latencies: list[float] = []
    tiers: dict[str, int] = {}
    errors = 0

    async def one(url: str) -> None:
        nonlocal errors
        async with limit:
            t0 = time.perf_counter()
            result = await service.scan(url, pages[url])
            latencies.append(time.perf_counter() - t0)
        if result.success:
            tiers[result.tier.value] = tiers.get(result.tier.value, 0) + 1
        else:
            errors += 1

    tracemalloc.start()
    try:
        start_mem_current, _ = tracemalloc.get_traced_memory()
        t_start = time.perf_counter()
        await asyncio.gather(*(one(u) for u in urls))
        t_end = time.perf_counter()
        end_mem_current, end_mem_peak = tracemalloc.get_traced_memory()
    finally:
        tracemalloc.stop()
        await service.close()

    total_wall_s = t_end - t_start
    latencies.sort()
    n = len(latencies)
    return {
        "num_urls": num_urls,
        "concurrency": concurrency,
        "completed": n,
        "errors": errors,
        "tiers": tiers,
        "worker_creations": service.coordinator.creations,
        "wall_sec": total_wall_s,
        "throughput_scans_per_sec": n / total_wall_s if total_wall_s > 0 else 0,
        "latency_sec": {
            "min": latencies[0] if latencies else 0,
            "max": latencies[-1] if latencies else 0,
            "mean": sum(latencies) / n if n else 0,
            "p50": percentile(latencies, 50),
            "p95": percentile(latencies, 95),
            "p99": percentile(latencies, 99),
        },
        "memory_tracemalloc": {
            "start_current_mb": start_mem_current / (1024 * 1024),
            "end_current_mb": end_mem_current / (1024 * 1024),
            "peak_mb": end_mem_peak / (1024 * 1024),
        },
    }


def get_rss_mb() -> float | None:
    """RSS in MB if psutil is available."""
    try:
        import psutil
        return psutil.Process().memory_info().rss / (1024 * 1024)
    except ImportError:
        return None


def print_report(results: dict[str, Any], include_rss: bool = True) -> None:
    """Print a clear performance report to stdout."""
    rss = get_rss_mb() if include_rss else None
    lat = results["latency_sec"]
    mem = results["memory_tracemalloc"]
    tiers = ", ".join(f"{k}={v}" for k, v in sorted(results["tiers"].items())) or "-"

    lines = [
        "",
        "=" * 60,
        "SCAN STRESS TEST REPORT",
        "=" * 60,
        f"  URLs scanned:         {results['num_urls']}",
        f"  Concurrency:          {results['concurrency']}",
        f"  Completed:            {results['completed']}",
        f"  Errors:               {results['errors']}",
        f"  Tiers:                {tiers}",
        f"  Worker creations:     {results['worker_creations']}",
        "",
        "  Latency (per scan)",
        "  --------------------------------",
        f"    Min:    {lat['min']:.4f} s",
        f"    Mean:   {lat['mean']:.4f} s",
        f"    P50:    {lat['p50']:.4f} s",
        f"    P95:    {lat['p95']:.4f} s",
        f"    P99:    {lat['p99']:.4f} s",
        f"    Max:    {lat['max']:.4f} s",
        "",
        "  Throughput",
        "  --------------------------------",
        f"    Wall time:           {results['wall_sec']:.2f} s",
        f"    Scans / second:      {results['throughput_scans_per_sec']:.2f}",
        "",
        "  Memory (tracemalloc)",
        "  --------------------------------",
        f"    Start (current):     {mem['start_current_mb']:.2f} MB",
        f"    End (current):       {mem['end_current_mb']:.2f} MB",
        f"    Peak:                {mem['peak_mb']:.2f} MB",
    ]
    if rss is not None:
        lines.append(f"    Process RSS:          {rss:.2f} MB")
    lines.extend(["", "=" * 60, ""])
    print("\n".join(lines))


def main() -> int:
    parser = argparse.ArgumentParser(
        description="Stress test concurrent scans through one inference worker."
    )
    parser.add_argument("--urls", type=int, default=500, help="Number of mock URLs (default: 500)")
    parser.add_argument("--concurrency", type=int, default=32, help="Concurrent scans (default: 32)")
    parser.add_argument("--no-content", action="store_true", help="Scan URLs without HTML")
    parser.add_argument("--model", type=Path, default=None, help="joblib model (default: stub model)")
    parser.add_argument("--timeout", type=float, default=15.0, help="Per-request deadline in seconds")
    parser.add_argument("--seed", type=int, default=42, help="RNG seed for reproducibility (default: 42)")
    parser.add_argument("--no-rss", action="store_true", help="Skip RSS memory (psutil) in report")
    args = parser.parse_args()

    if args.urls < 1:
        print("error: --urls must be >= 1", file=sys.stderr)
        return 1
    if args.concurrency < 1:
        print("error: --concurrency must be >= 1", file=sys.stderr)
        return 1

    results = asyncio.run(
        run_stress(
            num_urls=args.urls,
            concurrency=args.concurrency,
            with_content=not args.no_content,
            model_path=args.model,
            timeout_sec=args.timeout,
            seed=args.seed,
        )
    )
    print_report(results, include_rss=not args.no_rss)
    return 0 if results["errors"] == 0 and results["worker_creations"] == 1 else 1


if __name__ == "__main__":
    sys.exit(main())
