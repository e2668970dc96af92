import argparse
import asyncio
import time
import numpy as np
import httpx

parser = argparse.ArgumentParser()
parser.add_argument('--shard', type=str, default='http://localhost:7001')
parser.add_argument('--q', type=int, default=200)
parser.add_argument('--dim', type=int, default=384)
parser.add_argument('--k', type=int, default=10)
parser.add_argument('--concurrency', type=int, default=32)
parser.add_argument('--dtype', type=str, default='float32', choices=['float32', 'float64'])
parser.add_argument('--batch', type=int, default=0, help='queries per /search/batch call (0 = single /search)')
args = parser.parse_args()

async def worker(client, queries, latencies):
    if args.batch > 0:
        for start in range(0, len(queries), args.batch):
            chunk = queries[start:start + args.batch]
            body = {"queries": {f"q{start + i}": q.tolist() for i, q in enumerate(chunk)},
                    "k": args.k, "dtype": args.dtype, "include_metadata": False}
            t0 = time.perf_counter()
            r = await client.post(f"{args.shard}/search/batch", json=body)
            r.raise_for_status()
            # spread the call latency over its queries
            latencies.extend([(time.perf_counter() - t0) / len(chunk)] * len(chunk))
        return
    for q in queries:
        t0 = time.perf_counter()
        r = await client.post(f"{args.shard}/search", json={"embedding": q.tolist(), "k": args.k,
                                                             "dtype": args.dtype, "include_metadata": False})
        r.raise_for_status()
        latencies.append(time.perf_counter() - t0)

async def main():
    Q = np.random.randn(args.q, args.dim).astype(args.dtype)
    norms = np.linalg.norm(Q, axis=1, keepdims=True) + 1e-12
    Q = Q / norms
    latencies = []
    async with httpx.AsyncClient(timeout=60) as client:
        chunks = np.array_split(Q, args.concurrency)
        await asyncio.gather(*[worker(client, ch, latencies) for ch in chunks])
    lat = np.array(latencies)
    print(f"QPS: {args.q/lat.sum():.2f}")
    for p in [50, 95, 99]:
        print(f"p{p}: {np.percentile(lat*1000, p):.2f} ms")

if __name__ == '__main__':
    asyncio.run(main())
