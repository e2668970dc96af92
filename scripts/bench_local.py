import argparse
import time
import numpy as np

from shard.metrics import Metric
from shard.store import VectorStore

parser = argparse.ArgumentParser(description="In-process search benchmark (no HTTP)")
parser.add_argument('--dims', type=int, nargs='+', default=[128, 384])
parser.add_argument('--counts', type=int, nargs='+', default=[100, 1000])
parser.add_argument('--searches', type=int, default=20)
parser.add_argument('--k', type=int, default=10)
parser.add_argument('--dtype', type=str, default='float32', choices=['float32', 'float64'])
parser.add_argument('--metric', type=str, default='cosine_similarity')
args = parser.parse_args()

def main():
    rng = np.random.default_rng(0)
    metric = Metric.parse(args.metric)
    print(f"metric={metric.value} dtype={args.dtype}")
    for dim in args.dims:
        for count in args.counts:
            store = VectorStore(dimension=dim, metric=metric)
            X = (rng.random((count, dim)) * 2 - 1).astype(args.dtype)

            t0 = time.perf_counter()
            store.batch_add({f"vec_{i}": X[i] for i in range(count)})
            add_s = time.perf_counter() - t0

            q = (rng.random(dim) * 2 - 1).astype(args.dtype)
            store.search(q, args.k)  # warm up
            t0 = time.perf_counter()
            for _ in range(args.searches):
                store.search(q, args.k, include_metadata=False)
            search_s = (time.perf_counter() - t0) / args.searches

            print(f"dim={dim:5d} n={count:6d}  add {count/add_s:10.0f} vec/s  "
                  f"search {search_s*1000:9.2f} ms avg ({1/search_s:.1f}/s)")

if __name__ == '__main__':
    main()
