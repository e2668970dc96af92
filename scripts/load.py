import argparse
import httpx
import numpy as np
import asyncio

parser = argparse.ArgumentParser()
parser.add_argument('--shard', type=str, default='http://localhost:7001')
parser.add_argument('--n', type=int, default=10000)
parser.add_argument('--dim', type=int, default=384)
parser.add_argument('--dtype', type=str, default='float32', choices=['float32', 'float64'])
parser.add_argument('--batch', type=int, default=256, help='vectors per /vectors/batch request')
args = parser.parse_args()

async def main():
    X = np.random.randn(args.n, args.dim).astype(args.dtype)
    norms = np.linalg.norm(X, axis=1, keepdims=True) + 1e-12
    X = X / norms
    async with httpx.AsyncClient(timeout=30) as client:
        tasks = []
        for start in range(0, args.n, args.batch):
            payload = {"vectors": [
                {"id": f"vec-{i}", "embedding": X[i].tolist(), "dtype": args.dtype}
                for i in range(start, min(start + args.batch, args.n))
            ]}
            tasks.append(client.post(f"{args.shard}/vectors/batch", json=payload))
            if len(tasks) >= 8:
                rs = await asyncio.gather(*tasks)
                for r in rs:
                    r.raise_for_status()
                tasks.clear()
        if tasks:
            for r in await asyncio.gather(*tasks):
                r.raise_for_status()
    print(f"Loaded {args.n} vectors of dim {args.dim} ({args.dtype})")

if __name__ == '__main__':
    asyncio.run(main())
