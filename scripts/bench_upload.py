import argparse
import asyncio
import mimetypes
import time
from pathlib import Path
from statistics import mean

import httpx


async def one(client: httpx.AsyncClient, url: str, path: Path, content_type: str) -> tuple[float, int]:
    t0 = time.time()
    files = {"photo": (path.name, path.read_bytes(), content_type)}
    resp = await client.post(url, files=files)
    return (time.time() - t0) * 1000.0, resp.status_code


async def main():
    ap = argparse.ArgumentParser()
    ap.add_argument("--url", default="http://127.0.0.1:8090/photos/validate")
    ap.add_argument("--file", required=True)
    ap.add_argument("--content-type", default=None, help="默认按扩展名猜测")
    ap.add_argument("--concurrency", type=int, default=4)
    ap.add_argument("--requests", type=int, default=20)
    args = ap.parse_args()

    path = Path(args.file)
    content_type = args.content_type or mimetypes.guess_type(path.name)[0] or "application/octet-stream"

    lat = []
    codes: dict[int, int] = {}
    limits = httpx.Limits(max_connections=args.concurrency)
    async with httpx.AsyncClient(limits=limits, timeout=None) as client:
        sem = asyncio.Semaphore(args.concurrency)

        async def task():
            async with sem:
                l, code = await one(client, args.url, path, content_type)
                lat.append(l)
                codes[code] = codes.get(code, 0) + 1

        await asyncio.gather(*[task() for _ in range(args.requests)])

    lat_sorted = sorted(lat)
    def p(pct):
        if not lat_sorted:
            return None
        k = int(round((pct / 100.0) * (len(lat_sorted) - 1)))
        return lat_sorted[k]

    print(f"count={len(lat)} avg={mean(lat):.2f}ms p50={p(50):.2f}ms p90={p(90):.2f}ms p99={p(99):.2f}ms status={codes}")


if __name__ == "__main__":
    asyncio.run(main())
