"""
Manual smoke check against a running Barista server.

Start the server first (``barista``), then run:
    python scripts/smoke_coffee.py [base_url]
"""

import asyncio
import json
import sys

import httpx

BASE_URL = sys.argv[1] if len(sys.argv) > 1 else "http://127.0.0.1:8000"


async def check_health(client: httpx.AsyncClient) -> bool:
    print("=" * 60)
    print("Health")
    print("=" * 60)
    response = await client.get("/health")
    data = response.json()
    print(f"Status: {response.status_code}  model: {data.get('default_model')}")
    return response.status_code == 200 and data["status"] == "healthy"


async def check_all_flows(client: httpx.AsyncClient, authorization: str, expect_pass: bool) -> bool:
    print("\n" + "=" * 60)
    print(f"testAllCoffeeFlows with Authorization: {authorization}")
    print("=" * 60)
    response = await client.post(
        "/testAllCoffeeFlows",
        json={},
        headers={"Authorization": authorization, "X-Request-ID": "smoke-1"},
    )
    print(f"Status: {response.status_code}")
    print(json.dumps(response.json(), indent=2))
    return response.status_code == 200 and response.json()["pass"] is expect_pass


async def check_streaming(client: httpx.AsyncClient) -> bool:
    print("\n" + "=" * 60)
    print("simpleGreeting (streaming)")
    print("=" * 60)
    events = 0
    async with client.stream(
        "POST",
        "/flows/simpleGreeting?stream=true",
        json={"data": {"customerName": "Sam"}},
        headers={"Authorization": "Bearer smoke"},
    ) as response:
        async for line in response.aiter_lines():
            if line.startswith("data: "):
                events += 1
                print(line[6:])
    return events > 1


async def main() -> int:
    async with httpx.AsyncClient(base_url=BASE_URL, timeout=60.0) as client:
        results = {
            "health": await check_health(client),
            "bearer": await check_all_flows(client, "Bearer smoke", expect_pass=True),
            "basic": await check_all_flows(client, "Basic smoke", expect_pass=False),
            "streaming": await check_streaming(client),
        }

    print("\n" + "=" * 60)
    for name, ok in results.items():
        print(f"[{'PASS' if ok else 'FAIL'}] {name}")
    return 0 if all(results.values()) else 1


if __name__ == "__main__":
    sys.exit(asyncio.run(main()))
