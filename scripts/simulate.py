"""
Rush Hour Simulation Script

Fires concurrent staff actions at a running console to exercise the
state machine guards, bulk executor and export queue under load.
Run from project root: python scripts/simulate.py

Author: Khalil Bannouri
Version: 1.0.0
"""

import argparse
import asyncio
import random
import sys
import time
from datetime import datetime
from typing import Any

import httpx

# Windows event loop fix
if sys.platform == "win32":
    asyncio.set_event_loop_policy(asyncio.WindowsSelectorEventLoopPolicy())

# Configuration
API_BASE_URL = "http://localhost:8002"
TOTAL_ACTIONS = 50

STATUSES = ["CONFIRMED", "PROCESSING", "PREPARING", "READY", "DELIVERED", "COMPLETED"]
NOTES = [None, "Table asked for speed", "Allergy double-checked", "Re-fire main course"]


# =============================================================================
# SINGLE ACTIONS
# =============================================================================

async def fetch_order_ids(client: httpx.AsyncClient) -> list[str]:
    response = await client.get(f"{API_BASE_URL}/api/console/orders")
    response.raise_for_status()
    return [o["orderId"] for o in response.json()["data"]]


async def send_status_change(
    client: httpx.AsyncClient,
    action_num: int,
    order_id: str,
) -> dict[str, Any]:
    """Ask for a random target status; illegal targets must come back 409."""
    target = random.choice(STATUSES)
    start_time = time.time()

    try:
        response = await client.put(
            f"{API_BASE_URL}/api/console/orders/{order_id}/status",
            json={"newStatus": target, "note": random.choice(NOTES)},
            timeout=30.0,
        )
        elapsed = round(time.time() - start_time, 3)
        return {
            "action_num": action_num,
            "order_id": order_id,
            "target": target,
            "status_code": response.status_code,
            "success": response.status_code == 200,
            "rejected": response.status_code == 409,
            "error": None if response.status_code == 200 else response.text[:100],
            "time": elapsed,
        }
    except httpx.HTTPError as e:
        return {
            "action_num": action_num,
            "order_id": order_id,
            "target": target,
            "status_code": None,
            "success": False,
            "rejected": False,
            "error": str(e)[:100],
            "time": round(time.time() - start_time, 3),
        }


async def run_bulk_export(client: httpx.AsyncClient) -> dict[str, Any]:
    await client.post(f"{API_BASE_URL}/api/console/selection/all")
    response = await client.post(
        f"{API_BASE_URL}/api/console/bulk",
        json={"action": "EXPORT_TO_CSV"},
        timeout=60.0,
    )
    return response.json()


# =============================================================================
# MAIN SIMULATION RUNNER
# =============================================================================

async def run_simulation(num_actions: int = TOTAL_ACTIONS, export: bool = True) -> dict[str, Any]:
    """
    Run the rush hour simulation.

    Args:
        num_actions: Number of concurrent status changes to fire
        export: Finish with a bulk CSV export of the whole queue
    """
    print("=" * 70)
    print("🔥 RUSH HOUR SIMULATION - CONCURRENT STAFF ACTIONS")
    print("=" * 70)
    print(f"📋 Status changes: {num_actions}")
    print(f"🎯 Target: {API_BASE_URL}")
    print(f"⏰ Started: {datetime.now().strftime('%H:%M:%S')}")
    print("=" * 70)

    start_time = time.time()

    async with httpx.AsyncClient() as client:
        order_ids = await fetch_order_ids(client)
        if not order_ids:
            print("\n❌ Console has no orders to work on")
            return {"total": 0}

        tasks = [
            send_status_change(client, i + 1, random.choice(order_ids))
            for i in range(num_actions)
        ]
        results = await asyncio.gather(*tasks)

        bulk = await run_bulk_export(client) if export else None

    total_time = round(time.time() - start_time, 2)

    accepted = [r for r in results if r["success"]]
    rejected = [r for r in results if r["rejected"]]
    failed = [r for r in results if not r["success"] and not r["rejected"]]

    print("\n" + "=" * 70)
    print("📊 SIMULATION RESULTS")
    print("=" * 70)
    print(f"\n✅ Accepted transitions: {len(accepted)}/{num_actions}")
    print(f"🚫 Rejected (illegal): {len(rejected)}/{num_actions}")
    print(f"❌ Remote failures: {len(failed)}/{num_actions}")
    print(f"⏱️  Total Time: {total_time}s")

    if accepted:
        avg_time = round(sum(r["time"] for r in accepted) / len(accepted), 3)
        print(f"\n📈 Average accepted response: {avg_time}s")

    if failed:
        print("\n⚠️  Failure details (showing first 5):")
        for f in failed[:5]:
            print(f"   Action #{f['action_num']} {f['order_id']} -> {f['target']}: {f['error']}")

    if bulk is not None:
        print(f"\n📦 Bulk export: {bulk.get('message')}")

    print("\n" + "=" * 70)
    print("🔍 VERIFICATION STEPS")
    print("=" * 70)
    print("1. Check the Celery terminal if EXPORT_BACKEND=celery")
    print("2. Run: python scripts/verify.py")
    print(f"3. Visit {API_BASE_URL}/docs to inspect the console")
    print("=" * 70)

    return {
        "total": num_actions,
        "accepted": len(accepted),
        "rejected": len(rejected),
        "failed": len(failed),
        "total_time": total_time,
        "bulk": bulk,
    }


async def check_health() -> bool:
    async with httpx.AsyncClient() as client:
        response = await client.get(f"{API_BASE_URL}/health")
        if response.status_code != 200:
            print(f"   ❌ Failed: {response.text}")
            return False
        data = response.json()
        print(f"   ✅ Status: {data.get('status')}")
        print(f"   Order API: {data.get('order_api')}")
        print(f"   Redis: {data.get('redis')}")
        return True


def main():
    parser = argparse.ArgumentParser(description="Fire concurrent staff actions at the console")
    parser.add_argument("-n", "--actions", type=int, default=TOTAL_ACTIONS, help="number of status changes")
    parser.add_argument("--no-export", action="store_true", help="skip the final bulk CSV export")
    args = parser.parse_args()

    print("\n1️⃣ Health Check...")
    if not asyncio.run(check_health()):
        sys.exit(1)
    asyncio.run(run_simulation(args.actions, export=not args.no_export))


if __name__ == "__main__":
    main()
