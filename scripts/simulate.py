"""
Café Rush Simulation Script

Simulates a busy morning against a running server: many customers place
orders at once, the barista board walks them through the lifecycle, some
customers cancel (sometimes double-clicking), and delivered orders get
rated.
Run from project root: python scripts/simulate.py

Author: Khalil_Bannouri
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
API_BASE_URL = "http://localhost:3001"
TOTAL_ORDERS = 30

# Sample data for random orders
FIRST_NAMES = ["Ana", "Ben", "Chloe", "Dev", "Emma", "Farid", "Grace", "Hugo", "Ines", "Jon"]
SEATS = ["Window 1", "Window 2", "Bar", "Patio", "Table 4", "Table 7", "Sofa"]
DRINKS = ["Flat White", "Latte", "Cappuccino", "Iced Americano", "Chai Latte", "Mocha"]
TOPPINGS = ["Oat Milk", "Vanilla Syrup", "Caramel Drizzle", "Extra Shot", "Whipped Cream"]
INSTRUCTIONS = [None, "Extra hot", "Half sweet", "No lid please", "Takeaway cup"]


def generate_order_payload() -> dict[str, Any]:
    """Generate a random order draft."""
    return {
        "customerName": random.choice(FIRST_NAMES),
        "drinkName": random.choice(DRINKS),
        "seatingLocation": random.choice(SEATS),
        "specialInstructions": random.choice(INSTRUCTIONS),
        "toppings": random.sample(TOPPINGS, k=random.randint(0, 2)),
    }


def _result(step: str, response: httpx.Response, started: float, **extra) -> dict[str, Any]:
    return {
        "step": step,
        "status": response.status_code,
        "success": response.status_code < 400,
        "time": round(time.time() - started, 3),
        **extra,
    }


# =============================================================================
# CUSTOMER & BARISTA FLOWS
# =============================================================================

async def place_order(order_num: int) -> dict[str, Any]:
    """One customer (own cookie jar) places one order."""
    started = time.time()
    async with httpx.AsyncClient(base_url=API_BASE_URL, timeout=30.0) as client:
        try:
            response = await client.post("/api/orders", json=generate_order_payload())
        except httpx.HTTPError as e:
            return {"step": "place", "order_num": order_num, "success": False, "error": str(e)[:100]}

        data = response.json() if response.status_code == 201 else {}
        return _result(
            "place",
            response,
            started,
            order_num=order_num,
            order_id=data.get("id"),
            customer_id=data.get("customerId"),
            error=None if data else response.text[:100],
        )


async def advance_order(client: httpx.AsyncClient, order_id: str) -> list[dict[str, Any]]:
    """Barista: Brewing, sometimes On Hold and back, then Delivered."""
    path = ["Brewing"]
    if random.random() < 0.2:
        path += ["On Hold", "Brewing"]
    path.append("Delivered")

    results = []
    for status in path:
        started = time.time()
        response = await client.patch(f"/api/orders/{order_id}", json={"orderStatus": status})
        results.append(_result(f"-> {status}", response, started, order_id=order_id))
        if response.status_code >= 400:
            break
    return results


async def double_cancel(client: httpx.AsyncClient, order_id: str) -> list[dict[str, Any]]:
    """Customer double-clicks Cancel: both requests fire together."""
    started = time.time()
    responses = await asyncio.gather(
        client.post(f"/api/orders/{order_id}/cancel"),
        client.post(f"/api/orders/{order_id}/cancel"),
    )
    return [_result("cancel", r, started, order_id=order_id) for r in responses]


async def rate_order(client: httpx.AsyncClient, order_id: str) -> dict[str, Any]:
    started = time.time()
    response = await client.post(
        f"/api/orders/{order_id}/feedback",
        json={"rating": random.randint(3, 5), "comment": random.choice([None, "Lovely", "Great foam"])},
    )
    return _result("feedback", response, started, order_id=order_id)


# =============================================================================
# MAIN SIMULATION RUNNER
# =============================================================================

async def run_simulation(num_orders: int = TOTAL_ORDERS, cancel_ratio: float = 0.2) -> dict[str, Any]:
    """
    Run the rush simulation.

    Args:
        num_orders: Number of customers placing an order
        cancel_ratio: Share of orders cancelled instead of brewed
    """
    print("=" * 70)
    print("☕ CAFÉ RUSH SIMULATION")
    print("=" * 70)
    print(f"📋 Total Orders: {num_orders}")
    print(f"🎯 Target: {API_BASE_URL}")
    print(f"⏰ Started: {datetime.now().strftime('%H:%M:%S')}")
    print("=" * 70)

    start_time = time.time()

    print("\n🚀 Customers placing orders...\n")
    placed = await asyncio.gather(*[place_order(i + 1) for i in range(num_orders)])
    created = [p for p in placed if p["success"] and p.get("order_id")]

    to_cancel = [p for p in created if random.random() < cancel_ratio]
    to_brew = [p for p in created if p not in to_cancel]

    print("🧑‍🍳 Barista working the board...\n")
    async with httpx.AsyncClient(base_url=API_BASE_URL, timeout=30.0) as barista:
        cancel_results = await asyncio.gather(
            *[double_cancel(barista, p["order_id"]) for p in to_cancel]
        )
        brew_results = await asyncio.gather(
            *[advance_order(barista, p["order_id"]) for p in to_brew]
        )
        feedback_results = await asyncio.gather(
            *[rate_order(barista, p["order_id"]) for p in to_brew]
        )
        stats = (await barista.get("/api/stats")).json()
        summary = (await barista.get("/api/feedback/summary")).json()

    total_time = round(time.time() - start_time, 2)

    steps = (
        list(placed)
        + [r for group in cancel_results for r in group]
        + [r for group in brew_results for r in group]
        + list(feedback_results)
    )
    failed = [s for s in steps if not s["success"]]
    cancel_conflicts = [r for group in cancel_results for r in group if r["status"] == 409]

    # Print results
    print("\n" + "=" * 70)
    print("📊 SIMULATION RESULTS")
    print("=" * 70)

    print(f"\n✅ Orders placed: {len(created)}/{num_orders}")
    print(f"🛑 Cancelled: {len(to_cancel)} (double-click conflicts: {len(cancel_conflicts)})")
    print(f"☕ Brewed & delivered: {len(to_brew)}")
    print(f"⏱️  Total Time: {total_time}s")

    timed = [s["time"] for s in steps if s["success"] and "time" in s]
    if timed:
        print("\n📈 Performance Metrics:")
        print(f"   Average Response: {round(sum(timed) / len(timed), 3)}s")
        print(f"   Fastest: {min(timed)}s")
        print(f"   Slowest: {max(timed)}s")

    print(f"\n📋 Board: {stats}")
    print(f"⭐ Feedback: {summary}")

    unexpected = [f for f in failed if f not in cancel_conflicts]
    if unexpected:
        print("\n⚠️  Unexpected failures (showing first 5):")
        for f in unexpected[:5]:
            print(f"   [{f['step']}] {f.get('order_id', '-')}: HTTP {f.get('status')} {f.get('error') or ''}")

    print("\n" + "=" * 70)
    print("🔍 VERIFICATION STEPS")
    print("=" * 70)
    print("1. Run: python scripts/verify.py")
    print(f"2. Visit {API_BASE_URL}/docs to inspect orders")
    print("=" * 70)

    return {
        "total": num_orders,
        "created": len(created),
        "failed": len(unexpected),
        "total_time": total_time,
    }


async def preflight_checks() -> bool:
    """Check individual flows before the rush."""
    print("\n" + "=" * 70)
    print("🧪 PREFLIGHT CHECKS")
    print("=" * 70)

    async with httpx.AsyncClient(base_url=API_BASE_URL, timeout=30.0) as client:
        # Check 1: Health
        print("\n1️⃣ Health Check...")
        try:
            response = await client.get("/health")
        except httpx.HTTPError as e:
            print(f"   ❌ Server unreachable: {e}")
            return False
        if response.status_code != 200:
            print(f"   ❌ Failed: {response.text}")
            return False
        data = response.json()
        print(f"   ✅ Status: {data.get('status')} ({data.get('storage_backend')})")

        # Check 2: Menu
        print("\n2️⃣ Menu...")
        menu = (await client.get("/api/menu")).json()
        print(f"   ✅ {len(menu)} drinks on the menu")

        # Check 3: Identity
        print("\n3️⃣ Identity...")
        me = (await client.get("/api/me")).json()
        print(f"   ✅ Customer {me.get('customerId')}")

        # Check 4: Single order, cancelled by its customer
        print("\n4️⃣ Single Order + Cancel...")
        response = await client.post("/api/orders", json=generate_order_payload())
        if response.status_code != 201:
            print(f"   ❌ Failed: {response.text[:100]}")
            return False
        order_id = response.json()["id"]
        response = await client.post(f"/api/orders/{order_id}/cancel")
        print(f"   ✅ Order {order_id} -> {response.json().get('orderStatus')}")

    print("\n" + "=" * 70)
    return True


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Café Rush Simulation Script")
    parser.add_argument("--orders", type=int, default=TOTAL_ORDERS, help="Number of orders")
    parser.add_argument("--cancel-ratio", type=float, default=0.2, help="Share of orders cancelled")
    parser.add_argument("--skip-checks", action="store_true", help="Skip preflight checks")
    args = parser.parse_args()

    if not args.skip_checks:
        success = asyncio.run(preflight_checks())
        if not success:
            print("\n❌ Preflight checks failed. Fix issues before running the simulation.")
            sys.exit(1)
        print("\n✅ Preflight checks passed!")

    asyncio.run(run_simulation(num_orders=args.orders, cancel_ratio=args.cancel_ratio))
