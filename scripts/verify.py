"""
Order File Verification Script

Verifies data integrity of the JSON order store after a simulation.
Run from project root: python scripts/verify.py

Author: Your Name
Version: 1.0.0
"""

import json
import os
import sys
from datetime import datetime

import pandas as pd

ORDERS_FILE = os.path.join(os.getenv("DATA_DIRECTORY", "data"), "orders.json")

REQUIRED_COLUMNS = ["id", "customerId", "customerName", "drinkName", "seatingLocation", "orderStatus", "timestamp"]
VALID_STATUSES = {"New", "Brewing", "On Hold", "Delivered", "Cancelled"}


def verify_orders(path: str = ORDERS_FILE) -> bool:
    """Verify the order file's integrity."""

    print("=" * 60)
    print("🔍 ORDER FILE VERIFICATION REPORT")
    print("=" * 60)
    print(f"⏰ Timestamp: {datetime.now().strftime('%Y-%m-%d %H:%M:%S')}")
    print(f"📄 File: {path}")
    print("=" * 60)

    # Check if file exists
    if not os.path.exists(path):
        print("\n❌ Order file not found!")
        print("   Run the simulation first: python scripts/simulate.py")
        return False

    # Load order file
    try:
        with open(path, "r", encoding="utf-8") as f:
            df = pd.DataFrame(json.load(f))
        print("\n✅ File loaded successfully!")
    except (OSError, ValueError) as e:
        print(f"\n❌ Could not read order file: {e}")
        return False

    ok = True

    # Statistics
    print("\n📊 STATISTICS:")
    print(f"   Total Orders: {len(df)}")
    if len(df) == 0:
        print("\n✅ VERIFICATION COMPLETE (empty store)")
        return True

    # Check required columns
    missing = [col for col in REQUIRED_COLUMNS if col not in df.columns]
    if missing:
        print(f"\n⚠️ Missing Columns: {missing}")
        ok = False
    else:
        print("\n✅ All required columns present")

    # Check duplicates
    if "id" in df.columns:
        duplicates = df["id"].duplicated().sum()
        if duplicates > 0:
            print(f"\n⚠️ {duplicates} duplicate order IDs found!")
            ok = False
        else:
            print("✅ No duplicate order IDs")

    # Status values
    if "orderStatus" in df.columns:
        unknown = sorted(set(df["orderStatus"].dropna()) - VALID_STATUSES)
        if unknown:
            print(f"⚠️ Unknown statuses: {unknown}")
            ok = False
        print("\n📋 BY STATUS:")
        print(df["orderStatus"].value_counts().to_string())

    # Feedback only on delivered orders, ratings within 1-5
    if "rating" in df.columns:
        rated = df[df["rating"].notna()]
        misplaced = rated[rated["orderStatus"] != "Delivered"]
        out_of_range = rated[(rated["rating"] < 1) | (rated["rating"] > 5)]
        if len(misplaced) or len(out_of_range):
            print(f"\n⚠️ {len(misplaced)} rated non-delivered orders, {len(out_of_range)} out-of-range ratings")
            ok = False
        elif len(rated):
            print(f"\n⭐ FEEDBACK: {len(rated)} ratings, average {rated['rating'].mean():.2f}")

    # Sample data
    print("\n📋 RECENT ORDERS:")
    print("-" * 60)
    cols = [c for c in ["id", "customerName", "drinkName", "orderStatus"] if c in df.columns]
    print(df[cols].tail(5).to_string(index=False))

    print("\n" + "=" * 60)
    print("✅ VERIFICATION COMPLETE" if ok else "❌ VERIFICATION FOUND PROBLEMS")
    print("=" * 60)

    return ok


if __name__ == "__main__":
    sys.exit(0 if verify_orders() else 1)
