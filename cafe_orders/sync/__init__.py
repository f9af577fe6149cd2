"""
Feed synchronization: gviz parsing, reconciliation of the append-only
order feed, the local order cache, and the feed clients.
"""

from cafe_orders.sync.reconcile import LATEST_MARKER, reconcile, select_latest, parse_rows

__all__ = ["LATEST_MARKER", "reconcile", "select_latest", "parse_rows"]
