"""
                        Services Module

Business logic that sits on top of the order stores.

Services:
    - lifecycle: order state machine, cancellation and feedback rules
    - single_flight: de-duplication of identical concurrent writes
    - poller: fixed-interval refresh for customer and staff views
    - identity: anonymous customer identity (cookie or file backed)
    - feedback: rating submission and summary
    - catalog: drink menu and toppings
"""

from cafe_orders.services.identity import IdentityProvider
from cafe_orders.services.poller import OrderPoller
from cafe_orders.services.single_flight import SingleFlight

__all__ = ["IdentityProvider", "OrderPoller", "SingleFlight"]
