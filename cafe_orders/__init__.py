"""
                Café Ordering System

Order lifecycle and synchronization backend for a small café:
customers order drinks and leave feedback, baristas move orders
through a status workflow. Storage is pluggable (JSON file,
SQL database, or an append-only spreadsheet feed).

Author: Khalil_Bannouri
Version: 1.0.0
License: MIT
"""

__version__ = "1.0.0"
__author__ = "Khalil_Bannouri"
