"""
Services Package for the Order Bot
==================================

Infrastructure components the conversation engine depends on. Each service
receives its collaborators (spreadsheet client, configuration values) in its
constructor, so tests swap them for in-memory fakes.

Available Services:
-------------------
- **session**: In-memory SessionStore with per-customer locking
- **sheets**: Google Sheets v4 client shared by both gateways
- **catalog**: CatalogGateway, reads available products
- **orders**: OrderGateway, appends orders and updates their status
"""

from .catalog import CatalogGateway
from .orders import OrderGateway
from .session import SessionStore
from .sheets import SheetsClient

__all__ = ["CatalogGateway", "OrderGateway", "SessionStore", "SheetsClient"]
