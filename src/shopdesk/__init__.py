"""shopdesk - inventory, user and cart service layer for a REST resource store."""

__version__ = "0.1.0"
