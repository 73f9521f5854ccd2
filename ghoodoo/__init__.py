"""ghoodoo: GitHub to Odoo task synchronization over webhooks."""

__version__ = "0.1.0"
