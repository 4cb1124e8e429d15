"""
Domain layer package.

Entities, business rules and port interfaces for every bounded context
(accounts, alerts, notifications, billing, content).
No framework imports, no IO.
"""
