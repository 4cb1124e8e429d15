"""
Billing bounded context: domain layer.

Checkout references, payment records and processor statuses.
"""
