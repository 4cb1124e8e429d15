"""
Infrastructure layer package.

Concrete adapters for the domain ports: SQL repositories, SMTP,
Telegram, the payment processor and the background scheduler.
"""
