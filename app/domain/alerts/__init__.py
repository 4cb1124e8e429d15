"""
Alerts bounded context: domain layer.

This module contains the domain logic for:
- Trading alert lifecycle (publish, edit, partial sales, close, discard)
- Range-break detection for `rango` alerts
- Liquidity pool bookkeeping across alerts
"""
