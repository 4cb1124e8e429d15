"""
HTTP interface for the billing bounded context.
"""
