"""
HTTP interface for the accounts bounded context.
"""
