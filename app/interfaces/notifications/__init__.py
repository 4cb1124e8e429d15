"""
HTTP interface for the notifications bounded context.
"""
