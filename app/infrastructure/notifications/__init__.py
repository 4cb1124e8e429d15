"""
Infrastructure adapters for the notifications bounded context.
"""
