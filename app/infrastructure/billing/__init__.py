"""
Infrastructure adapters for the billing bounded context.
"""
