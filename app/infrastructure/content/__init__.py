"""
Infrastructure adapters for the content bounded context.
"""
