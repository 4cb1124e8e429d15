"""
Infrastructure adapters for the alerts bounded context.
"""
