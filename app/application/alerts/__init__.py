"""
Application layer for the alerts bounded context.
"""
