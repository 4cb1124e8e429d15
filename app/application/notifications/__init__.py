"""
Application layer for the notifications bounded context.
"""
