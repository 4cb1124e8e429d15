"""
Application layer for the content bounded context.
"""
