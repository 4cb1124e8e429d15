"""
Domain error to HTTP response translation.
"""
