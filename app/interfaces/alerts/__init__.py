"""
HTTP interface for the alerts bounded context.
"""
