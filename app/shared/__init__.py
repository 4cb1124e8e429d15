"""
Cross-cutting concerns shared by every bounded context.

errors maps domain failures to the JSON error body, security holds the
response headers and per-client throttling, logging redacts credentials.
"""
