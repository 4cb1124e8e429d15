"""
Interfaces layer package.

FastAPI routers, Pydantic request/response schemas and the
dependency wiring for each bounded context. Routes call use cases
and return responses; no business logic belongs here.
"""
