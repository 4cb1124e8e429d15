"""
Alertas Trading: subscription platform for trading alerts.

Application package root. This is a modular monolith using
hexagonal architecture (ports & adapters) with domain-driven design.

Bounded contexts:
    - accounts: Users, roles, subscriptions and trials.
    - alerts: Trading alerts, partial sales and liquidity pools.
    - notifications: In-app feed, email/Telegram fan-out, delivery jobs.
    - billing: Hosted checkout and payment webhooks.
    - content: Reports and monthly trainings.

Layers:
    - domain: Pure business logic, entities, ports (ABCs), errors.
    - application: Use cases, DTOs, orchestration.
    - infrastructure: Adapters (SQL, SMTP, Telegram, Mercado Pago, scheduler).
    - interfaces: FastAPI routers, Pydantic schemas.
    - shared: Cross-cutting concerns (errors, security, logging).
"""
