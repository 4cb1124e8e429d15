"""
Application layer package.

Use cases that orchestrate domain entities through ports.
Each use case is a class with an `execute` method; a few related
liquidity operations share one module.
This layer depends on domain ports, never on infrastructure.
"""
