"""Core combat primitives (entities, turn engine, entity store).

Kept free of FastAPI concerns so it can be reused by the WebSocket router and tests.
"""
