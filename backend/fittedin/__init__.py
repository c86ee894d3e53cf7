"""
FittedIn Backend
================

Social fitness network: users keep a fitness profile and build a network of
connections. Demo ("seeded") accounts accept every request they receive so
a new user's network is never empty.

Layers:

    ┌─────────────────────────────────────┐
    │  routes/        HTTP, auth, status  │
    ├─────────────────────────────────────┤
    │  services/      connection rules,   │
    │                 auto-accept, inbox  │
    ├─────────────────────────────────────┤
    │  models/ schemas/  ORM + API shapes │
    ├─────────────────────────────────────┤
    │  database.py    async sessions      │
    └─────────────────────────────────────┘

Run with `uvicorn fittedin.main:app` from the backend/ directory.
"""

__version__ = "1.0.0"
