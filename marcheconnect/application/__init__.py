"""
Application layer - Use cases and business logic orchestration.

This layer contains:
- Application services (orchestrate domain + infrastructure)
- Use case implementations (lifecycle actions, dashboard queries)

No direct dependencies on frameworks (FastAPI, etc.)
"""
