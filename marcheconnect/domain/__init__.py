"""
Domain layer - Business logic and domain models.

This layer contains:
- Value objects (immutable, self-validating)
- Domain entities (with business rules)
- Pure decision functions (lifecycle, pricing, statistics)

No dependencies on infrastructure or frameworks.
"""
