"""
Feature modules for the Convo backend.

A module owns one area of the product and keeps, as needed:
- models.py: entities and request/response bodies
- repository.py: entity store access
- service.py: business logic
- interfaces.py: the abstract service other modules depend on
- routes.py: FastAPI route handlers
- exceptions.py: module-specific exceptions

Services reach each other through the interfaces and are wired together
in ``api.dependencies``.
"""
