"""
orm_repository.observability

Logging helpers shared by the repository layers.
"""
