"""
taskboard_kernel -- Persistence, domain primitives and ambient services.

Provides the declarative base and engine/session helpers, the Project and
Task ORM models, task DTOs and enums, the injectable Clock, structured
logging and the typed exception hierarchy.

Architecture:
    taskboard_kernel is the lowest layer.  Nothing in the kernel imports
    from taskboard_bulk or taskboard_config.
"""
