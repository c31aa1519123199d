"""Domain layer — naming convention, rule violations, and exceptions.

This layer depends only on stdlib and pydantic.
It must never import from services, plugins, commands, or config.
"""
