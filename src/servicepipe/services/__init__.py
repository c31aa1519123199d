"""Service layer — the definition engine and the command task runner.

Services may import from the domain layer.
They must never import from commands, output, or config.
"""
