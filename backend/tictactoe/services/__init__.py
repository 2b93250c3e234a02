"""Match domain services.

The ``match`` package holds the session state machine and has no Flask or
SQLAlchemy imports; ``stores`` adapts the database models to the
collaborator interfaces the state machine consumes.
"""
