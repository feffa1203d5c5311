"""Schema module for AuthGate.

schema.sql in this package is the source of truth for the data model and is
applied by authgate.db.init_db() on a fresh database.
"""
