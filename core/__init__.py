"""
Core services shared by every feature.

Configuration layering, the SQLite-backed logger, client-local key-value
storage, the signed-in user and the application context that ties them
together.
"""
