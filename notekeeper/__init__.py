"""
Notekeeper.

- backend/: Notes store, services, HTTP API, configuration
"""
