"""Concrete adapters for the engine's collaborator interfaces.

    social/         — SQLite-backed user directory, friendship graph and
                      listening history (tables shared with the host app)
    event_catalog/  — Ticketmaster Discovery API client
    store/          — SQLite-backed concert group store
"""
