"""Persistence layer: dataclass models and the SQLite interface."""
