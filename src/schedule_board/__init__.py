"""Weekly schedule board: per-employee day cells with sub-tasks, backed by a document store."""

__version__ = "0.1.0"
