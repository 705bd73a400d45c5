"""devbrain - task lifecycle and workspace consistency engine."""

__version__ = "0.1.0"
