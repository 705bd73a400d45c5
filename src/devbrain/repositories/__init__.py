"""Repository layer for data persistence."""

from .backlog import BacklogStore
from .tickets import TicketDirectoryManager

__all__ = ["BacklogStore", "TicketDirectoryManager"]
