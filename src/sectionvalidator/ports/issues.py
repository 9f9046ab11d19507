"""Ports for issue tracker integrations."""

from __future__ import annotations

from abc import ABC, abstractmethod

from sectionvalidator.domain.sections import TicketStatus


class IssueStatusChecker(ABC):
    """Looks up whether a tracked ticket is still open."""

    @abstractmethod
    def check(self, url: str) -> TicketStatus:
        """Return the current status of the ticket at ``url``."""


class IssueLookupError(RuntimeError):
    """Raised when a ticket status cannot be determined."""
