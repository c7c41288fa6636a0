"""Organization context for request-scoped tenant identity."""

from __future__ import annotations

from dataclasses import dataclass
from uuid import UUID


@dataclass(frozen=True)
class OrganizationContext:
    """
    Immutable context for the authenticated tenant.

    This is created once per request/command execution from the validated
    bearer token and passed to repositories. Repositories use the
    organization_id to automatically filter all queries to the tenant's data.
    """

    organization_id: UUID
    subject: str

    @classmethod
    def from_values(cls, organization_id: UUID, subject: str) -> OrganizationContext:
        return cls(organization_id=organization_id, subject=subject)

    def __str__(self) -> str:
        return f"OrganizationContext({self.organization_id})"
