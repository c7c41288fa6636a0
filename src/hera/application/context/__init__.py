from hera.application.context.organization_context import OrganizationContext

__all__ = ["OrganizationContext"]
