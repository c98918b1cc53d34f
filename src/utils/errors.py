"""Error handling utilities."""


class MortgageCRMError(Exception):
    """Base exception for the mortgage CRM backend."""
    pass


class ConfigurationError(MortgageCRMError):
    """Required configuration is missing."""
    pass


class SupabaseError(MortgageCRMError):
    """Supabase operation error."""
    pass


class RequirementParseError(MortgageCRMError):
    """Completion requirement descriptor is malformed."""

    def __init__(self, descriptor: str, reason: str):
        self.descriptor = descriptor
        self.reason = reason
        super().__init__(f"Invalid completion requirement '{descriptor}': {reason}")


class TaskNotFoundError(MortgageCRMError):
    """Task does not exist or has been deleted."""
    pass
