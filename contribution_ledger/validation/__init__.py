"""Input validation package."""

from contribution_ledger.validation.validator import ContributionValidator

__all__ = ["ContributionValidator"]
