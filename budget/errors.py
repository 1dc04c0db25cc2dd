"""Exception hierarchy for the budget tracker."""


class BudgetError(Exception):
    """Base exception for the budget tracker."""
    pass


class ConfigError(BudgetError):
    """Configuration-related errors."""
    pass


class AggregationInputError(BudgetError, TypeError):
    """The aggregator was handed something that is not a transaction collection."""
    pass


class TransactionValidationError(BudgetError):
    """A transaction draft failed boundary validation."""

    def __init__(self, error: dict):
        super().__init__(error.get("message", "invalid transaction"))
        self.error = error


class StoreError(BudgetError):
    """Transaction store errors."""
    pass


class NotAuthenticatedError(StoreError):
    """No authenticated user for a store call."""
    pass


class TransactionNotFoundError(StoreError):
    """The transaction does not exist or belongs to another user."""
    pass
