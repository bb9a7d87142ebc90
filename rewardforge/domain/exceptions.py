"""Exceptions raised by RewardForge domain services."""


class RewardForgeError(RuntimeError):
    """Base class for domain exceptions."""


class InsufficientCurrency(RewardForgeError):
    """Raised when a student cannot pay for a draw or purchase."""

    def __init__(self, student_id: str, balance: int, required: int) -> None:
        super().__init__(
            f"Student {student_id} has {balance} tickets, needs {required}"
        )
        self.student_id = student_id
        self.balance = balance
        self.required = required


class EmptyCatalogTier(RewardForgeError):
    """Raised when a rarity tier has no catalog items configured."""

    def __init__(self, rarity: str) -> None:
        super().__init__(f"No catalog items configured for rarity '{rarity}'")
        self.rarity = rarity


class ItemAlreadyOwned(RewardForgeError):
    """Raised when a student tries to buy an item they already own."""


class ConcurrentModificationConflict(RewardForgeError):
    """Raised when a student record changed underneath a unit of work."""


class TransientFailure(RewardForgeError):
    """Raised when persistence fails before anything was committed."""


class PersistenceError(RewardForgeError):
    """Raised when a commit failed and its outcome cannot be known."""


class RetryLimitExceeded(RewardForgeError):
    """Raised when an operation kept failing transiently."""

    def __init__(self, label: str, attempts: int) -> None:
        super().__init__(f"Operation '{label}' failed after {attempts} attempts")
        self.label = label
        self.attempts = attempts
