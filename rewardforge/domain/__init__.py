"""Domain models and services."""

from .accrual import AccrualCounter, AccrualOutcome, compute_accrual
from .catalog import Catalog, CatalogItem, Rarity
from .draw import DrawBatch, DrawOrchestrator, DrawResult
from .duplicates import (
    DuplicateConverter,
    DuplicateRewardTable,
    FlatDuplicateConverter,
    TableDuplicateConverter,
)
from .events import EventBus
from .exceptions import (
    ConcurrentModificationConflict,
    EmptyCatalogTier,
    InsufficientCurrency,
    ItemAlreadyOwned,
    PersistenceError,
    RetryLimitExceeded,
    RewardForgeError,
    TransientFailure,
)
from .ledger import LedgerService, LedgerTransaction
from .pity import PityProgress, PityRule, PityTracker
from .rarity import RarityResolver, RarityWeights
from .shop import ShopService
from .student import Acquisition, StudentProfile, StudentService

__all__ = [
    "AccrualCounter",
    "AccrualOutcome",
    "compute_accrual",
    "Catalog",
    "CatalogItem",
    "Rarity",
    "DrawBatch",
    "DrawOrchestrator",
    "DrawResult",
    "DuplicateConverter",
    "DuplicateRewardTable",
    "FlatDuplicateConverter",
    "TableDuplicateConverter",
    "EventBus",
    "ConcurrentModificationConflict",
    "EmptyCatalogTier",
    "InsufficientCurrency",
    "ItemAlreadyOwned",
    "PersistenceError",
    "RetryLimitExceeded",
    "RewardForgeError",
    "TransientFailure",
    "LedgerService",
    "LedgerTransaction",
    "PityProgress",
    "PityRule",
    "PityTracker",
    "RarityResolver",
    "RarityWeights",
    "ShopService",
    "Acquisition",
    "StudentProfile",
    "StudentService",
]
