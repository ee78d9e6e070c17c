"""Domain layer - 外部依存なしのドメインモデルとインターフェース定義"""

from familyfin.domain.errors import (
    AuthenticationError,
    FamilyFinError,
    RecordNotFoundError,
    StorageError,
    TranscriptParseError,
)
from familyfin.domain.models import (
    Activity,
    Category,
    CategoryType,
    Family,
    LedgerEntry,
    LedgerKind,
    LedgerSummary,
    MonthlyTotals,
    ParsedTransaction,
    ReportDocument,
    ReportSection,
    ShoppingChange,
    ShoppingEvent,
    ShoppingItem,
    UserProfile,
)
from familyfin.domain.ports import (
    AuthAdmin,
    BlobStorage,
    CategoryRepository,
    FamilyRepository,
    LedgerRepository,
    ListenerHandle,
    PushNotifier,
    ReportRenderer,
    ShoppingRepository,
    TranscriptParser,
    UserRepository,
)

__all__ = [
    # Models
    "Activity",
    "Category",
    "CategoryType",
    "Family",
    "LedgerEntry",
    "LedgerKind",
    "LedgerSummary",
    "MonthlyTotals",
    "ParsedTransaction",
    "ReportDocument",
    "ReportSection",
    "ShoppingChange",
    "ShoppingEvent",
    "ShoppingItem",
    "UserProfile",
    # Errors
    "FamilyFinError",
    "RecordNotFoundError",
    "TranscriptParseError",
    "AuthenticationError",
    "StorageError",
    # Ports
    "FamilyRepository",
    "UserRepository",
    "LedgerRepository",
    "ShoppingRepository",
    "CategoryRepository",
    "BlobStorage",
    "PushNotifier",
    "TranscriptParser",
    "ReportRenderer",
    "AuthAdmin",
    "ListenerHandle",
]
