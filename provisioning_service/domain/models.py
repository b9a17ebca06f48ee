"""Domain models - pure Python dataclasses representing business entities"""

from dataclasses import dataclass, field
from decimal import Decimal
from enum import IntEnum
from typing import Any, Dict, FrozenSet, Optional


class GLAccountType(IntEnum):
    """General ledger account classification"""

    ASSET = 1
    LIABILITY = 2
    EQUITY = 3
    INCOME = 4
    EXPENSE = 5


@dataclass(frozen=True)
class Category:
    """Provisioning category (STANDARD, SUB-STANDARD, DOUBTFUL, LOSS...)"""

    id: int
    name: str
    description: Optional[str] = None


@dataclass(frozen=True)
class GLAccount:
    """General ledger account referenced by a definition"""

    id: int
    name: str
    gl_code: str
    account_type: GLAccountType


@dataclass(frozen=True)
class LoanProduct:
    """Loan product that can be tied to one criteria"""

    id: int
    name: str


@dataclass(frozen=True)
class DefinitionData:
    """Requested age band, references still unresolved"""

    category_id: int
    min_age: int
    max_age: int
    provisioning_percentage: Decimal
    liability_account: int
    expense_account: int
    id: Optional[int] = None


@dataclass(frozen=True)
class Definition:
    """Validated age band with a snapshot of its GL accounts"""

    category_id: int
    category_name: str
    min_age: int
    max_age: int
    provisioning_percentage: Decimal
    liability_account_id: int
    liability_code: str
    liability_name: str
    expense_account_id: int
    expense_code: str
    expense_name: str
    id: Optional[int] = None

    def overlaps(self, other: "Definition") -> bool:
        """Half-open [min_age, max_age) intersection within the same category"""
        if self.category_id != other.category_id:
            return False
        return self.min_age < other.max_age and other.min_age < self.max_age


@dataclass(frozen=True)
class ChangeSet:
    """Fields that differ between stored and requested state"""

    changes: Dict[str, Any] = field(default_factory=dict)

    def __bool__(self) -> bool:
        return bool(self.changes)

    @property
    def fields(self) -> FrozenSet[str]:
        return frozenset(self.changes)

    def merge(self, other: "ChangeSet") -> "ChangeSet":
        return ChangeSet({**self.changes, **other.changes})


@dataclass(frozen=True)
class CommandResult:
    """Outcome of a write operation"""

    resource_id: int
    changes: Dict[str, Any] = field(default_factory=dict)
