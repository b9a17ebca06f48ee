"""Collaborator interfaces the provisioning core depends on.

Resolvers raise the matching NotFoundError subclass instead of returning
None, so callers never dereference a missing account or category.
"""

from typing import List, Optional, Protocol, TYPE_CHECKING

from provisioning_service.domain.models import Category, GLAccount, LoanProduct

if TYPE_CHECKING:
    from provisioning_service.domain.criteria import Criteria


class CategoryResolver(Protocol):
    def resolve(self, category_id: int) -> Category:
        """Raises CategoryNotFoundError when the id is unknown"""
        ...


class GLAccountResolver(Protocol):
    def resolve(self, account_id: int) -> GLAccount:
        """Raises GLAccountNotFoundError when the id is unknown"""
        ...

    def is_liability_type(self, account: GLAccount) -> bool:
        ...

    def is_expense_type(self, account: GLAccount) -> bool:
        ...


class LoanProductResolver(Protocol):
    def resolve(self, product_id: int) -> LoanProduct:
        """Raises LoanProductNotFoundError when the id is unknown"""
        ...


class ProvisioningEntriesLookup(Protocol):
    def exists_for_criteria(self, criteria_id: int) -> bool:
        ...


class CriteriaStore(Protocol):
    """Persistence for the Criteria aggregate.

    Writes raise ConstraintViolationError when the database rejects them.
    """

    def save(self, criteria: "Criteria") -> "Criteria":
        ...

    def find_by_id(self, criteria_id: int) -> Optional["Criteria"]:
        ...

    def find_all(self) -> List["Criteria"]:
        ...

    def delete_by_id(self, criteria_id: int) -> None:
        ...
