"""Provisioning criteria aggregate"""

from dataclasses import dataclass, replace
from datetime import datetime
from typing import FrozenSet, Iterable, Optional, Sequence, Tuple

from provisioning_service.domain.exceptions import DefinitionNotFoundError, ValidationError
from provisioning_service.domain.models import (
    Category,
    ChangeSet,
    Definition,
    DefinitionData,
    GLAccount,
    LoanProduct,
)
from provisioning_service.domain.validation import build_definition, check_bands

MAX_NAME_LENGTH = 200


def _check_name(name) -> str:
    if not isinstance(name, str) or not name.strip():
        raise ValidationError("criteria_name", "must not be blank")
    if len(name) > MAX_NAME_LENGTH:
        raise ValidationError("criteria_name", f"must be at most {MAX_NAME_LENGTH} characters")
    return name


def _unique_products(products: Iterable[LoanProduct]) -> Tuple[LoanProduct, ...]:
    seen = {}
    for product in products:
        seen.setdefault(product.id, product)
    return tuple(seen.values())


@dataclass(frozen=True)
class Criteria:
    """
    Named set of age bands plus the loan products it applies to.

    Instances are immutable snapshots: every mutation returns a new
    Criteria, leaving the one that was loaded from storage untouched.
    """

    name: str
    definitions: Tuple[Definition, ...] = ()
    loan_products: Tuple[LoanProduct, ...] = ()
    id: Optional[int] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @classmethod
    def create(
        cls,
        name: str,
        definitions: Sequence[Definition],
        loan_products: Iterable[LoanProduct] = (),
    ) -> "Criteria":
        """Factory for a not-yet-persisted criteria"""
        if not definitions:
            raise ValidationError("definitions", "at least one definition is required")
        return cls(
            name=_check_name(name),
            definitions=tuple(definitions),
            loan_products=_unique_products(loan_products),
        )

    @property
    def product_ids(self) -> FrozenSet[int]:
        return frozenset(p.id for p in self.loan_products)

    def update(
        self,
        name: Optional[str] = None,
        loan_products: Optional[Iterable[LoanProduct]] = None,
    ) -> Tuple["Criteria", ChangeSet]:
        """
        Apply header changes (name, product associations).

        None means the field was not requested. Products are compared as
        sets, so reordering the same products is not a change.

        Returns:
            (new snapshot, ChangeSet of the header fields that differ)
        """
        changes = {}
        criteria = self

        if name is not None and name != self.name:
            changes["criteria_name"] = _check_name(name)
            criteria = replace(criteria, name=name)

        if loan_products is not None:
            requested = {p.id: p for p in loan_products}
            current = self.product_ids
            added = sorted(set(requested) - current)
            removed = sorted(current - set(requested))
            if added or removed:
                changes["loan_products"] = {"added": added, "removed": removed}
                kept = tuple(p for p in self.loan_products if p.id in requested)
                criteria = replace(criteria, loan_products=kept + tuple(requested[i] for i in added))

        return criteria, ChangeSet(changes)

    def apply_definition_update(
        self,
        data: DefinitionData,
        category: Category,
        liability_account: GLAccount,
        expense_account: GLAccount,
        check_overlap: bool = True,
    ) -> Tuple["Criteria", bool]:
        """
        Replace the band with data.id, or append a new band when data.id is None.

        With check_overlap=False the overlap rule is left to a later
        check_bands() call, so several bands can be moved in one update.

        Returns:
            (new snapshot, whether the band differs from what was stored)

        Raises:
            DefinitionNotFoundError: data.id is not a band of this criteria
            ValidationError: the band breaks an age, percentage, account or overlap rule
        """
        others = self.definitions if check_overlap else ()
        if data.id is None:
            definition = build_definition(data, category, liability_account, expense_account, others)
            return replace(self, definitions=self.definitions + (definition,)), True

        index = next((i for i, d in enumerate(self.definitions) if d.id == data.id), None)
        if index is None:
            raise DefinitionNotFoundError(data.id)

        definition = build_definition(data, category, liability_account, expense_account, others)
        if definition == self.definitions[index]:
            return self, False

        definitions = list(self.definitions)
        definitions[index] = definition
        return replace(self, definitions=tuple(definitions)), True

    def check_bands(self) -> None:
        """Raises ValidationError when any two bands of this criteria overlap"""
        check_bands(self.definitions)
