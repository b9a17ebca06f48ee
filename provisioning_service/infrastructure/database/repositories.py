"""Data access layer for provisioning criteria and its reference entities"""

from typing import Dict, Iterable, List, Optional
from sqlalchemy import exists
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from sqlalchemy.sql import func

from provisioning_service.domain.criteria import Criteria
from provisioning_service.domain.exceptions import (
    CategoryNotFoundError,
    ConstraintKind,
    ConstraintViolationError,
    CriteriaNotFoundError,
    DefinitionNotFoundError,
    GLAccountNotFoundError,
    LoanProductNotFoundError,
)
from provisioning_service.domain.models import Category, Definition, GLAccount, GLAccountType, LoanProduct
from provisioning_service.domain.validation import is_expense_type, is_liability_type
from provisioning_service.infrastructure.database.models import (
    CRITERIA_NAME_CONSTRAINT,
    PRODUCT_MAPPING_CONSTRAINT,
    GLAccountRecord,
    LoanProductRecord,
    ProvisioningCategoryRecord,
    ProvisioningCriteriaDefinitionRecord,
    ProvisioningCriteriaRecord,
    ProvisioningEntryRecord,
)

# PostgreSQL reports the constraint name; SQLite only names the column
_CONSTRAINT_MARKERS = (
    (ConstraintKind.CRITERIA_NAME, (CRITERIA_NAME_CONSTRAINT, "m_provisioning_criteria.criteria_name")),
    (ConstraintKind.PRODUCT_ASSOCIATION, (PRODUCT_MAPPING_CONSTRAINT, "m_loanproduct_provisioning_mapping.product_id")),
)


def classify_integrity_error(error: IntegrityError) -> ConstraintViolationError:
    """Turn a driver-specific IntegrityError into a ConstraintViolationError"""
    cause = error.orig if error.orig is not None else error
    message = str(cause)
    constraint_name = getattr(getattr(cause, "diag", None), "constraint_name", None)

    for kind, markers in _CONSTRAINT_MARKERS:
        if constraint_name in markers or any(marker in message for marker in markers):
            return ConstraintViolationError(kind, message)
    return ConstraintViolationError(ConstraintKind.OTHER, message)


class CategoryRepository:
    """Resolves provisioning categories"""

    def __init__(self, db: Session):
        self.db = db

    def resolve(self, category_id: int) -> Category:
        record = self.db.get(ProvisioningCategoryRecord, category_id)
        if record is None:
            raise CategoryNotFoundError(category_id)
        return Category(id=record.id, name=record.category_name, description=record.description)


class GLAccountRepository:
    """Resolves general ledger accounts"""

    def __init__(self, db: Session):
        self.db = db

    def resolve(self, account_id: int) -> GLAccount:
        record = self.db.get(GLAccountRecord, account_id)
        if record is None:
            raise GLAccountNotFoundError(account_id)
        return GLAccount(
            id=record.id,
            name=record.name,
            gl_code=record.gl_code,
            account_type=GLAccountType(record.classification_enum),
        )

    def is_liability_type(self, account: GLAccount) -> bool:
        return is_liability_type(account)

    def is_expense_type(self, account: GLAccount) -> bool:
        return is_expense_type(account)


class LoanProductRepository:
    """Resolves loan products"""

    def __init__(self, db: Session):
        self.db = db

    def resolve(self, product_id: int) -> LoanProduct:
        record = self.db.get(LoanProductRecord, product_id)
        if record is None:
            raise LoanProductNotFoundError(product_id)
        return LoanProduct(id=record.id, name=record.name)


class ProvisioningEntryRepository:
    """Read-only view over provisioning entries"""

    def __init__(self, db: Session):
        self.db = db

    def exists_for_criteria(self, criteria_id: int) -> bool:
        return bool(
            self.db.query(exists().where(ProvisioningEntryRecord.criteria_id == criteria_id)).scalar()
        )


class CriteriaRepository:
    """Repository for the provisioning criteria aggregate"""

    def __init__(self, db: Session):
        self.db = db

    def save(self, criteria: Criteria) -> Criteria:
        """
        Write the snapshot: header, definitions and product mapping.

        Flushes without committing; the caller owns the transaction.

        Raises:
            ConstraintViolationError: the database rejected the write
        """
        if criteria.id is None:
            record = ProvisioningCriteriaRecord()
            self.db.add(record)
        else:
            record = self.db.get(ProvisioningCriteriaRecord, criteria.id)
            if record is None:
                raise CriteriaNotFoundError(criteria.id)
            record.updated_at = func.now()

        record.criteria_name = criteria.name
        self._sync_definitions(record, criteria.definitions)
        self._sync_products(record, criteria.product_ids)

        try:
            self.db.flush()
        except IntegrityError as e:
            raise classify_integrity_error(e) from e

        self.db.refresh(record)
        return self._to_domain(record)

    def find_by_id(self, criteria_id: int) -> Optional[Criteria]:
        record = self.db.get(ProvisioningCriteriaRecord, criteria_id)
        return self._to_domain(record) if record is not None else None

    def find_all(self) -> List[Criteria]:
        records = self.db.query(ProvisioningCriteriaRecord).order_by(ProvisioningCriteriaRecord.id).all()
        return [self._to_domain(r) for r in records]

    def delete_by_id(self, criteria_id: int) -> None:
        record = self.db.get(ProvisioningCriteriaRecord, criteria_id)
        if record is None:
            raise CriteriaNotFoundError(criteria_id)
        self.db.delete(record)
        try:
            self.db.flush()
        except IntegrityError as e:
            raise classify_integrity_error(e) from e

    def _sync_definitions(self, record: ProvisioningCriteriaRecord, definitions: Iterable[Definition]) -> None:
        existing: Dict[int, ProvisioningCriteriaDefinitionRecord] = {d.id: d for d in record.definitions}
        keep = []
        for definition in definitions:
            if definition.id is None:
                row = ProvisioningCriteriaDefinitionRecord()
            else:
                row = existing.get(definition.id)
                if row is None:
                    raise DefinitionNotFoundError(definition.id)
            row.category = self.db.get(ProvisioningCategoryRecord, definition.category_id)
            row.min_age = definition.min_age
            row.max_age = definition.max_age
            row.provision_percentage = definition.provisioning_percentage
            row.liability_account = definition.liability_account_id
            row.liability_code = definition.liability_code
            row.liability_name = definition.liability_name
            row.expense_account = definition.expense_account_id
            row.expense_code = definition.expense_code
            row.expense_name = definition.expense_name
            keep.append(row)
        # delete-orphan cascade removes rows missing from the snapshot
        record.definitions = keep

    def _sync_products(self, record: ProvisioningCriteriaRecord, product_ids: Iterable[int]) -> None:
        wanted = set(product_ids)
        for product in list(record.loan_products):
            if product.id not in wanted:
                record.loan_products.remove(product)
        current = {p.id for p in record.loan_products}
        for product_id in sorted(wanted - current):
            product = self.db.get(LoanProductRecord, product_id)
            if product is None:
                raise LoanProductNotFoundError(product_id)
            record.loan_products.append(product)

    @staticmethod
    def _to_domain(record: ProvisioningCriteriaRecord) -> Criteria:
        return Criteria(
            id=record.id,
            name=record.criteria_name,
            definitions=tuple(
                Definition(
                    id=d.id,
                    category_id=d.category_id,
                    category_name=d.category.category_name,
                    min_age=d.min_age,
                    max_age=d.max_age,
                    provisioning_percentage=d.provision_percentage,
                    liability_account_id=d.liability_account,
                    liability_code=d.liability_code,
                    liability_name=d.liability_name,
                    expense_account_id=d.expense_account,
                    expense_code=d.expense_code,
                    expense_name=d.expense_name,
                )
                for d in record.definitions
            ),
            loan_products=tuple(LoanProduct(id=p.id, name=p.name) for p in record.loan_products),
            created_at=record.created_at,
            updated_at=record.updated_at,
        )
