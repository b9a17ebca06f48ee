"""Create, update and delete provisioning criteria inside one transaction each"""

import logging
import time
from contextlib import contextmanager
from typing import Any, Dict, Iterator, List, Mapping, Optional, Sequence, Tuple

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from provisioning_service.domain.conflicts import raise_for_violation
from provisioning_service.domain.criteria import Criteria
from provisioning_service.domain.exceptions import (
    ConstraintViolationError,
    CriteriaInUseError,
    CriteriaNotFoundError,
    DomainException,
)
from provisioning_service.domain.models import ChangeSet, CommandResult
from provisioning_service.domain.ports import (
    CategoryResolver,
    CriteriaStore,
    GLAccountResolver,
    ProvisioningEntriesLookup,
)
from provisioning_service.domain.validation import DefinitionValidator
from provisioning_service.infrastructure.database.repositories import (
    CategoryRepository,
    CriteriaRepository,
    GLAccountRepository,
    LoanProductRepository,
    ProvisioningEntryRepository,
    classify_integrity_error,
)
from provisioning_service.infrastructure.observability.logging import log_criteria_command
from provisioning_service.infrastructure.observability.metrics import record_command, record_conflict
from provisioning_service.services.assembler import CriteriaAssembler
from provisioning_service.services.payloads import (
    CriteriaCreatePayload,
    CriteriaUpdatePayload,
    DefinitionPayload,
    parse_payload,
)


class CriteriaService:
    """Entry point for provisioning criteria commands"""

    def __init__(
        self,
        db: Session,
        assembler: CriteriaAssembler,
        store: CriteriaStore,
        entries_lookup: ProvisioningEntriesLookup,
        category_resolver: CategoryResolver,
        account_resolver: GLAccountResolver,
    ):
        self.db = db
        self.assembler = assembler
        self.store = store
        self.entries_lookup = entries_lookup
        self.category_resolver = category_resolver
        self.account_resolver = account_resolver

    @classmethod
    def for_session(cls, db: Session) -> "CriteriaService":
        """Wire the service to SQLAlchemy-backed collaborators"""
        category_resolver = CategoryRepository(db)
        account_resolver = GLAccountRepository(db)
        validator = DefinitionValidator(category_resolver, account_resolver)
        return cls(
            db=db,
            assembler=CriteriaAssembler(validator, LoanProductRepository(db)),
            store=CriteriaRepository(db),
            entries_lookup=ProvisioningEntryRepository(db),
            category_resolver=category_resolver,
            account_resolver=account_resolver,
        )

    def create(self, payload: Mapping[str, Any]) -> CommandResult:
        """
        Create a criteria with its definitions and product links.

        Raises:
            ValidationError, NotFoundError, DuplicateCriteriaNameError,
            ProductAlreadyAssociatedError, UnknownIntegrityViolationError
        """
        start_time = time.time()
        with self._command("create") as command:
            request = parse_payload(CriteriaCreatePayload, payload)
            command["criteria_name"] = request.criteria_name
            criteria = self.assembler.from_parsed_payload(request)
            saved = self.store.save(criteria)

        log_criteria_command("create", saved.id, {}, (time.time() - start_time) * 1000)
        return CommandResult(resource_id=saved.id)

    def update(self, criteria_id: int, payload: Mapping[str, Any]) -> CommandResult:
        """
        Apply header and definition changes; nothing is written when neither changed.

        Flow:
        1. Load the stored criteria
        2. Resolve the requested product list
        3. Diff name and products (header ChangeSet)
        4. Apply each requested band (definitions ChangeSet)
        5. Check overlap across the resulting bands
        6. Save once if either ChangeSet is non-empty

        Raises:
            CriteriaNotFoundError plus everything create() raises
        """
        start_time = time.time()
        with self._command("update") as command:
            request = parse_payload(CriteriaUpdatePayload, payload)
            command["criteria_name"] = request.criteria_name
            existing = self._load(criteria_id)

            products = self.assembler.parse_loan_products(request)
            criteria, header_changes = existing.update(name=request.criteria_name, loan_products=products)
            criteria, definition_changes = self._update_definitions(criteria, request.definitions)

            changes = header_changes.merge(definition_changes)
            if changes:
                self.store.save(criteria)

        log_criteria_command("update", criteria_id, changes.changes, (time.time() - start_time) * 1000)
        return CommandResult(resource_id=criteria_id, changes=dict(changes.changes))

    def delete(self, criteria_id: int) -> CommandResult:
        """
        Delete a criteria nobody references.

        Raises:
            CriteriaNotFoundError: no criteria with this id
            CriteriaInUseError: at least one provisioning entry uses it
        """
        start_time = time.time()
        with self._command("delete"):
            self._load(criteria_id)
            if self.entries_lookup.exists_for_criteria(criteria_id):
                raise CriteriaInUseError(criteria_id)
            self.store.delete_by_id(criteria_id)

        log_criteria_command("delete", criteria_id, {}, (time.time() - start_time) * 1000)
        return CommandResult(resource_id=criteria_id)

    def retrieve(self, criteria_id: int) -> Criteria:
        return self._load(criteria_id)

    def retrieve_all(self) -> List[Criteria]:
        return self.store.find_all()

    def _load(self, criteria_id: int) -> Criteria:
        criteria = self.store.find_by_id(criteria_id)
        if criteria is None:
            raise CriteriaNotFoundError(criteria_id)
        return criteria

    def _update_definitions(
        self,
        criteria: Criteria,
        entries: Optional[Sequence[DefinitionPayload]],
    ) -> Tuple[Criteria, ChangeSet]:
        """Apply every requested band, then check overlap across the final set"""
        written = []
        for entry in entries or ():
            data = entry.to_data()
            category = self.category_resolver.resolve(data.category_id)
            liability_account = self.account_resolver.resolve(data.liability_account)
            expense_account = self.account_resolver.resolve(data.expense_account)

            criteria, changed = criteria.apply_definition_update(
                data, category, liability_account, expense_account, check_overlap=False
            )
            if changed:
                written.append(data.id)

        if written:
            criteria.check_bands()
        return criteria, ChangeSet({"definitions": written} if written else {})

    @contextmanager
    def _command(self, action: str) -> Iterator[Dict[str, Optional[str]]]:
        """Commit on success, roll back and record the outcome on any failure"""
        command: Dict[str, Optional[str]] = {"criteria_name": None}
        try:
            try:
                yield command
                self.db.commit()
            except IntegrityError as e:
                # Deferred constraints only fire at commit
                raise classify_integrity_error(e) from e
        except ConstraintViolationError as e:
            self.db.rollback()
            record_command(action, "conflict")
            record_conflict(e.kind.value)
            raise_for_violation(e, command["criteria_name"])
        except DomainException as e:
            self.db.rollback()
            record_command(action, "rejected")
            logging.warning(
                f"Provisioning criteria {action} rejected: {e.message}",
                extra={"step": f"criteria_{action}", "error_code": e.code},
            )
            raise
        except Exception:
            self.db.rollback()
            record_command(action, "failed")
            raise
        record_command(action, "success")
