"""Translate database constraint violations into domain conflicts"""

import logging
from typing import NoReturn, Optional

from provisioning_service.domain.exceptions import (
    ConstraintKind,
    ConstraintViolationError,
    DuplicateCriteriaNameError,
    ProductAlreadyAssociatedError,
    UnknownIntegrityViolationError,
)


def raise_for_violation(violation: ConstraintViolationError, criteria_name: Optional[str] = None) -> NoReturn:
    """
    Map a rejected write to the conflict the caller can act on.

    Always raises. Unknown constraints are logged with the full cause first.
    """
    if violation.kind is ConstraintKind.CRITERIA_NAME:
        raise DuplicateCriteriaNameError(criteria_name) from violation
    if violation.kind is ConstraintKind.PRODUCT_ASSOCIATION:
        raise ProductAlreadyAssociatedError() from violation

    logging.error(
        f"Unknown data integrity issue: {violation.message}",
        exc_info=violation,
        extra={"step": "conflict_translation", "constraint_kind": violation.kind.value},
    )
    raise UnknownIntegrityViolationError(violation.message) from violation
