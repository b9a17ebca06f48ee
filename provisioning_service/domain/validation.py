"""Age-band validation rules for provisioning criteria definitions"""

from decimal import Decimal, InvalidOperation
from typing import Iterable, Optional, Sequence

from provisioning_service.domain.exceptions import ValidationError
from provisioning_service.domain.models import Category, Definition, DefinitionData, GLAccount, GLAccountType
from provisioning_service.domain.ports import CategoryResolver, GLAccountResolver

MIN_PERCENTAGE = Decimal("0")
MAX_PERCENTAGE = Decimal("100")
# Decimal places kept by the provision_percentage column
PERCENTAGE_SCALE = 6
PERCENTAGE_STEP = Decimal(1).scaleb(-PERCENTAGE_SCALE)


def _is_int(value) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def check_age_range(min_age, max_age) -> None:
    """Both ages are non-negative day counts and min_age < max_age"""
    if not _is_int(min_age) or min_age < 0:
        raise ValidationError("min_age", f"must be a non-negative integer, got {min_age!r}")
    if not _is_int(max_age) or max_age < 0:
        raise ValidationError("max_age", f"must be a non-negative integer, got {max_age!r}")
    if min_age >= max_age:
        raise ValidationError("max_age", f"must be greater than min_age ({min_age}), got {max_age}")


def check_percentage(value) -> Decimal:
    """Coerce to Decimal, require 0 <= value <= 100 and at most PERCENTAGE_SCALE places"""
    if isinstance(value, bool):
        raise ValidationError("provisioning_percentage", f"must be a decimal number, got {value!r}")
    try:
        percentage = value if isinstance(value, Decimal) else Decimal(str(value))
    except (InvalidOperation, ValueError):
        raise ValidationError("provisioning_percentage", f"must be a decimal number, got {value!r}")
    if not percentage.is_finite() or not MIN_PERCENTAGE <= percentage <= MAX_PERCENTAGE:
        raise ValidationError(
            "provisioning_percentage",
            f"must be between {MIN_PERCENTAGE} and {MAX_PERCENTAGE}, got {value}",
        )
    if percentage.quantize(PERCENTAGE_STEP) != percentage:
        raise ValidationError(
            "provisioning_percentage",
            f"must have at most {PERCENTAGE_SCALE} decimal places, got {value}",
        )
    return percentage


def is_liability_type(account: GLAccount) -> bool:
    return account.account_type == GLAccountType.LIABILITY


def is_expense_type(account: GLAccount) -> bool:
    return account.account_type == GLAccountType.EXPENSE


def check_account_types(liability_account: GLAccount, expense_account: GLAccount) -> None:
    if not is_liability_type(liability_account):
        raise ValidationError(
            "liability_account",
            f"GL account {liability_account.id} is {liability_account.account_type.name}, expected LIABILITY",
        )
    if not is_expense_type(expense_account):
        raise ValidationError(
            "expense_account",
            f"GL account {expense_account.id} is {expense_account.account_type.name}, expected EXPENSE",
        )


def check_no_overlap(candidate: Definition, others: Iterable[Definition]) -> None:
    """Bands of one category must not intersect; the candidate's own id is skipped"""
    for other in others:
        if candidate.id is not None and other.id == candidate.id:
            continue
        if candidate.overlaps(other):
            raise ValidationError(
                "definitions",
                f"age band [{candidate.min_age}, {candidate.max_age}) overlaps "
                f"[{other.min_age}, {other.max_age}) for category {candidate.category_name}",
            )


def check_bands(definitions: Sequence[Definition]) -> None:
    """No two bands of the set overlap, whatever order they were written in"""
    for index, definition in enumerate(definitions):
        check_no_overlap(definition, definitions[index + 1:])


def build_definition(
    data: DefinitionData,
    category: Category,
    liability_account: GLAccount,
    expense_account: GLAccount,
    others: Iterable[Definition] = (),
    definition_id: Optional[int] = None,
) -> Definition:
    """
    Run every rule on already-resolved references and build the band.

    The GL account code and name are copied from the resolved accounts so
    the snapshot always matches the referenced account at write time.
    """
    check_age_range(data.min_age, data.max_age)
    percentage = check_percentage(data.provisioning_percentage)
    check_account_types(liability_account, expense_account)

    definition = Definition(
        id=definition_id if definition_id is not None else data.id,
        category_id=category.id,
        category_name=category.name,
        min_age=data.min_age,
        max_age=data.max_age,
        provisioning_percentage=percentage,
        liability_account_id=liability_account.id,
        liability_code=liability_account.gl_code,
        liability_name=liability_account.name,
        expense_account_id=expense_account.id,
        expense_code=expense_account.gl_code,
        expense_name=expense_account.name,
    )
    check_no_overlap(definition, others)
    return definition


class DefinitionValidator:
    """Resolves a definition's references and checks it against its siblings"""

    def __init__(self, category_resolver: CategoryResolver, account_resolver: GLAccountResolver):
        self.category_resolver = category_resolver
        self.account_resolver = account_resolver

    def validate(self, data: DefinitionData, others: Iterable[Definition] = ()) -> Definition:
        """
        Validate a single age band.

        Raises:
            CategoryNotFoundError: category id does not resolve
            GLAccountNotFoundError: either account id does not resolve
            ValidationError: bad ages, percentage, account type or overlap
        """
        # Cheap value checks run before any lookup
        check_age_range(data.min_age, data.max_age)
        check_percentage(data.provisioning_percentage)

        category = self.category_resolver.resolve(data.category_id)
        liability_account = self.account_resolver.resolve(data.liability_account)
        expense_account = self.account_resolver.resolve(data.expense_account)

        return build_definition(data, category, liability_account, expense_account, others)
