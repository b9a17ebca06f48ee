"""Unit tests for the Criteria aggregate"""

import pytest
from decimal import Decimal
from provisioning_service.domain.criteria import Criteria
from provisioning_service.domain.exceptions import DefinitionNotFoundError, ValidationError
from provisioning_service.domain.models import (
    Category,
    ChangeSet,
    DefinitionData,
    GLAccount,
    GLAccountType,
    LoanProduct,
)
from provisioning_service.domain.validation import build_definition

STANDARD = Category(id=1, name="STANDARD")
LIABILITY = GLAccount(id=101, name="Loan Loss Reserve", gl_code="2100", account_type=GLAccountType.LIABILITY)
RENAMED_LIABILITY = GLAccount(id=101, name="Reserve for Loan Losses", gl_code="2100", account_type=GLAccountType.LIABILITY)
EXPENSE = GLAccount(id=201, name="Provisioning Expense", gl_code="5100", account_type=GLAccountType.EXPENSE)
PERSONAL = LoanProduct(id=1, name="Personal Loan")
HOME = LoanProduct(id=2, name="Home Loan")
AUTO = LoanProduct(id=3, name="Auto Loan")


def band(min_age=0, max_age=90, percentage="1.0", id=None) -> DefinitionData:
    return DefinitionData(
        id=id,
        category_id=1,
        min_age=min_age,
        max_age=max_age,
        provisioning_percentage=Decimal(percentage),
        liability_account=101,
        expense_account=201,
    )


@pytest.fixture
def stored() -> Criteria:
    """Criteria as loaded from storage: id 10 with one band (id 7) and one product"""
    definition = build_definition(band(id=7), STANDARD, LIABILITY, EXPENSE)
    return Criteria(id=10, name="Standard", definitions=(definition,), loan_products=(PERSONAL,))


def test_create_requires_definitions():
    with pytest.raises(ValidationError) as exc_info:
        Criteria.create("Standard", [])
    assert exc_info.value.field == "definitions"


def test_create_rejects_blank_name(stored: Criteria):
    with pytest.raises(ValidationError) as exc_info:
        Criteria.create("   ", stored.definitions)
    assert exc_info.value.field == "criteria_name"


def test_create_collapses_duplicate_products(stored: Criteria):
    criteria = Criteria.create("Standard", stored.definitions, [PERSONAL, HOME, PERSONAL])
    assert criteria.product_ids == {1, 2}
    assert criteria.id is None


def test_update_with_identical_values_is_empty(stored: Criteria):
    updated, changes = stored.update(name="Standard", loan_products=[PERSONAL])

    assert not changes
    assert changes == ChangeSet()
    assert updated == stored


def test_update_ignores_fields_not_requested(stored: Criteria):
    updated, changes = stored.update()
    assert not changes
    assert updated is stored


def test_update_name_returns_new_snapshot(stored: Criteria):
    updated, changes = stored.update(name="Conservative")

    assert changes.fields == {"criteria_name"}
    assert changes.changes["criteria_name"] == "Conservative"
    assert updated.name == "Conservative"
    assert stored.name == "Standard"  # loaded snapshot untouched


def test_update_products_reports_set_difference(stored: Criteria):
    updated, changes = stored.update(loan_products=[HOME, AUTO])

    assert changes.changes["loan_products"] == {"added": [2, 3], "removed": [1]}
    assert updated.product_ids == {2, 3}


def test_update_products_order_is_not_a_change(stored: Criteria):
    criteria = Criteria(id=10, name="Standard", definitions=stored.definitions, loan_products=(PERSONAL, HOME))
    _, changes = criteria.update(loan_products=[HOME, PERSONAL])
    assert not changes


def test_update_empty_product_list_removes_all(stored: Criteria):
    updated, changes = stored.update(loan_products=[])
    assert changes.changes["loan_products"] == {"added": [], "removed": [1]}
    assert updated.loan_products == ()


def test_apply_definition_update_changes_percentage(stored: Criteria):
    updated, changed = stored.apply_definition_update(band(id=7, percentage="2.5"), STANDARD, LIABILITY, EXPENSE)

    assert changed is True
    assert updated.definitions[0].provisioning_percentage == Decimal("2.5")
    assert stored.definitions[0].provisioning_percentage == Decimal("1.0")


def test_apply_definition_update_same_values_is_unchanged(stored: Criteria):
    updated, changed = stored.apply_definition_update(band(id=7), STANDARD, LIABILITY, EXPENSE)
    assert changed is False
    assert updated is stored


def test_apply_definition_update_refreshes_account_snapshot(stored: Criteria):
    """Renaming a GL account shows up on the next write of the band"""
    updated, changed = stored.apply_definition_update(band(id=7), STANDARD, RENAMED_LIABILITY, EXPENSE)
    assert changed is True
    assert updated.definitions[0].liability_name == "Reserve for Loan Losses"


def test_apply_definition_update_appends_new_band(stored: Criteria):
    updated, changed = stored.apply_definition_update(band(min_age=90, max_age=180), STANDARD, LIABILITY, EXPENSE)

    assert changed is True
    assert len(updated.definitions) == 2
    assert updated.definitions[1].id is None


def test_apply_definition_update_rejects_overlapping_new_band(stored: Criteria):
    with pytest.raises(ValidationError):
        stored.apply_definition_update(band(min_age=30, max_age=120), STANDARD, LIABILITY, EXPENSE)


def test_deferred_overlap_is_caught_by_check_bands(stored: Criteria):
    updated, changed = stored.apply_definition_update(
        band(min_age=30, max_age=120), STANDARD, LIABILITY, EXPENSE, check_overlap=False
    )
    assert changed is True

    with pytest.raises(ValidationError) as exc_info:
        updated.check_bands()
    assert exc_info.value.field == "definitions"


def test_apply_definition_update_unknown_id(stored: Criteria):
    with pytest.raises(DefinitionNotFoundError):
        stored.apply_definition_update(band(id=999), STANDARD, LIABILITY, EXPENSE)


def test_change_sets_merge():
    merged = ChangeSet({"criteria_name": "A"}).merge(ChangeSet({"definitions": [7]}))
    assert merged.fields == {"criteria_name", "definitions"}
