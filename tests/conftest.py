"""Pytest fixtures for testing"""

import pytest
from typing import Any, Dict, Generator
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, Session
from provisioning_service.api.main import create_app
from provisioning_service.domain.models import GLAccountType
from provisioning_service.infrastructure.database.models import (
    Base,
    GLAccountRecord,
    LoanProductRecord,
    ProvisioningCategoryRecord,
)
from provisioning_service.infrastructure.database.session import get_db
from provisioning_service.services.criteria_service import CriteriaService


# Test database
TEST_DATABASE_URL = "sqlite:///./test.db"
engine = create_engine(TEST_DATABASE_URL, connect_args={"check_same_thread": False})
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

STANDARD = 1
SUB_STANDARD = 2
DOUBTFUL = 3
LOSS = 4

LIABILITY_ACCOUNT = 101
OTHER_LIABILITY_ACCOUNT = 102
EXPENSE_ACCOUNT = 201
OTHER_EXPENSE_ACCOUNT = 202
ASSET_ACCOUNT = 301


def _seed_reference_data(db: Session) -> None:
    db.add_all(
        [
            ProvisioningCategoryRecord(id=STANDARD, category_name="STANDARD", description="Punctual payment"),
            ProvisioningCategoryRecord(id=SUB_STANDARD, category_name="SUB-STANDARD", description="Principal overdue"),
            ProvisioningCategoryRecord(id=DOUBTFUL, category_name="DOUBTFUL", description="Long overdue"),
            ProvisioningCategoryRecord(id=LOSS, category_name="LOSS", description="Unrecoverable"),
            GLAccountRecord(
                id=LIABILITY_ACCOUNT, name="Loan Loss Reserve", gl_code="2100",
                classification_enum=GLAccountType.LIABILITY.value,
            ),
            GLAccountRecord(
                id=OTHER_LIABILITY_ACCOUNT, name="General Provision", gl_code="2200",
                classification_enum=GLAccountType.LIABILITY.value,
            ),
            GLAccountRecord(
                id=EXPENSE_ACCOUNT, name="Provisioning Expense", gl_code="5100",
                classification_enum=GLAccountType.EXPENSE.value,
            ),
            GLAccountRecord(
                id=OTHER_EXPENSE_ACCOUNT, name="Bad Debt Expense", gl_code="5200",
                classification_enum=GLAccountType.EXPENSE.value,
            ),
            GLAccountRecord(
                id=ASSET_ACCOUNT, name="Loans Receivable", gl_code="1100",
                classification_enum=GLAccountType.ASSET.value,
            ),
            LoanProductRecord(id=1, name="Personal Loan"),
            LoanProductRecord(id=2, name="Home Loan"),
            LoanProductRecord(id=3, name="Auto Loan"),
        ]
    )
    db.commit()


@pytest.fixture
def db() -> Generator[Session, None, None]:
    """Create test database seeded with categories, GL accounts and loan products"""
    Base.metadata.create_all(bind=engine)
    db = TestingSessionLocal()
    _seed_reference_data(db)
    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def service(db: Session) -> CriteriaService:
    return CriteriaService.for_session(db)


@pytest.fixture
def client(db: Session) -> TestClient:
    """Create FastAPI test client with test database"""
    app = create_app()

    def override_get_db():
        try:
            yield db
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    return TestClient(app)


def definition_payload(**overrides: Any) -> Dict[str, Any]:
    """Age band entry for 0-90 days at 1% on the default accounts"""
    entry = {
        "category_id": STANDARD,
        "min_age": 0,
        "max_age": 90,
        "provisioning_percentage": "1.0",
        "liability_account": LIABILITY_ACCOUNT,
        "expense_account": EXPENSE_ACCOUNT,
    }
    entry.update(overrides)
    return entry


@pytest.fixture
def standard_payload() -> Dict[str, Any]:
    return {
        "criteria_name": "Standard",
        "definitions": [definition_payload()],
        "loan_products": [1],
    }


@pytest.fixture
def make_definition():
    return definition_payload
