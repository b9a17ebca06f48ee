"""SQLAlchemy ORM models for provisioning criteria and the tables they reference"""

from sqlalchemy import (
    BigInteger,
    Boolean,
    Column,
    DateTime,
    ForeignKey,
    Integer,
    Numeric,
    String,
    Table,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import declarative_base, relationship
from sqlalchemy.sql import func

from provisioning_service.domain.validation import PERCENTAGE_SCALE

Base = declarative_base()

# SQLite only autoincrements INTEGER primary keys
IdType = BigInteger().with_variant(Integer, "sqlite")

# Names are looked up when classifying IntegrityError in repositories.py
CRITERIA_NAME_CONSTRAINT = "uq_provisioning_criteria_name"
PRODUCT_MAPPING_CONSTRAINT = "uq_provisioning_product"


class ProvisioningCategoryRecord(Base):
    """Provisioning category (read-only reference data)"""

    __tablename__ = "m_provision_category"

    id = Column(IdType, primary_key=True)
    category_name = Column(String(100), nullable=False, unique=True)
    description = Column(Text, nullable=True)


class GLAccountRecord(Base):
    """General ledger account (read-only reference data)"""

    __tablename__ = "acc_gl_account"

    id = Column(IdType, primary_key=True)
    name = Column(String(200), nullable=False)
    gl_code = Column(String(45), nullable=False, unique=True)
    classification_enum = Column(Integer, nullable=False)


class LoanProductRecord(Base):
    """Loan product (read-only reference data)"""

    __tablename__ = "m_product_loan"

    id = Column(IdType, primary_key=True)
    name = Column(String(100), nullable=False, unique=True)


loan_product_provisioning_mapping = Table(
    "m_loanproduct_provisioning_mapping",
    Base.metadata,
    Column(
        "criteria_id",
        IdType,
        ForeignKey("m_provisioning_criteria.id", ondelete="CASCADE"),
        primary_key=True,
    ),
    Column(
        "product_id",
        IdType,
        ForeignKey("m_product_loan.id"),
        primary_key=True,
    ),
    UniqueConstraint("product_id", name=PRODUCT_MAPPING_CONSTRAINT),
)


class ProvisioningCriteriaRecord(Base):
    """Provisioning criteria header"""

    __tablename__ = "m_provisioning_criteria"
    __table_args__ = (UniqueConstraint("criteria_name", name=CRITERIA_NAME_CONSTRAINT),)

    id = Column(IdType, primary_key=True, autoincrement=True)
    criteria_name = Column(String(200), nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now())

    definitions = relationship(
        "ProvisioningCriteriaDefinitionRecord",
        back_populates="criteria",
        cascade="all, delete-orphan",
        order_by="ProvisioningCriteriaDefinitionRecord.id",
    )
    loan_products = relationship(
        "LoanProductRecord",
        secondary=loan_product_provisioning_mapping,
        order_by="LoanProductRecord.id",
    )


class ProvisioningCriteriaDefinitionRecord(Base):
    """Age band within a criteria, with a snapshot of its GL accounts"""

    __tablename__ = "m_provisioning_criteria_definition"

    id = Column(IdType, primary_key=True, autoincrement=True)
    criteria_id = Column(
        IdType,
        ForeignKey("m_provisioning_criteria.id", ondelete="CASCADE"),
        nullable=False,
    )
    category_id = Column(IdType, ForeignKey("m_provision_category.id"), nullable=False)
    min_age = Column(BigInteger, nullable=False)
    max_age = Column(BigInteger, nullable=False)
    provision_percentage = Column(Numeric(19, PERCENTAGE_SCALE), nullable=False)
    liability_account = Column(IdType, ForeignKey("acc_gl_account.id"), nullable=False)
    liability_code = Column(String(45), nullable=False)
    liability_name = Column(String(200), nullable=False)
    expense_account = Column(IdType, ForeignKey("acc_gl_account.id"), nullable=False)
    expense_code = Column(String(45), nullable=False)
    expense_name = Column(String(200), nullable=False)

    criteria = relationship("ProvisioningCriteriaRecord", back_populates="definitions")
    category = relationship("ProvisioningCategoryRecord")


class ProvisioningEntryRecord(Base):
    """Provisioning run output; only its link to a criteria is read here"""

    __tablename__ = "m_provisioning_history"

    id = Column(IdType, primary_key=True, autoincrement=True)
    criteria_id = Column(IdType, ForeignKey("m_provisioning_criteria.id"), nullable=False, index=True)
    journal_entry_created = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
