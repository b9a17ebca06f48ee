"""Pydantic schemas for API responses"""

from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from provisioning_service.domain.criteria import Criteria
from provisioning_service.domain.models import CommandResult


class CommandResultResponse(BaseModel):
    """Response for create, update and delete commands"""

    resource_id: int
    changes: Dict[str, Any] = Field(default_factory=dict)

    @classmethod
    def from_result(cls, result: CommandResult) -> "CommandResultResponse":
        return cls(resource_id=result.resource_id, changes=result.changes)


class DefinitionSchema(BaseModel):
    """Single age band"""

    id: Optional[int]
    category_id: int
    category_name: str
    min_age: int
    max_age: int
    provisioning_percentage: Decimal
    liability_account: int
    liability_code: str
    liability_name: str
    expense_account: int
    expense_code: str
    expense_name: str


class LoanProductSchema(BaseModel):
    id: int
    name: str


class CriteriaResponse(BaseModel):
    """Response for GET /v1/provisioningcriteria/{criteria_id}"""

    criteria_id: int
    criteria_name: str
    definitions: List[DefinitionSchema]
    loan_products: List[LoanProductSchema]
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @classmethod
    def from_domain(cls, criteria: Criteria) -> "CriteriaResponse":
        return cls(
            criteria_id=criteria.id,
            criteria_name=criteria.name,
            definitions=[
                DefinitionSchema(
                    id=d.id,
                    category_id=d.category_id,
                    category_name=d.category_name,
                    min_age=d.min_age,
                    max_age=d.max_age,
                    provisioning_percentage=d.provisioning_percentage,
                    liability_account=d.liability_account_id,
                    liability_code=d.liability_code,
                    liability_name=d.liability_name,
                    expense_account=d.expense_account_id,
                    expense_code=d.expense_code,
                    expense_name=d.expense_name,
                )
                for d in criteria.definitions
            ],
            loan_products=[LoanProductSchema(id=p.id, name=p.name) for p in criteria.loan_products],
            created_at=criteria.created_at,
            updated_at=criteria.updated_at,
        )
