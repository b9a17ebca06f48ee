"""Pydantic models describing the accepted criteria payloads"""

from decimal import Decimal
from typing import Any, List, Mapping, Optional, Type, TypeVar

from pydantic import BaseModel, ConfigDict, Field
from pydantic import ValidationError as PydanticValidationError

from provisioning_service.domain.exceptions import ValidationError
from provisioning_service.domain.models import DefinitionData

PayloadT = TypeVar("PayloadT", bound=BaseModel)


class DefinitionPayload(BaseModel):
    """One age band entry"""

    model_config = ConfigDict(extra="forbid")

    id: Optional[int] = None
    category_id: int
    min_age: int
    max_age: int
    provisioning_percentage: Decimal
    liability_account: int
    expense_account: int

    def to_data(self, keep_id: bool = True) -> DefinitionData:
        return DefinitionData(
            id=self.id if keep_id else None,
            category_id=self.category_id,
            min_age=self.min_age,
            max_age=self.max_age,
            provisioning_percentage=self.provisioning_percentage,
            liability_account=self.liability_account,
            expense_account=self.expense_account,
        )


class CriteriaCreatePayload(BaseModel):
    """Body of a create command"""

    model_config = ConfigDict(extra="forbid")

    criteria_name: str = Field(..., min_length=1, max_length=200)
    definitions: List[DefinitionPayload] = Field(..., min_length=1)
    loan_products: List[int] = Field(default_factory=list)


class CriteriaUpdatePayload(BaseModel):
    """Body of an update command; omitted fields are left untouched"""

    model_config = ConfigDict(extra="forbid")

    criteria_name: Optional[str] = Field(None, min_length=1, max_length=200)
    definitions: Optional[List[DefinitionPayload]] = None
    loan_products: Optional[List[int]] = None


def parse_payload(model: Type[PayloadT], payload: Mapping[str, Any]) -> PayloadT:
    """Validate payload shape, reporting the first bad field as a ValidationError"""
    try:
        return model.model_validate(payload)
    except PydanticValidationError as e:
        error = e.errors()[0]
        field = ".".join(str(part) for part in error["loc"]) or "payload"
        raise ValidationError(field, error["msg"]) from e
