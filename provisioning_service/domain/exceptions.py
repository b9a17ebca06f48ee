"""Domain-specific exceptions"""

from enum import Enum
from typing import Optional


class DomainException(Exception):
    """Base exception for domain layer"""

    code = "error.msg.provisioning.domain"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(DomainException):
    """Input is malformed or breaks a business rule"""

    code = "error.msg.provisioning.validation"

    def __init__(self, field: str, message: str):
        super().__init__(f"{field}: {message}")
        self.field = field


class NotFoundError(DomainException):
    """A referenced entity does not exist"""

    code = "error.msg.provisioning.not.found"
    entity = "resource"

    def __init__(self, entity_id):
        super().__init__(f"{self.entity.capitalize()} with identifier {entity_id} does not exist")
        self.entity_id = entity_id


class CategoryNotFoundError(NotFoundError):
    code = "error.msg.provisioning.category.id.invalid"
    entity = "provisioning category"


class GLAccountNotFoundError(NotFoundError):
    code = "error.msg.glaccount.id.invalid"
    entity = "GL account"


class LoanProductNotFoundError(NotFoundError):
    code = "error.msg.loanproduct.id.invalid"
    entity = "loan product"


class CriteriaNotFoundError(NotFoundError):
    code = "error.msg.provisioning.criteria.id.invalid"
    entity = "provisioning criteria"


class DefinitionNotFoundError(NotFoundError):
    code = "error.msg.provisioning.definition.id.invalid"
    entity = "provisioning criteria definition"


class ConflictError(DomainException):
    """Operation conflicts with stored state"""

    code = "error.msg.provisioning.conflict"


class DuplicateCriteriaNameError(ConflictError):
    code = "error.msg.provisioning.duplicate.criterianame"

    def __init__(self, name: Optional[str]):
        super().__init__(f"Provisioning Criteria with name `{name}` already exists")
        self.name = name


class ProductAlreadyAssociatedError(ConflictError):
    code = "error.msg.provisioning.product.id(s).already.associated.existing.criteria"

    def __init__(self):
        super().__init__("The selected products already associated with another Provisioning Criteria")


class CriteriaInUseError(ConflictError):
    code = "error.msg.provisioning.criteria.cannot.be.deleted"

    def __init__(self, criteria_id: int):
        super().__init__(
            f"Provisioning Criteria with identifier {criteria_id} cannot be deleted as it is already used in loan provisioning"
        )
        self.criteria_id = criteria_id


class UnknownIntegrityViolationError(ConflictError):
    code = "error.msg.provisioning.unknown.data.integrity.issue"

    def __init__(self, cause: str):
        super().__init__(f"Unknown data integrity issue with resource: {cause}")
        self.cause = cause


class ConstraintKind(str, Enum):
    """Persistence constraints the service knows how to explain"""

    CRITERIA_NAME = "criteria_name"
    PRODUCT_ASSOCIATION = "product_association"
    OTHER = "other"


class ConstraintViolationError(Exception):
    """Raised by the persistence layer when a write breaks a database constraint"""

    def __init__(self, kind: ConstraintKind, message: str):
        super().__init__(message)
        self.kind = kind
        self.message = message
