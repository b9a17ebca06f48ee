"""Builds Criteria aggregates from validated payloads"""

from typing import Iterable, List, Optional, Tuple

from provisioning_service.domain.criteria import Criteria
from provisioning_service.domain.models import Definition, LoanProduct
from provisioning_service.domain.ports import LoanProductResolver
from provisioning_service.domain.validation import DefinitionValidator
from provisioning_service.services.payloads import CriteriaCreatePayload, CriteriaUpdatePayload


class CriteriaAssembler:
    """Resolves payload references into a not-yet-persisted Criteria"""

    def __init__(self, validator: DefinitionValidator, product_resolver: LoanProductResolver):
        self.validator = validator
        self.product_resolver = product_resolver

    def from_parsed_payload(self, payload: CriteriaCreatePayload) -> Criteria:
        """
        Assemble a new criteria. The first failing reference or rule aborts.

        Each band is checked for overlap against the bands assembled before
        it. Ids sent with the bands are ignored: every band is new here.
        """
        definitions: List[Definition] = []
        for entry in payload.definitions:
            definitions.append(self.validator.validate(entry.to_data(keep_id=False), definitions))

        products = self._resolve_products(payload.loan_products)
        return Criteria.create(payload.criteria_name, definitions, products)

    def parse_loan_products(self, payload: CriteriaUpdatePayload) -> Optional[Tuple[LoanProduct, ...]]:
        """Resolve only the product list; None when the payload has none"""
        if payload.loan_products is None:
            return None
        return self._resolve_products(payload.loan_products)

    def _resolve_products(self, product_ids: Iterable[int]) -> Tuple[LoanProduct, ...]:
        resolved = {}
        for product_id in product_ids:
            if product_id not in resolved:
                resolved[product_id] = self.product_resolver.resolve(product_id)
        return tuple(resolved.values())
