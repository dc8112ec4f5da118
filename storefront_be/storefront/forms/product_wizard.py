"""Multi-step product editor: details -> variants -> media -> preview -> submit.

Each forward move only validates the fields owned by the current step, so an
admin gets told about a bad price on the first screen rather than at the end.
Outcomes are reported on the ``AlertChannel`` handed to the wizard, if any.
"""
import logging
from enum import Enum
from typing import Dict, Optional

from pydantic import ValidationError
from sqlalchemy.orm import Session

from storefront.schemas.product import ProductIn
from storefront.services.products import create_product, update_product
from storefront.utils.alerts import AlertChannel
from storefront.utils.errors import StorefrontError

logger = logging.getLogger(__name__)

STEP_ERROR_MESSAGE = "Please fix the highlighted fields."


class ProductFormStep(str, Enum):
    DETAILS = "details"
    VARIANTS = "variants"
    MEDIA = "media"
    PREVIEW = "preview"
    SUBMITTED = "submitted"


STEP_FIELDS = {
    ProductFormStep.DETAILS: (
        "title", "slug", "description", "titlePrice", "discountedPrice", "categoryId", "isFeatured", "isArchived",
    ),
    ProductFormStep.VARIANTS: ("variants", "colors", "tags"),
    ProductFormStep.MEDIA: ("mainImageUrl", "images"),
}

_FORWARD = {
    ProductFormStep.DETAILS: ProductFormStep.VARIANTS,
    ProductFormStep.VARIANTS: ProductFormStep.MEDIA,
    ProductFormStep.MEDIA: ProductFormStep.PREVIEW,
}
_BACK = {target: source for source, target in _FORWARD.items()}


class WizardStateError(StorefrontError):
    pass


class ProductWizard:
    def __init__(self, initial: Optional[dict] = None, product_id: Optional[str] = None,
                 alerts: Optional[AlertChannel] = None):
        self.values: dict = dict(initial or {})
        self.product_id = product_id
        self.alerts = alerts
        self.step = ProductFormStep.DETAILS
        self.errors: Dict[str, str] = {}

    @classmethod
    def resume(cls, step: ProductFormStep, values: Optional[dict] = None, product_id: Optional[str] = None,
               alerts: Optional[AlertChannel] = None) -> "ProductWizard":
        """Rebuild a wizard positioned at ``step`` from the values a client sent back."""
        step = ProductFormStep(step)
        if step is ProductFormStep.SUBMITTED:
            raise WizardStateError("Product already submitted")
        wizard = cls(values, product_id=product_id, alerts=alerts)
        wizard.step = step
        return wizard

    @property
    def is_editing(self) -> bool:
        return self.product_id is not None

    def update(self, values: Optional[dict] = None, **extra) -> None:
        self.values.update(values or {})
        self.values.update(extra)

    def validate_step(self, step: Optional[ProductFormStep] = None) -> Dict[str, str]:
        fields = STEP_FIELDS.get(step or self.step, ())
        try:
            ProductIn.model_validate(self.values)
        except ValidationError as e:
            errors = {}
            for err in e.errors():
                field = str(err["loc"][0]) if err["loc"] else ""
                if field in fields:
                    errors.setdefault(field, err["msg"])
            return errors
        return {}

    def next(self, values: Optional[dict] = None) -> bool:
        """Merge ``values``, validate the current step and advance. Returns False on errors."""
        if self.step not in _FORWARD:
            raise WizardStateError(f"Cannot advance from step '{self.step.value}'")
        self.update(values)
        self.errors = self.validate_step()
        if self.errors:
            if self.alerts:
                self.alerts.error(STEP_ERROR_MESSAGE)
            return False
        self.step = _FORWARD[self.step]
        if self.alerts:
            self.alerts.clear()
        return True

    def back(self) -> ProductFormStep:
        if self.step is ProductFormStep.SUBMITTED:
            raise WizardStateError("Product already submitted")
        self.step = _BACK.get(self.step, ProductFormStep.DETAILS)
        self.errors = {}
        return self.step

    def submit(self, db: Session) -> dict:
        if self.step is not ProductFormStep.PREVIEW:
            raise WizardStateError(f"Submit is only allowed from preview, not '{self.step.value}'")
        if self.is_editing:
            result = update_product(db, self.product_id, self.values)
        else:
            result = create_product(db, self.values)
        if result.get("success"):
            self.step = ProductFormStep.SUBMITTED
            if self.alerts:
                self.alerts.success("Product updated." if self.is_editing else "Product created.")
        else:
            logger.info("Product wizard submit failed: %s", result.get("error"))
            if self.alerts:
                self.alerts.error(result.get("error") or "Failed to save product")
        return result
