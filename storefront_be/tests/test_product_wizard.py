import pytest

from storefront.forms.product_wizard import STEP_ERROR_MESSAGE, ProductFormStep, ProductWizard, WizardStateError
from storefront.models.product import Product
from storefront.utils.alerts import AlertChannel, AlertType


@pytest.fixture
def category(make_category):
    return make_category("Kitchen")


def _details(category_id):
    return {
        "title": "Kettle",
        "description": "Boils a litre of water in two minutes.",
        "titlePrice": 39.5,
        "categoryId": category_id,
    }


def _walk_to_preview(wizard, category_id):
    assert wizard.next(_details(category_id))
    assert wizard.next({"variants": [{"type": "Color", "value": "Steel", "price": 39.5, "stock": 4}]})
    assert wizard.next({"mainImageUrl": "https://cdn.example.com/kettle.jpg"})
    assert wizard.step is ProductFormStep.PREVIEW


def test_details_step_only_reports_its_own_fields(category):
    wizard = ProductWizard()

    assert wizard.next({"title": "K", "description": "Boils a litre of water.", "categoryId": category.id}) is False

    assert wizard.step is ProductFormStep.DETAILS
    assert set(wizard.errors) == {"title", "titlePrice"}


def test_variant_errors_block_the_variants_step(category):
    wizard = ProductWizard()
    wizard.next(_details(category.id))

    ok = wizard.next({"variants": [{"type": "Size", "value": "L", "price": 5, "stock": -2}]})

    assert ok is False
    assert wizard.step is ProductFormStep.VARIANTS
    assert "variants" in wizard.errors


def test_back_keeps_values_and_clears_errors(category):
    wizard = ProductWizard()
    wizard.next(_details(category.id))
    wizard.next({"variants": [{"type": "Size", "value": "L", "price": 5, "stock": -2}]})

    assert wizard.back() is ProductFormStep.DETAILS
    assert wizard.errors == {}
    assert wizard.values["title"] == "Kettle"
    assert wizard.back() is ProductFormStep.DETAILS


def test_submit_creates_product(db, category):
    wizard = ProductWizard()
    _walk_to_preview(wizard, category.id)

    result = wizard.submit(db)

    assert result["success"] is True
    assert wizard.step is ProductFormStep.SUBMITTED
    assert db.query(Product).filter(Product.slug == "kettle").count() == 1
    with pytest.raises(WizardStateError):
        wizard.next()
    with pytest.raises(WizardStateError):
        wizard.back()


def test_submit_before_preview_is_rejected(db, category):
    wizard = ProductWizard(initial=_details(category.id))

    with pytest.raises(WizardStateError):
        wizard.submit(db)


def test_edit_wizard_updates_existing_product(db, category, make_product):
    product = make_product(category, title="Old Kettle")
    wizard = ProductWizard(initial={"tags": ["kitchen"]}, product_id=product.id)
    assert wizard.is_editing
    _walk_to_preview(wizard, category.id)

    result = wizard.submit(db)

    assert result["success"] is True
    assert result["data"]["title"] == "Kettle"
    assert result["data"]["slug"] == "old-kettle"
    assert [t["name"] for t in result["data"]["tags"]] == ["kitchen"]


def test_failed_submit_stays_on_preview(db, category):
    wizard = ProductWizard(product_id="missing")
    _walk_to_preview(wizard, category.id)

    result = wizard.submit(db)

    assert result["success"] is False
    assert wizard.step is ProductFormStep.PREVIEW


def test_details_step_checks_discounted_price(category):
    wizard = ProductWizard()

    assert wizard.next({**_details(category.id), "discountedPrice": "cheap"}) is False

    assert wizard.step is ProductFormStep.DETAILS
    assert set(wizard.errors) == {"discountedPrice"}


def test_alerts_report_step_errors_and_clear_on_success(category):
    alerts = AlertChannel()
    wizard = ProductWizard(alerts=alerts)

    wizard.next({"title": "K"})
    assert alerts.current.message == STEP_ERROR_MESSAGE
    assert alerts.current.type is AlertType.ERROR

    wizard.next(_details(category.id))
    assert alerts.current is None


def test_alerts_report_submit_outcome(db, category):
    alerts = AlertChannel()
    wizard = ProductWizard(alerts=alerts)
    _walk_to_preview(wizard, category.id)

    wizard.submit(db)

    assert alerts.current.message == "Product created."
    assert alerts.current.type is AlertType.SUCCESS

    failing = ProductWizard(product_id="missing", alerts=alerts)
    _walk_to_preview(failing, category.id)
    failing.submit(db)
    assert alerts.current.message == "Product not found"


def test_resume_positions_wizard_at_step(category):
    wizard = ProductWizard.resume("media", {**_details(category.id), "mainImageUrl": "nope"})

    assert wizard.step is ProductFormStep.MEDIA
    assert wizard.next() is False
    assert set(wizard.errors) == {"mainImageUrl"}

    with pytest.raises(WizardStateError):
        ProductWizard.resume(ProductFormStep.SUBMITTED)
