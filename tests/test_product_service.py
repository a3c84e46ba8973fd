"""Tests for the product service against an in-memory repository."""
from decimal import Decimal

import pytest

from app.config import Settings
from app.models.product import INT_MAX, ProductStatus
from app.schemas.product import ProductCreate, ProductUpdate
from app.services.exceptions import (
    BusinessRuleError,
    DuplicateNameError,
    InsufficientStockError,
    InvalidPriceError,
    InvalidStatusTransitionError,
    ProductNotFoundError,
    StockLimitExceededError,
)
from app.services.product_service import ProductService


def make_product(service, name="Test Product", price="99.99", stock=50, **kwargs):
    return service.create(ProductCreate(name=name, price=Decimal(price), stock=stock, **kwargs))


def test_create_assigns_id_and_defaults_to_active(service):
    """Test creating a product without a status."""
    product = make_product(service)

    assert product.id is not None
    assert product.status == ProductStatus.ACTIVE
    assert product.price == Decimal("99.99")
    assert product.stock == 50
    assert product.created_at is not None


def test_create_keeps_explicit_status(service):
    product = make_product(service, status=ProductStatus.DISCONTINUED)

    assert product.status == ProductStatus.DISCONTINUED


def test_create_duplicate_name_fails(service, repository):
    """Test second product with the same name is rejected regardless of other fields."""
    make_product(service, name="Widget", price="10.00", stock=1)

    with pytest.raises(DuplicateNameError) as exc_info:
        make_product(service, name="Widget", price="20.00", stock=99, description="different")

    assert exc_info.value.name == "Widget"
    assert exc_info.value.error_code == "DUPLICATE_NAME"
    assert len(repository.find_all()) == 1


def test_create_name_uniqueness_is_case_sensitive(service):
    make_product(service, name="Widget")

    product = make_product(service, name="widget")

    assert product.id is not None


def test_create_rejects_non_positive_price(service, repository):
    """Test price is checked by the service even when schema validation is bypassed."""
    candidate = ProductCreate.model_construct(name="Free Lunch", price=Decimal("0"), stock=1)

    with pytest.raises(InvalidPriceError):
        service.create(candidate)

    assert repository.find_all() == []


def test_create_rejects_missing_price(service):
    candidate = ProductCreate.model_construct(name="No Price", price=None, stock=1)

    with pytest.raises(InvalidPriceError):
        service.create(candidate)


def test_get_by_id_not_found(service):
    with pytest.raises(ProductNotFoundError) as exc_info:
        service.get_by_id(42)

    assert exc_info.value.product_id == 42
    assert "42" in str(exc_info.value)


def test_get_all_paginates_newest_first(service):
    for i in range(5):
        make_product(service, name=f"Product {i}")

    products, total, total_pages = service.get_all(page=1, page_size=2)

    assert total == 5
    assert total_pages == 3
    assert [p.name for p in products] == ["Product 4", "Product 3"]


def test_get_all_empty_has_one_page(service):
    products, total, total_pages = service.get_all()

    assert products == []
    assert total == 0
    assert total_pages == 1


def test_find_all_returns_every_product_unpaginated(service):
    for i in range(12):
        make_product(service, name=f"Product {i:02d}")

    products = service.find_all()

    assert len(products) == 12
    assert [p.name for p in products] == [f"Product {i:02d}" for i in range(12)]


def test_search_without_filters_returns_everything(service):
    for name in ("Alpha", "Beta", "Gamma"):
        make_product(service, name=name)

    assert len(service.search()) == 3


def test_search_by_name_is_case_insensitive_substring(service):
    make_product(service, name="Apple iPhone")
    make_product(service, name="Samsung Galaxy")
    make_product(service, name="apple MacBook")

    results = service.search(name_pattern="APPLE")

    assert sorted(p.name for p in results) == ["Apple iPhone", "apple MacBook"]


def test_search_filters_combine(service):
    make_product(service, name="Cheap", price="5.00")
    make_product(service, name="Mid", price="50.00")
    make_product(service, name="Pricey", price="500.00")
    service.discontinue(make_product(service, name="Mid Old", price="50.00").id)

    results = service.search(min_price=Decimal("5.00"), max_price=Decimal("50.00"),
                             status=ProductStatus.ACTIVE)

    assert sorted(p.name for p in results) == ["Cheap", "Mid"]


def test_search_no_match_is_empty(service):
    make_product(service)

    assert service.search(name_pattern="nothing like this") == []


def test_update_applies_only_supplied_fields(service):
    """Test merge-patch: untouched fields keep their values."""
    product = make_product(service, description="Original")

    updated = service.update(product.id, ProductUpdate(name="Renamed", price=Decimal("75.00")))

    assert updated.name == "Renamed"
    assert updated.price == Decimal("75.00")
    assert updated.stock == 50
    assert updated.description == "Original"
    assert updated.status == ProductStatus.ACTIVE


def test_update_can_clear_description(service):
    product = make_product(service, description="To be removed")

    updated = service.update(product.id, ProductUpdate(description=None))

    assert updated.description is None


def test_update_invalid_price_changes_nothing(service, repository):
    product = make_product(service)
    saves_before = repository.save_count

    with pytest.raises(InvalidPriceError):
        service.update(product.id, ProductUpdate(name="Renamed", price=Decimal("-1.00")))

    stored = repository.find_by_id(product.id)
    assert stored.name == "Test Product"
    assert stored.price == Decimal("99.99")
    assert repository.save_count == saves_before


def test_update_not_found(service):
    with pytest.raises(ProductNotFoundError):
        service.update(999, ProductUpdate(name="Ghost"))


def test_update_does_not_enforce_name_uniqueness(service):
    make_product(service, name="First")
    second = make_product(service, name="Second")

    updated = service.update(second.id, ProductUpdate(name="First"))

    assert updated.name == "First"


def test_update_cannot_reactivate_discontinued(service, repository):
    product = make_product(service)
    service.discontinue(product.id)

    with pytest.raises(InvalidStatusTransitionError) as exc_info:
        service.update(product.id, ProductUpdate(status=ProductStatus.ACTIVE))

    assert exc_info.value.current == ProductStatus.DISCONTINUED
    assert exc_info.value.requested == ProductStatus.ACTIVE
    assert repository.find_by_id(product.id).status == ProductStatus.DISCONTINUED


@pytest.mark.parametrize("current, requested", [
    (ProductStatus.ACTIVE, ProductStatus.INACTIVE),
    (ProductStatus.INACTIVE, ProductStatus.ACTIVE),
    (ProductStatus.DISCONTINUED, ProductStatus.INACTIVE),
    (ProductStatus.INACTIVE, ProductStatus.DISCONTINUED),
    (ProductStatus.OUT_OF_STOCK, ProductStatus.ACTIVE),
    (ProductStatus.DISCONTINUED, ProductStatus.OUT_OF_STOCK),
])
def test_update_allows_other_transitions(service, current, requested):
    product = make_product(service, status=current)

    updated = service.update(product.id, ProductUpdate(status=requested))

    assert updated.status == requested


def test_update_stock_adds_and_removes(service):
    product = make_product(service, stock=10)

    assert service.update_stock(product.id, 5).stock == 15
    assert service.update_stock(product.id, -3).stock == 12


def test_update_stock_insufficient_leaves_stock_unchanged(service, repository):
    product = make_product(service, stock=3)
    saves_before = repository.save_count

    with pytest.raises(InsufficientStockError) as exc_info:
        service.update_stock(product.id, -4)

    assert isinstance(exc_info.value, BusinessRuleError)
    assert exc_info.value.current == 3
    assert exc_info.value.change == -4
    assert repository.find_by_id(product.id).stock == 3
    assert repository.find_by_id(product.id).status == ProductStatus.ACTIVE
    assert repository.save_count == saves_before


def test_update_stock_above_maximum_leaves_stock_unchanged(service, repository):
    product = make_product(service, stock=INT_MAX - 1)
    saves_before = repository.save_count

    with pytest.raises(StockLimitExceededError) as exc_info:
        service.update_stock(product.id, 2)

    assert isinstance(exc_info.value, BusinessRuleError)
    assert exc_info.value.limit == INT_MAX
    assert repository.find_by_id(product.id).stock == INT_MAX - 1
    assert repository.save_count == saves_before
    assert service.update_stock(product.id, 1).stock == INT_MAX


def test_update_stock_to_zero_marks_out_of_stock(service):
    product = make_product(service, stock=5)

    updated = service.update_stock(product.id, -5)

    assert updated.stock == 0
    assert updated.status == ProductStatus.OUT_OF_STOCK


def test_update_stock_restock_reactivates(service):
    product = make_product(service, stock=0, status=ProductStatus.OUT_OF_STOCK)

    updated = service.update_stock(product.id, 7)

    assert updated.stock == 7
    assert updated.status == ProductStatus.ACTIVE


@pytest.mark.parametrize("status", [ProductStatus.INACTIVE, ProductStatus.DISCONTINUED])
def test_update_stock_leaves_other_statuses_alone(service, status):
    product = make_product(service, stock=2, status=status)

    assert service.update_stock(product.id, -2).status == status
    assert service.update_stock(product.id, 4).status == status


def test_update_stock_not_found(service):
    with pytest.raises(ProductNotFoundError):
        service.update_stock(5, 1)


def test_delete_removes_product(service, repository):
    product = make_product(service)

    service.delete(product.id)

    assert repository.find_by_id(product.id) is None
    with pytest.raises(ProductNotFoundError):
        service.get_by_id(product.id)


def test_delete_not_found(service):
    with pytest.raises(ProductNotFoundError):
        service.delete(1)


@pytest.mark.parametrize("status", list(ProductStatus))
def test_discontinue_from_any_status(service, status):
    product = make_product(service, status=status)

    discontinued = service.discontinue(product.id)

    assert discontinued.status == ProductStatus.DISCONTINUED


def test_discontinue_not_found(service):
    with pytest.raises(ProductNotFoundError):
        service.discontinue(3)


def test_product_lifecycle_scenario(service):
    """Test create -> sell out -> restock -> discontinue -> failed reactivation."""
    product = make_product(service, name="Test Product", price="99.99", stock=50)
    assert product.id is not None
    assert product.status == ProductStatus.ACTIVE

    product = service.update_stock(product.id, -50)
    assert (product.stock, product.status) == (0, ProductStatus.OUT_OF_STOCK)

    product = service.update_stock(product.id, 10)
    assert (product.stock, product.status) == (10, ProductStatus.ACTIVE)

    product = service.update(product.id, ProductUpdate(status=ProductStatus.DISCONTINUED))
    assert product.status == ProductStatus.DISCONTINUED

    with pytest.raises(InvalidStatusTransitionError):
        service.update(product.id, ProductUpdate(status=ProductStatus.ACTIVE))
    assert service.get_by_id(product.id).status == ProductStatus.DISCONTINUED


def test_random_error_simulation(repository):
    settings = Settings(SIMULATE_RANDOM_ERRORS=True, RANDOM_ERROR_RATE=1.0)
    service = ProductService(repository, settings=settings)

    with pytest.raises(RuntimeError, match="Simulated random error"):
        service.get_by_id(1)


def test_slow_query_simulation(repository, monkeypatch):
    delays = []
    monkeypatch.setattr("app.services.product_service.time.sleep", delays.append)
    settings = Settings(SIMULATE_SLOW_QUERIES=True, SLOW_QUERY_DELAY_SECONDS=0.5)
    service = ProductService(repository, settings=settings)

    make_product(service)

    assert delays == [0.5]
