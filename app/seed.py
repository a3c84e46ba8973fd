"""Sample catalog loaded at startup so a fresh instance has data to debug against."""
from decimal import Decimal
import logging

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.models.product import Product, ProductStatus
from app.repositories.product_repository import ProductRepository, SqlAlchemyProductRepository

logger = logging.getLogger(__name__)

SAMPLE_PRODUCTS = [
    ("iPhone 15 Pro", "Latest Apple smartphone with A17 chip", "999.99", 50),
    ("Samsung Galaxy S24", "Flagship Android phone with AI features", "899.99", 75),
    ("MacBook Pro 14", "Professional laptop with M3 Pro chip", "1999.99", 25),
    ("Sony WH-1000XM5", "Premium noise-cancelling headphones", "349.99", 100),
    ("iPad Air", "Versatile tablet for work and play", "599.99", 60),
    ("Apple Watch Series 9", "Advanced health and fitness tracker", "399.99", 80),
    ("AirPods Pro 2", "Premium wireless earbuds with ANC", "249.99", 150),
    ("Nintendo Switch OLED", "Portable gaming console", "349.99", 40),
    ("PS5 Controller", "DualSense wireless controller", "69.99", 200),
    ("Kindle Paperwhite", "E-reader with glare-free display", "139.99", 90),
]

# Edge-case records: one already out of stock, one already discontinued
SPECIAL_PRODUCTS = [
    ("Rare Collector Item", "Limited edition - currently unavailable", "999.99", 0, ProductStatus.OUT_OF_STOCK),
    ("Legacy Phone XS", "No longer manufactured", "299.99", 5, ProductStatus.DISCONTINUED),
]


def _sample_products() -> list:
    products = [
        Product(name=name, description=description, price=Decimal(price), stock=stock,
                status=ProductStatus.ACTIVE)
        for name, description, price, stock in SAMPLE_PRODUCTS
    ]
    products.extend(
        Product(name=name, description=description, price=Decimal(price), stock=stock, status=status)
        for name, description, price, stock, status in SPECIAL_PRODUCTS
    )
    return products


def seed_products(repository: ProductRepository) -> int:
    """
    Insert the sample catalog if no products exist yet.

    A product that fails to save is logged and skipped.

    Returns:
        Number of products inserted
    """
    if repository.find_all():
        logger.info("Products already present, skipping sample data")
        return 0

    logger.info("Initializing sample data...")
    created = 0
    for product in _sample_products():
        try:
            saved = repository.save(product)
            logger.debug(f"Created product: id={saved.id}, name='{saved.name}'")
            created += 1
        except SQLAlchemyError as e:
            logger.error(f"Failed to create product '{product.name}': {e}")

    logger.info(f"Sample data initialization complete. Total products: {len(repository.find_all())}")
    return created


def seed_database(db: Session) -> int:
    return seed_products(SqlAlchemyProductRepository(db))
