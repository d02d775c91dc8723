"""
Demo Product Catalog

Seed data for the products table so the checkout flow can be exercised
without an inventory system. Prices are in dollars (CAD), stock is a unit
count or None when the product does not track inventory.
"""
from dataclasses import dataclass
from decimal import Decimal
from typing import List, Optional


@dataclass(frozen=True)
class CatalogProduct:
    """Product seed record."""
    product_id: str
    name: str
    price: Decimal
    stock: Optional[int]
    image_url: Optional[str] = None


DEMO_CATALOG: List[CatalogProduct] = [
    CatalogProduct(
        product_id="prod_mug_001",
        name="Tasse en grès 350 ml",
        price=Decimal("18.50"),
        stock=40,
        image_url="https://demo.orderflow.local/images/mug.jpg"
    ),
    CatalogProduct(
        product_id="prod_candle_001",
        name="Bougie soja érable",
        price=Decimal("24.99"),
        stock=25,
        image_url="https://demo.orderflow.local/images/candle.jpg"
    ),
    CatalogProduct(
        product_id="prod_tote_001",
        name="Sac fourre-tout en lin",
        price=Decimal("32.00"),
        stock=12,
        image_url="https://demo.orderflow.local/images/tote.jpg"
    ),
    CatalogProduct(
        product_id="prod_soap_001",
        name="Savon artisanal camomille",
        price=Decimal("9.99"),
        stock=5,
        image_url="https://demo.orderflow.local/images/soap.jpg"
    ),
    CatalogProduct(
        product_id="prod_print_001",
        name="Affiche A3 Saint-Laurent",
        price=Decimal("45.00"),
        stock=0,
        image_url="https://demo.orderflow.local/images/print.jpg"
    ),
    # Made to order, stock not tracked
    CatalogProduct(
        product_id="prod_portrait_001",
        name="Portrait illustré sur commande",
        price=Decimal("120.00"),
        stock=None,
    ),
]
