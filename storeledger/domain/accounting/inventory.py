"""Moving-average inventory costing."""

import logging
from decimal import Decimal, ROUND_HALF_UP

from sqlalchemy.orm import Session

from storeledger.db.session import unit_of_work
from storeledger.models.inventory import Product
from storeledger.domain.accounting.exceptions import ValidationError, NotFoundError
from storeledger.domain.accounting.gl_service import CENT, to_amount

logger = logging.getLogger(__name__)


def unit_cost(product: Product) -> Decimal:
    """Moving-average cost, falling back to the selling price when no cost is known."""
    if product.average_cost is not None and product.average_cost > 0:
        return to_amount(product.average_cost)
    return to_amount(product.price)


def consume_stock(product: Product, quantity: int) -> None:
    """Decrement stock, floored at zero."""
    if quantity > product.stock:
        logger.warning(
            f"Product {product.id} stock {product.stock} is below sold quantity {quantity}"
        )
    product.stock = max(0, product.stock - quantity)


def record_purchase(db: Session, product_id: str, quantity: int, cost: Decimal) -> Product:
    """
    Receive stock and re-weight the moving-average unit cost.

    new_average = (stock * average + quantity * cost) / (stock + quantity)
    """
    if quantity <= 0:
        raise ValidationError("Purchase quantity must be positive", product_id=product_id)
    cost = to_amount(cost)
    if cost < 0:
        raise ValidationError("Purchase cost cannot be negative", product_id=product_id)

    with unit_of_work(db):
        product = db.query(Product).filter(Product.id == product_id).first()
        if not product:
            raise NotFoundError(f"Product {product_id} not found", product_id=product_id)

        current_stock = max(product.stock, 0)
        current_cost = unit_cost(product) if current_stock else Decimal("0")
        total_value = current_cost * current_stock + cost * quantity
        product.stock = current_stock + quantity
        product.average_cost = (total_value / product.stock).quantize(CENT, rounding=ROUND_HALF_UP)
        db.flush()

    logger.info(
        f"Received {quantity} x {product_id} at {cost}; average cost now {product.average_cost}"
    )
    return product
