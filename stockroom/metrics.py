"""Summary statistics over the current product set.

Recomputed from scratch on every call. Money is summed as ``Decimal`` so the
totals do not depend on the order products arrive in.
"""
from decimal import Decimal
from typing import Iterable

from stockroom.schemas.reports import InventoryStats


def is_low_stock(product) -> bool:
    # Inclusive: an empty shelf is also below its threshold
    return product.stock_qty <= product.min_stock_level


def is_out_of_stock(product) -> bool:
    return product.stock_qty == 0


def compute_inventory_stats(products: Iterable) -> InventoryStats:
    total_products = 0
    low_stock = 0
    out_of_stock = 0
    value = Decimal("0")
    units = 0

    for product in products:
        total_products += 1
        if is_low_stock(product):
            low_stock += 1
        if is_out_of_stock(product):
            out_of_stock += 1
        value += Decimal(str(product.price)) * product.stock_qty
        units += product.stock_qty

    return InventoryStats(
        total_products=total_products,
        low_stock_count=low_stock,
        out_of_stock_count=out_of_stock,
        total_inventory_value=value,
        total_stock_units=units,
    )
