# stockroom/models/product.py
from sqlalchemy import Column, Integer, String, Numeric, DateTime, CheckConstraint
from stockroom.database import Base, utcnow

# Model Product
# Current inventory state of one stocked item.
# stock_qty and last_stock_update are written only by the ledger store,
# as the net effect of the movements recorded against the product.
class Product(Base):
    __tablename__ = "products"
    __table_args__ = (
        CheckConstraint("price >= 0", name="ck_products_price"),
        CheckConstraint("stock_qty >= 0", name="ck_products_stock_qty"),
        CheckConstraint("min_stock_level >= 0", name="ck_products_min_stock_level"),
        CheckConstraint("opening_stock >= 0", name="ck_products_opening_stock"),
    )

    id = Column(Integer, primary_key=True, index=True)
    sku = Column(String(64), unique=True, nullable=False, index=True)
    name = Column(String, nullable=False, index=True)
    category = Column(String, nullable=False, index=True)
    description = Column(String, nullable=True)
    image_uri = Column(String, nullable=True)
    # Search text: casefolded name and SKU, one per line
    search_key = Column(String, nullable=False, default="")

    price = Column(Numeric(12, 2), nullable=False, default=0)

    # Balance = opening_stock + sum(stock_movements.quantity_change)
    opening_stock = Column(Integer, nullable=False, default=0)
    stock_qty = Column(Integer, nullable=False, default=0, index=True)
    min_stock_level = Column(Integer, nullable=False, default=10)

    last_stock_update = Column(DateTime, nullable=True)
    last_modified = Column(DateTime, nullable=False, default=utcnow)
    created_at = Column(DateTime, nullable=False, default=utcnow)

    def __repr__(self) -> str:
        return f"<Product id={self.id} sku={self.sku!r} stock_qty={self.stock_qty}>"
