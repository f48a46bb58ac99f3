# stockroom/models/stock.py
import enum
from sqlalchemy import Column, Integer, String, ForeignKey, DateTime, Enum, CheckConstraint, Index
from sqlalchemy.orm import relationship
from stockroom.database import Base, utcnow

# Classification of a stock movement
class MovementType(str, enum.Enum):
    RECEIVED = "RECEIVED"
    SOLD = "SOLD"
    DAMAGED = "DAMAGED"
    EXPIRED = "EXPIRED"
    CORRECTION = "CORRECTION"
    RETURNED = "RETURNED"
    TRANSFER_OUT = "TRANSFER_OUT"
    TRANSFER_IN = "TRANSFER_IN"

    @property
    def display_name(self) -> str:
        return self.value.replace("_", " ").title()

    @property
    def is_addition_by_default(self) -> bool:
        """Direction the adjustment form preselects. CORRECTION goes either way."""
        return self in (MovementType.RECEIVED, MovementType.RETURNED,
                        MovementType.TRANSFER_IN, MovementType.CORRECTION)


# Immutable audit record of one quantity change.
# Rows are only ever inserted; there is no update path.
class StockMovement(Base):
    __tablename__ = "stock_movements"
    __table_args__ = (
        CheckConstraint("quantity_change <> 0", name="ck_stock_movements_nonzero"),
        Index("ix_stock_movements_product_ts", "product_id", "timestamp"),
    )

    id = Column(Integer, primary_key=True, index=True)
    product_id = Column(Integer, ForeignKey("products.id"), nullable=False, index=True)

    # Positive = addition, negative = removal
    quantity_change = Column(Integer, nullable=False)
    # Product balance right after this movement was applied
    balance_after = Column(Integer, nullable=False)
    movement_type = Column(Enum(MovementType, name="movementtype"), nullable=False, index=True)

    reason = Column(String, nullable=True)
    staff_member = Column(String, nullable=True, index=True)

    timestamp = Column(DateTime, nullable=False, default=utcnow, index=True)

    product = relationship("Product")

    def __repr__(self) -> str:
        return (f"<StockMovement id={self.id} product_id={self.product_id} "
                f"{self.movement_type.value if self.movement_type else None} {self.quantity_change:+d}>")
