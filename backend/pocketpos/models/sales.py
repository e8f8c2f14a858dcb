from __future__ import annotations

from ..extensions import db
from ..domain import PaymentMethod, Sale, SaleItem, SaleStatus


class SaleRecord(db.Model):
    """
    Completed sale in the hosted `transactions` table.

    Rows are inserted once at checkout completion and never updated.
    """
    __tablename__ = "transactions"
    __table_args__ = (
        db.UniqueConstraint("order_no", name="uq_transactions_order_no"),
        db.Index("ix_transactions_method_created", "payment_method", "created_at"),
    )

    id = db.Column(db.String(36), primary_key=True)
    order_no = db.Column(db.String(16), nullable=False)

    total = db.Column(db.Numeric(12, 2), nullable=False)
    subtotal = db.Column(db.Numeric(12, 2), nullable=False)
    tax = db.Column(db.Numeric(12, 2), nullable=False)

    payment_method = db.Column(db.String(32), nullable=False)
    amount_paid = db.Column(db.Numeric(12, 2), nullable=False)
    change_due = db.Column(db.Numeric(12, 2), nullable=False, default=0)
    status = db.Column(db.String(16), nullable=False, default="PAID")
    provider_ref = db.Column(db.String(128), nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, index=True)

    items = db.relationship(
        "SaleItemRecord",
        backref="sale",
        lazy="selectin",
        order_by="SaleItemRecord.line_number",
        cascade="all, delete-orphan",
    )

    @classmethod
    def from_domain(cls, sale: Sale) -> "SaleRecord":
        record = cls(
            id=sale.id,
            order_no=sale.order_no,
            total=sale.total,
            subtotal=sale.subtotal,
            tax=sale.tax,
            payment_method=sale.payment_method.value,
            amount_paid=sale.amount_paid,
            change_due=sale.change_due,
            status=sale.status.value,
            provider_ref=sale.provider_ref,
            created_at=sale.created_at,
        )
        record.items = [
            SaleItemRecord(
                line_number=i + 1,
                product_id=item.product_id,
                sku=item.sku,
                name=item.name,
                price=item.price,
                quantity=item.quantity,
                line_total=item.line_total,
            )
            for i, item in enumerate(sale.items)
        ]
        return record

    def to_domain(self) -> Sale:
        return Sale(
            id=self.id,
            order_no=self.order_no,
            items=tuple(line.to_domain() for line in self.items),
            total=self.total,
            subtotal=self.subtotal,
            tax=self.tax,
            payment_method=PaymentMethod(self.payment_method),
            amount_paid=self.amount_paid,
            change_due=self.change_due,
            status=SaleStatus(self.status),
            provider_ref=self.provider_ref,
            created_at=self.created_at,
        )


class SaleItemRecord(db.Model):
    """Line snapshot: name and price as they were at the time of sale."""
    __tablename__ = "transaction_items"
    __table_args__ = (
        db.Index("ix_transaction_items_txn_line", "transaction_id", "line_number", unique=True),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    transaction_id = db.Column(db.String(36), db.ForeignKey("transactions.id"), nullable=False)
    line_number = db.Column(db.Integer, nullable=False)

    product_id = db.Column(db.String(36), nullable=False, index=True)
    sku = db.Column(db.String(64), nullable=True)
    name = db.Column(db.String(255), nullable=False)

    price = db.Column(db.Numeric(12, 2), nullable=False)
    quantity = db.Column(db.Integer, nullable=False)
    line_total = db.Column(db.Numeric(12, 2), nullable=False)

    def to_domain(self) -> SaleItem:
        return SaleItem(
            product_id=self.product_id,
            sku=self.sku or "",
            name=self.name,
            price=self.price,
            quantity=self.quantity,
        )
