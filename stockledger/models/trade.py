from stockledger.extensions import db
from .base import BaseModel


class SaleOrder(BaseModel):
    """销售订单头"""
    __tablename__ = 'trade_sale_orders'

    STATUS_PENDING = 'pending'
    STATUS_CONFIRMED = 'confirmed'
    STATUS_SHIPPED = 'shipped'      # 部分发货
    STATUS_COMPLETED = 'completed'  # 全部发货
    STATUS_CANCELLED = 'cancelled'
    STATUSES = (STATUS_PENDING, STATUS_CONFIRMED, STATUS_SHIPPED, STATUS_COMPLETED, STATUS_CANCELLED)
    OPEN_STATUSES = (STATUS_PENDING, STATUS_CONFIRMED)

    order_no = db.Column(db.String(32), unique=True, index=True, nullable=False)
    customer_id = db.Column(db.Integer, db.ForeignKey('biz_partners.id'))
    customer_name = db.Column(db.String(128))

    order_date = db.Column(db.Date)
    delivery_date = db.Column(db.Date)

    total_amount = db.Column(db.Float, default=0.0)
    shipped_amount = db.Column(db.Float, default=0.0)
    status = db.Column(db.String(20), default=STATUS_PENDING, index=True)

    remark = db.Column(db.Text)

    customer = db.relationship('Partner', foreign_keys=[customer_id])
    items = db.relationship('SaleOrderItem', backref='order', cascade='all, delete-orphan',
                            order_by='SaleOrderItem.id')

    @property
    def is_fully_shipped(self):
        return all(item.shipped_quantity >= item.quantity for item in self.items)

    def to_dict(self, include_items=True):
        data = super().to_dict()
        if include_items:
            data['items'] = [item.to_dict() for item in self.items]
        return data


class SaleOrderItem(BaseModel):
    """订单明细行"""
    __tablename__ = 'trade_sale_order_items'

    order_id = db.Column(db.Integer, db.ForeignKey('trade_sale_orders.id'), nullable=False)
    product_id = db.Column(db.Integer, db.ForeignKey('biz_products.id'), nullable=False)
    product_name = db.Column(db.String(128))

    quantity = db.Column(db.Integer, nullable=False)
    price = db.Column(db.Float, nullable=False)  # 下单时的单价快照
    shipped_quantity = db.Column(db.Integer, default=0, nullable=False)
    amount = db.Column(db.Float, nullable=False)

    product = db.relationship('Product')

    __table_args__ = (
        db.CheckConstraint('shipped_quantity >= 0 AND shipped_quantity <= quantity',
                           name='ck_sale_item_shipped_range'),
    )

    @property
    def pending_quantity(self):
        """待发货数量"""
        return self.quantity - (self.shipped_quantity or 0)

    def to_dict(self):
        data = super().to_dict()
        data['pending_quantity'] = self.pending_quantity
        return data
