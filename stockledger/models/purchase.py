"""采购管理模型"""
from stockledger.extensions import db
from .base import BaseModel


class PurchaseOrder(BaseModel):
    """采购订单"""
    __tablename__ = 'purchase_orders'

    STATUS_PENDING = 'pending'      # 待确认
    STATUS_CONFIRMED = 'confirmed'  # 已确认 / 部分到货
    STATUS_RECEIVED = 'received'    # 已收货
    STATUS_CANCELLED = 'cancelled'  # 已取消
    STATUSES = (STATUS_PENDING, STATUS_CONFIRMED, STATUS_RECEIVED, STATUS_CANCELLED)
    OPEN_STATUSES = (STATUS_PENDING, STATUS_CONFIRMED)

    order_no = db.Column(db.String(32), unique=True, index=True, nullable=False)  # 采购单号
    supplier_id = db.Column(db.Integer, db.ForeignKey('biz_partners.id'))
    supplier_name = db.Column(db.String(128))  # 下单时的供应商名称快照

    order_date = db.Column(db.Date)
    expected_date = db.Column(db.Date)  # 预计到货日期

    total_amount = db.Column(db.Float, default=0.0)
    received_amount = db.Column(db.Float, default=0.0)
    status = db.Column(db.String(20), default=STATUS_PENDING, index=True)

    remark = db.Column(db.Text)

    supplier = db.relationship('Partner', foreign_keys=[supplier_id])
    items = db.relationship('PurchaseOrderItem', backref='order', cascade='all, delete-orphan',
                            order_by='PurchaseOrderItem.id')

    @property
    def is_fully_received(self):
        return all(item.received_quantity >= item.quantity for item in self.items)

    @property
    def receive_progress(self):
        """收货进度百分比"""
        total_qty = sum([item.quantity for item in self.items])
        received_qty = sum([item.received_quantity for item in self.items])
        if total_qty == 0:
            return 0
        return round(received_qty / total_qty * 100, 1)

    def to_dict(self, include_items=True):
        data = super().to_dict()
        data['receive_progress'] = self.receive_progress
        if include_items:
            data['items'] = [item.to_dict() for item in self.items]
        return data


class PurchaseOrderItem(BaseModel):
    """采购订单明细"""
    __tablename__ = 'purchase_order_items'

    order_id = db.Column(db.Integer, db.ForeignKey('purchase_orders.id'), nullable=False)
    product_id = db.Column(db.Integer, db.ForeignKey('biz_products.id'), nullable=False)
    product_name = db.Column(db.String(128))

    quantity = db.Column(db.Integer, nullable=False)
    price = db.Column(db.Float, nullable=False)  # 采购单价，下单后不再变化
    received_quantity = db.Column(db.Integer, default=0, nullable=False)  # 累计收货数量
    amount = db.Column(db.Float, nullable=False)  # quantity * price，按下单数量固定

    product = db.relationship('Product')

    __table_args__ = (
        db.CheckConstraint('received_quantity >= 0 AND received_quantity <= quantity',
                           name='ck_purchase_item_received_range'),
    )

    @property
    def pending_quantity(self):
        """待收货数量"""
        return self.quantity - (self.received_quantity or 0)

    def to_dict(self):
        data = super().to_dict()
        data['pending_quantity'] = self.pending_quantity
        return data
