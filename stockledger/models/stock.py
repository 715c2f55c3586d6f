from dataclasses import dataclass
from typing import Optional

from stockledger.extensions import db
from .base import BaseModel


@dataclass(frozen=True)
class Provenance:
    """
    批次 / 流水的来源
    order: 由采购单或销售单产生, 携带订单 id 与单号
    manual: 手动入库
    adjustment: 库存调整
    """
    KIND_ORDER = 'order'
    KIND_MANUAL = 'manual'
    KIND_ADJUSTMENT = 'adjustment'

    kind: str
    order_id: Optional[int] = None
    order_no: Optional[str] = None

    @classmethod
    def from_order(cls, order):
        return cls(cls.KIND_ORDER, order.id, order.order_no)

    @classmethod
    def manual(cls):
        return cls(cls.KIND_MANUAL)

    @classmethod
    def adjustment(cls):
        return cls(cls.KIND_ADJUSTMENT)


@dataclass(frozen=True)
class Operator:
    """写入流水的操作人"""
    id: str
    name: str


# 商品编码 (64) + "-YYYYMMDD-HHmm-NN" (17) + 重号后缀 "-XXXX" (5)
BATCH_NO_LENGTH = 96


class InventoryBatch(BaseModel):
    """
    库存批次
    入库时创建一次，之后只会被消耗，不会补充
    """
    __tablename__ = 'stock_batches'

    STATUS_ACTIVE = 'active'        # remaining_quantity > 0
    STATUS_EXHAUSTED = 'exhausted'  # remaining_quantity == 0
    STATUS_EXPIRED = 'expired'
    STATUSES = (STATUS_ACTIVE, STATUS_EXHAUSTED, STATUS_EXPIRED)
    # 参与 "库存 == 批次剩余之和" 校验的状态
    LEDGER_STATUSES = (STATUS_ACTIVE, STATUS_EXHAUSTED)

    batch_no = db.Column(db.String(BATCH_NO_LENGTH), unique=True, index=True, nullable=False)
    product_id = db.Column(db.Integer, db.ForeignKey('biz_products.id'), index=True, nullable=False)
    product_name = db.Column(db.String(128))

    quantity = db.Column(db.Integer, nullable=False)  # 入库总量，不可变
    remaining_quantity = db.Column(db.Integer, nullable=False)
    purchase_price = db.Column(db.Float, default=0.0)  # 入库成本单价，用于库存估值

    supplier_id = db.Column(db.Integer, db.ForeignKey('biz_partners.id'))
    supplier_name = db.Column(db.String(128))

    source_type = db.Column(db.String(16), default=Provenance.KIND_ORDER, nullable=False)
    purchase_order_id = db.Column(db.Integer, db.ForeignKey('purchase_orders.id'))
    purchase_order_no = db.Column(db.String(32))

    production_date = db.Column(db.Date)
    expiry_date = db.Column(db.Date)

    status = db.Column(db.String(16), default=STATUS_ACTIVE, index=True)

    movements = db.relationship('BatchMovement', backref='batch', lazy='dynamic',
                                order_by='BatchMovement.id')

    __table_args__ = (
        db.CheckConstraint('remaining_quantity >= 0 AND remaining_quantity <= quantity',
                           name='ck_batch_remaining_range'),
    )

    @property
    def provenance(self):
        return Provenance(self.source_type, self.purchase_order_id, self.purchase_order_no)

    @property
    def stock_value(self):
        return (self.remaining_quantity or 0) * (self.purchase_price or 0)


class BatchMovement(BaseModel):
    """批次进出流水 (只追加)"""
    __tablename__ = 'stock_batch_movements'

    TYPE_IN = 'in'
    TYPE_OUT = 'out'

    ORDER_PURCHASE = 'purchase'
    ORDER_SALE = 'sale'
    ORDER_ADJUSTMENT = 'adjustment'

    batch_id = db.Column(db.Integer, db.ForeignKey('stock_batches.id'), index=True, nullable=False)
    batch_no = db.Column(db.String(BATCH_NO_LENGTH))
    product_id = db.Column(db.Integer, db.ForeignKey('biz_products.id'), index=True, nullable=False)

    type = db.Column(db.String(8), nullable=False)
    quantity = db.Column(db.Integer, nullable=False)  # 变动数量 (无符号)
    remaining_quantity = db.Column(db.Integer, nullable=False)  # 本次变动后的批次剩余

    related_order_id = db.Column(db.Integer)
    related_order_no = db.Column(db.String(32), index=True)
    related_order_type = db.Column(db.String(16))


class InventoryRecord(BaseModel):
    """
    库存审计流水 (核心表)
    记录每一次库存变动的前后快照, after_stock - before_stock == quantity
    """
    __tablename__ = 'stock_records'

    TYPE_IN = 'in'
    TYPE_OUT = 'out'
    TYPE_ADJUST = 'adjust'
    TYPES = (TYPE_IN, TYPE_OUT, TYPE_ADJUST)

    product_id = db.Column(db.Integer, db.ForeignKey('biz_products.id'), index=True, nullable=False)
    product_name = db.Column(db.String(128))

    type = db.Column(db.String(8), nullable=False)
    quantity = db.Column(db.Integer, nullable=False)  # 变动数量 (+10, -5)
    before_stock = db.Column(db.Integer, nullable=False)
    after_stock = db.Column(db.Integer, nullable=False)

    reason = db.Column(db.String(255))
    batch_no = db.Column(db.Text)  # 多个批次以逗号分隔

    source_type = db.Column(db.String(16), default=Provenance.KIND_MANUAL, nullable=False)
    related_order_id = db.Column(db.Integer)
    related_order_no = db.Column(db.String(32), index=True)

    operator_id = db.Column(db.String(64))
    operator_name = db.Column(db.String(64))

    __table_args__ = (
        db.CheckConstraint('after_stock - before_stock = quantity', name='ck_record_delta'),
    )

    @property
    def provenance(self):
        return Provenance(self.source_type, self.related_order_id, self.related_order_no)
