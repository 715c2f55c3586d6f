from stockledger.extensions import db
from .base import BaseModel


class Product(BaseModel):
    """
    商品主表
    stock 是现存量的唯一来源，只能由库存变动引擎修改
    """
    __tablename__ = 'biz_products'

    STATUS_ACTIVE = 'active'
    STATUS_INACTIVE = 'inactive'
    STATUSES = (STATUS_ACTIVE, STATUS_INACTIVE)

    code = db.Column(db.String(64), unique=True, index=True, nullable=False)  # 商品编码
    barcode = db.Column(db.String(64), unique=True, index=True)  # 条码 (可选)
    name = db.Column(db.String(128), index=True, nullable=False)
    category = db.Column(db.String(64))
    specification = db.Column(db.String(128))  # 规格, e.g. "128GB 黑色"
    unit = db.Column(db.String(16))

    purchase_price = db.Column(db.Float, default=0.0)  # 参考进价
    sale_price = db.Column(db.Float, default=0.0)  # 建议售价

    stock = db.Column(db.Integer, default=0, nullable=False)
    min_stock = db.Column(db.Integer, default=0)  # 低于等于该值即预警

    status = db.Column(db.String(16), default=STATUS_ACTIVE, index=True)

    batches = db.relationship('InventoryBatch', backref='product', lazy='dynamic')

    __table_args__ = (
        db.CheckConstraint('stock >= 0', name='ck_product_stock_non_negative'),
    )

    @property
    def is_low_stock(self):
        return (self.stock or 0) <= (self.min_stock or 0)

    def to_dict(self):
        data = super().to_dict()
        data['is_low_stock'] = self.is_low_stock
        return data


class Partner(BaseModel):
    """业务伙伴 (客户/供应商)"""
    __tablename__ = 'biz_partners'

    TYPE_CUSTOMER = 'customer'
    TYPE_SUPPLIER = 'supplier'

    STATUS_ACTIVE = 'active'
    STATUS_INACTIVE = 'inactive'
    STATUSES = (STATUS_ACTIVE, STATUS_INACTIVE)

    type = db.Column(db.String(20), index=True, nullable=False)  # customer/supplier
    code = db.Column(db.String(32), index=True, nullable=False)
    name = db.Column(db.String(128), index=True, nullable=False)
    contact = db.Column(db.String(64))
    phone = db.Column(db.String(32))
    address = db.Column(db.String(256))
    email = db.Column(db.String(128))
    status = db.Column(db.String(16), default=STATUS_ACTIVE, index=True)

    # 客户信用额度，仅作展示，不参与下单校验
    credit = db.Column(db.Float, default=0.0)

    __table_args__ = (
        db.UniqueConstraint('type', 'code', name='uq_partner_type_code'),
    )

    def to_dict(self):
        data = super().to_dict()
        if self.type != self.TYPE_CUSTOMER:
            data.pop('credit', None)
        return data
