from stockledger.exceptions import OrderNotFound
from stockledger.models.purchase import PurchaseOrder
from stockledger.models.trade import SaleOrder
from .base import BaseRepository


class OrderRepository(BaseRepository):
    """订单仓储，partner_column 为供应商 / 客户外键列名"""
    not_found = OrderNotFound
    partner_column = None
    partner_name_column = None

    def order_no_exists(self, order_no, exclude_id=None):
        query = self.model.query.filter(self.model.order_no == order_no)
        if exclude_id:
            query = query.filter(self.model.id != exclude_id)
        return query.first() is not None

    def search(self, status=None, partner_id=None, keyword=None):
        query = self.query()
        if status:
            query = query.filter(self.model.status == status)
        if partner_id:
            query = query.filter(getattr(self.model, self.partner_column) == partner_id)
        if keyword:
            like = f"%{keyword}%"
            query = query.filter(
                self.model.order_no.ilike(like) | getattr(self.model, self.partner_name_column).ilike(like)
            )
        return query.order_by(self.model.created_at.desc(), self.model.id.desc())

    def pending(self):
        return self.query().filter(
            self.model.status.in_(self.model.OPEN_STATUSES)
        ).order_by(self.model.created_at.asc()).all()

    def created_since(self, since):
        return self.query().filter(
            self.model.created_at >= since,
            self.model.status != self.model.STATUS_CANCELLED
        ).all()


class PurchaseOrderRepository(OrderRepository):
    model = PurchaseOrder
    label = '采购单'
    partner_column = 'supplier_id'
    partner_name_column = 'supplier_name'


class SaleOrderRepository(OrderRepository):
    model = SaleOrder
    label = '销售单'
    partner_column = 'customer_id'
    partner_name_column = 'customer_name'
