"""库存流水查询"""
from collections import OrderedDict

from stockledger.models.stock import BatchMovement
from stockledger.repositories import MovementLogRepository, SaleOrderRepository


class MovementLogService:
    """
    流水只由库存变动引擎追加
    这里只提供查询
    """

    def __init__(self, log=None, sale_orders=None):
        self.log = log or MovementLogRepository()
        self.sale_orders = sale_orders or SaleOrderRepository()

    def list_records(self, product_id=None, record_type=None, order_no=None, page=1, per_page=20):
        query = self.log.records(product_id=product_id, record_type=record_type, order_no=order_no)
        return query.paginate(page=page, per_page=per_page, error_out=False)

    def list_movements(self, batch_id=None, product_id=None, order_id=None, order_type=None):
        return self.log.movements(batch_id=batch_id, product_id=product_id,
                                  order_id=order_id, order_type=order_type).all()

    def sale_item_batches(self, order_id, product_id):
        """
        某销售明细消耗了哪些批次
        由出库批次流水汇总: [{'batch_id', 'batch_no', 'quantity'}]
        """
        order = self.sale_orders.get_or_404(order_id)
        movements = self.log.movements(product_id=product_id, order_id=order.id,
                                       order_type=BatchMovement.ORDER_SALE)
        consumed = OrderedDict()
        for movement in movements:
            if movement.type != BatchMovement.TYPE_OUT:
                continue
            entry = consumed.setdefault(movement.batch_id, {
                'batch_id': movement.batch_id,
                'batch_no': movement.batch_no,
                'quantity': 0,
            })
            entry['quantity'] += movement.quantity
        return list(consumed.values())


movement_service = MovementLogService()
