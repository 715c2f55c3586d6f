"""账本一致性校验"""
import logging
from dataclasses import asdict, dataclass

from stockledger.models.biz import Product
from stockledger.models.purchase import PurchaseOrderItem
from stockledger.models.stock import InventoryBatch
from stockledger.models.trade import SaleOrderItem
from stockledger.repositories import BatchRepository, MovementLogRepository

logger = logging.getLogger(__name__)


@dataclass
class Violation:
    rule: str
    entity: str
    entity_id: int
    detail: str

    def to_dict(self):
        return asdict(self)


class LedgerAuditService:
    """
    只读校验，不修复数据:
    - 商品库存 == active / exhausted 批次剩余之和
    - 流水 after_stock - before_stock == quantity
    - 订单明细 0 <= 已收 / 已发 <= 数量
    - 批次 0 <= remaining <= quantity
    """
    RULE_STOCK_BATCHES = 'stock_equals_batches'
    RULE_RECORD_DELTA = 'record_delta'
    RULE_ITEM_BOUNDS = 'item_quantity_bounds'
    RULE_BATCH_BOUNDS = 'batch_remaining_bounds'

    def __init__(self, batches=None, log=None):
        self.batches = batches or BatchRepository()
        self.log = log or MovementLogRepository()

    def _check_stock(self):
        remaining = self.batches.remaining_by_product()
        for product in Product.query.order_by(Product.id):
            expected = remaining.get(product.id, 0)
            if (product.stock or 0) != expected:
                yield Violation(self.RULE_STOCK_BATCHES, 'product', product.id,
                                f"{product.name}: 库存 {product.stock}, 批次剩余合计 {expected}")

    def _check_records(self):
        for record in self.log.all_records():
            if record.after_stock - record.before_stock != record.quantity:
                yield Violation(self.RULE_RECORD_DELTA, 'inventory_record', record.id,
                                f"{record.before_stock} -> {record.after_stock}, 数量 {record.quantity}")

    def _check_items(self):
        for item in PurchaseOrderItem.query.order_by(PurchaseOrderItem.id):
            if not 0 <= item.received_quantity <= item.quantity:
                yield Violation(self.RULE_ITEM_BOUNDS, 'purchase_order_item', item.id,
                                f"已收 {item.received_quantity} / 数量 {item.quantity}")
        for item in SaleOrderItem.query.order_by(SaleOrderItem.id):
            if not 0 <= item.shipped_quantity <= item.quantity:
                yield Violation(self.RULE_ITEM_BOUNDS, 'sale_order_item', item.id,
                                f"已发 {item.shipped_quantity} / 数量 {item.quantity}")

    def _check_batches(self):
        for batch in InventoryBatch.query.order_by(InventoryBatch.id):
            if not 0 <= batch.remaining_quantity <= batch.quantity:
                yield Violation(self.RULE_BATCH_BOUNDS, 'inventory_batch', batch.id,
                                f"{batch.batch_no}: 剩余 {batch.remaining_quantity} / 入库 {batch.quantity}")

    def verify(self):
        """返回违规列表，空列表表示账本一致"""
        violations = []
        for check in (self._check_stock, self._check_records, self._check_items, self._check_batches):
            violations.extend(check())
        if violations:
            logger.error('账本校验发现 %s 处不一致', len(violations))
        else:
            logger.info('账本校验通过')
        return violations


audit_service = LedgerAuditService()
