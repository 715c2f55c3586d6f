"""
库存变动引擎
收货 / 发货 / 手动入库 / 库存调整 / 批次过期 都在这里落账:
每个命令在商品锁内一次性修改 商品库存、批次、订单进度 并追加流水，
任何一步失败整个命令回滚。
"""
import logging
from collections import OrderedDict
from dataclasses import dataclass
from datetime import date
from typing import Optional

from flask import current_app

from stockledger.exceptions import (
    InsufficientStock, InvalidQuantity, NegativeStockError, OrderStateError, ValidationError
)
from stockledger.extensions import db
from stockledger.models.biz import Partner
from stockledger.models.stock import BatchMovement, InventoryRecord, Operator, Provenance
from stockledger.repositories import (
    CommandReceiptRepository, MovementLogRepository, PartnerRepository, ProductRepository,
    PurchaseOrderRepository, SaleOrderRepository
)
from stockledger.utils.dates import parse_date
from stockledger.utils.transaction import atomic
from stockledger.utils.validators import to_int, to_price
from .batch_service import batch_service

logger = logging.getLogger(__name__)

MANUAL_SUPPLIER_NAME = '手动入库'


@dataclass
class CommandLine:
    """收货 / 发货请求中的一行 (同一商品多行已合并)"""
    product_id: int
    quantity: int
    production_date: Optional[date] = None
    expiry_date: Optional[date] = None


class InventoryService:
    COMMAND_RECEIVE = 'receive_purchase'
    COMMAND_SHIP = 'ship_sale'
    COMMAND_RECEIVE_MANUAL = 'receive_manual'
    COMMAND_ADJUST = 'adjust_inventory'

    def __init__(self, products=None, batches=None, log=None, receipts=None):
        self.products = products or ProductRepository()
        self.batches = batches or batch_service
        self.log = log or MovementLogRepository()
        self.receipts = receipts or CommandReceiptRepository()
        self.purchase_orders = PurchaseOrderRepository()
        self.sale_orders = SaleOrderRepository()
        self.suppliers = PartnerRepository(Partner.TYPE_SUPPLIER)

    # ------------------------------------------------------------------
    # 公共辅助
    # ------------------------------------------------------------------
    @staticmethod
    def resolve_operator(operator=None):
        """Operator / dict / None (取配置中的默认操作人)"""
        if isinstance(operator, Operator):
            return operator
        config = current_app.config
        operator = operator or {}
        return Operator(
            id=str(operator.get('id') or config['DEFAULT_OPERATOR_ID']),
            name=operator.get('name') or config['DEFAULT_OPERATOR_NAME'],
        )

    def _replayed(self, key, command):
        """幂等键已执行过则返回回执"""
        if not key:
            return None
        receipt = self.receipts.find(key)
        if receipt is not None and receipt.command != command:
            raise ValidationError(f"幂等键已被 {receipt.command} 使用: {key}", payload={'idempotency_key': key})
        return receipt

    @staticmethod
    def _parse_lines(items, quantity_field, with_dates=False):
        """
        校验请求行并按商品合并
        数量为负抛出 InvalidQuantity; 不做任何写入
        """
        if not isinstance(items, list):
            raise ValidationError("明细必须是数组", payload={'field': 'items'})
        if not items:
            raise ValidationError("明细不能为空", payload={'field': 'items'})

        lines = OrderedDict()
        for index, data in enumerate(items):
            if not isinstance(data, dict):
                raise ValidationError(f"明细格式错误: items[{index}]", payload={'field': f'items[{index}]'})
            product_id = to_int(data.get('product_id'), f'items[{index}].product_id')
            quantity = to_int(data.get(quantity_field), f'items[{index}].{quantity_field}', minimum=0)
            line = lines.get(product_id)
            if line is None:
                line = lines[product_id] = CommandLine(product_id, 0)
            line.quantity += quantity
            if with_dates:
                line.production_date = line.production_date or parse_date(
                    data.get('production_date'), 'production_date')
                line.expiry_date = line.expiry_date or parse_date(data.get('expiry_date'), 'expiry_date')
        return lines

    @staticmethod
    def _match_items(order, lines, label):
        """请求中的每个商品都必须在订单上"""
        order_items = {item.product_id: item for item in order.items}
        for product_id in lines:
            if product_id not in order_items:
                raise ValidationError(f"商品 {product_id} 不在{label} {order.order_no} 中",
                                      payload={'product_id': product_id, 'order_no': order.order_no})
        return order_items

    @staticmethod
    def _clamp(order, item, requested, done_field):
        """数量超过待处理数量时截断到待处理数量"""
        quantity = min(requested, item.pending_quantity)
        if quantity < requested:
            logger.warning('%s %s 的 %s 请求数量 %s 超过待处理数量 %s，按 %s 处理',
                           order.order_no, item.product_name, done_field, requested,
                           item.pending_quantity, quantity)
        return quantity

    # ------------------------------------------------------------------
    # 采购收货
    # ------------------------------------------------------------------
    def receive_purchase(self, order_id, items, operator=None, idempotency_key=None):
        """
        采购收货
        :param items: [{'product_id': 1, 'received_quantity': 5,
                        'production_date': '2024-01-01', 'expiry_date': None}, ...]
        :return: PurchaseOrder
        """
        lines = self._parse_lines(items, 'received_quantity', with_dates=True)
        operator = self.resolve_operator(operator)

        with atomic(lines.keys()):
            receipt = self._replayed(idempotency_key, self.COMMAND_RECEIVE)
            if receipt is not None:
                logger.info('幂等键 %s 已执行，跳过收货', idempotency_key)
                return self.purchase_orders.get_or_404(receipt.target_id)

            order = self.purchase_orders.get_or_404(order_id)
            if order.status == order.STATUS_CANCELLED:
                raise OrderStateError(f"采购单 {order.order_no} 已取消，不能收货",
                                      payload={'order_no': order.order_no})
            order_items = self._match_items(order, lines, '采购单')
            products = self.products.lock_many(lines.keys())
            supplier = self.suppliers.get(order.supplier_id, include_deleted=True)
            provenance = Provenance.from_order(order)
            reason = f"采购入库 - 采购单: {order.order_no}"

            received = 0
            for product_id, line in lines.items():
                item = order_items[product_id]
                quantity = self._clamp(order, item, line.quantity, 'received_quantity')
                if quantity == 0:
                    continue
                item.received_quantity += quantity

                product = products[product_id]
                before, after = self.products.adjust_stock(product_id, product.stock + quantity)
                batch = self.batches.create_batch(
                    product, quantity, item.price, provenance, BatchMovement.ORDER_PURCHASE,
                    supplier=supplier, supplier_name=order.supplier_name,
                    production_date=line.production_date, expiry_date=line.expiry_date,
                )
                self.log.append_record(product, InventoryRecord.TYPE_IN, quantity, before, after,
                                       reason, provenance, operator, batch_no=batch.batch_no)
                received += quantity

            order.received_amount = sum(i.received_quantity * i.price for i in order.items)
            order.status = order.STATUS_RECEIVED if order.is_fully_received else order.STATUS_CONFIRMED

            if idempotency_key:
                self.receipts.add(idempotency_key, self.COMMAND_RECEIVE, order.id)

        logger.info('采购单 %s 收货 %s 件，状态 %s', order.order_no, received, order.status)
        return order

    # ------------------------------------------------------------------
    # 销售发货
    # ------------------------------------------------------------------
    def ship_sale(self, order_id, items, operator=None, idempotency_key=None):
        """
        销售发货，按 FIFO 扣减批次
        :param items: [{'product_id': 1, 'shipped_quantity': 5}, ...]
        :return: SaleOrder
        """
        lines = self._parse_lines(items, 'shipped_quantity')
        operator = self.resolve_operator(operator)

        with atomic(lines.keys()):
            receipt = self._replayed(idempotency_key, self.COMMAND_SHIP)
            if receipt is not None:
                logger.info('幂等键 %s 已执行，跳过发货', idempotency_key)
                return self.sale_orders.get_or_404(receipt.target_id)

            order = self.sale_orders.get_or_404(order_id)
            if order.status == order.STATUS_CANCELLED:
                raise OrderStateError(f"销售单 {order.order_no} 已取消，不能发货",
                                      payload={'order_no': order.order_no})
            order_items = self._match_items(order, lines, '销售单')
            products = self.products.lock_many(lines.keys())

            # 先整体检查库存，任何一行不足都不做修改
            planned = []
            for product_id, line in lines.items():
                item = order_items[product_id]
                quantity = self._clamp(order, item, line.quantity, 'shipped_quantity')
                if quantity == 0:
                    continue
                product = products[product_id]
                if product.stock < quantity:
                    raise InsufficientStock(product.name, quantity, product.stock)
                planned.append((item, product, quantity))

            provenance = Provenance.from_order(order)
            reason = f"销售出库 - 销售单: {order.order_no}"
            shipped = 0
            for item, product, quantity in planned:
                allocation = self.batches.allocate_fifo(product, quantity, provenance, BatchMovement.ORDER_SALE)
                before, after = self.products.adjust_stock(product.id, product.stock - quantity)
                self.log.append_record(product, InventoryRecord.TYPE_OUT, -quantity, before, after,
                                       reason, provenance, operator, batch_no=allocation.batch_nos)
                item.shipped_quantity += quantity
                shipped += quantity

            order.shipped_amount = sum(i.shipped_quantity * i.price for i in order.items)
            order.status = order.STATUS_COMPLETED if order.is_fully_shipped else order.STATUS_SHIPPED

            if idempotency_key:
                self.receipts.add(idempotency_key, self.COMMAND_SHIP, order.id)

        logger.info('销售单 %s 发货 %s 件，状态 %s', order.order_no, shipped, order.status)
        return order

    # ------------------------------------------------------------------
    # 手动入库 / 库存调整
    # ------------------------------------------------------------------
    def receive_manual(self, product_id, quantity, reason=None, unit_cost=None, operator=None,
                       idempotency_key=None):
        """不关联采购单的入库，生成 manual 批次"""
        product_id = to_int(product_id, 'product_id')
        quantity = to_int(quantity, 'quantity', minimum=1)
        operator = self.resolve_operator(operator)

        with atomic([product_id]):
            receipt = self._replayed(idempotency_key, self.COMMAND_RECEIVE_MANUAL)
            if receipt is not None:
                return db.session.get(InventoryRecord, receipt.target_id)

            product = self.products.lock_many([product_id])[product_id]
            cost = product.purchase_price if unit_cost in (None, '') else to_price(unit_cost, 'unit_cost')
            provenance = Provenance.manual()

            before, after = self.products.adjust_stock(product.id, product.stock + quantity)
            batch = self.batches.create_batch(product, quantity, cost, provenance, BatchMovement.ORDER_PURCHASE,
                                              supplier_name=MANUAL_SUPPLIER_NAME)
            record = self.log.append_record(product, InventoryRecord.TYPE_IN, quantity, before, after,
                                            reason or MANUAL_SUPPLIER_NAME, provenance, operator,
                                            batch_no=batch.batch_no)
            db.session.flush()
            if idempotency_key:
                self.receipts.add(idempotency_key, self.COMMAND_RECEIVE_MANUAL, record.id)

        logger.info('手动入库 %s x %s，库存 %s -> %s', product.name, quantity, before, after)
        return record

    def adjust_inventory(self, product_id, delta, reason, operator=None, idempotency_key=None):
        """
        库存调整 (盘盈 / 盘亏)
        增加: 以商品进价新建 adjustment 批次
        减少: 按 ADJUST_DECREASE_POLICY (fifo / latest) 扣减批次
        :return: InventoryRecord
        """
        product_id = to_int(product_id, 'product_id')
        delta = to_int(delta, 'delta')
        if delta == 0:
            raise InvalidQuantity("调整数量不能为 0", payload={'field': 'delta'})
        reason = (reason or '').strip() or '库存调整'
        operator = self.resolve_operator(operator)

        with atomic([product_id]):
            receipt = self._replayed(idempotency_key, self.COMMAND_ADJUST)
            if receipt is not None:
                logger.info('幂等键 %s 已执行，跳过调整', idempotency_key)
                return db.session.get(InventoryRecord, receipt.target_id)

            product = self.products.lock_many([product_id])[product_id]
            if product.stock + delta < 0:
                raise NegativeStockError(product.name, -delta, product.stock)

            provenance = Provenance.adjustment()
            if delta > 0:
                batch = self.batches.create_batch(product, delta, product.purchase_price, provenance,
                                                  BatchMovement.ORDER_ADJUSTMENT)
                batch_no = batch.batch_no
            else:
                newest_first = current_app.config.get('ADJUST_DECREASE_POLICY', 'fifo') == 'latest'
                allocation = self.batches.allocate_fifo(product, -delta, provenance,
                                                        BatchMovement.ORDER_ADJUSTMENT,
                                                        newest_first=newest_first)
                batch_no = allocation.batch_nos

            before, after = self.products.adjust_stock(product.id, product.stock + delta)
            record = self.log.append_record(product, InventoryRecord.TYPE_ADJUST, delta, before, after,
                                            reason, provenance, operator, batch_no=batch_no)
            db.session.flush()
            if idempotency_key:
                self.receipts.add(idempotency_key, self.COMMAND_ADJUST, record.id)

        logger.info('库存调整 %s %+d，库存 %s -> %s (%s)', product.name, delta, before, after, reason)
        return record

    # ------------------------------------------------------------------
    # 批次过期
    # ------------------------------------------------------------------
    def expire_batches(self, as_of=None, operator=None):
        """
        过期日早于 as_of 的 active 批次标记为 expired，
        剩余数量从商品库存中扣除，每个批次写一条调整流水
        :return: 被标记过期的批次列表
        """
        as_of = parse_date(as_of, 'as_of') or date.today()
        operator = self.resolve_operator(operator)
        product_ids = {b.product_id for b in self.batches.batches.expiring(as_of)}
        if not product_ids:
            return []

        with atomic(product_ids):
            products = self.products.lock_many(product_ids, include_deleted=True)
            provenance = Provenance.adjustment()
            # 加锁后重新读取，期间可能已被发货耗尽
            expired = [b for b in self.batches.batches.expiring(as_of) if b.product_id in products]
            for batch in expired:
                batch.status = batch.STATUS_EXPIRED
                product = products[batch.product_id]
                write_down = min(batch.remaining_quantity, product.stock)
                if write_down < batch.remaining_quantity:
                    logger.warning('批次 %s 剩余 %s 大于商品 %s 库存 %s',
                                   batch.batch_no, batch.remaining_quantity, product.name, product.stock)
                if write_down == 0:
                    continue
                before, after = self.products.adjust_stock(product.id, product.stock - write_down)
                self.log.append_record(product, InventoryRecord.TYPE_ADJUST, -write_down, before, after,
                                       f"批次过期 - {batch.batch_no}", provenance, operator,
                                       batch_no=batch.batch_no)

        logger.info('%s 个批次已过期 (截止 %s)', len(expired), as_of.isoformat())
        return expired


inventory_service = InventoryService()
