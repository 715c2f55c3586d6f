"""
批次账本服务
批次只在入库时创建，之后只会被 FIFO 分配消耗
"""
import logging
from dataclasses import dataclass, field
from typing import List

from flask import current_app

from stockledger.exceptions import InsufficientBatchStock, ValidationError
from stockledger.models.stock import BatchMovement, InventoryBatch
from stockledger.repositories import BatchRepository, MovementLogRepository
from stockledger.utils import numbering

logger = logging.getLogger(__name__)

POLICY_REJECT = 'reject'
POLICY_ALLOW = 'allow'
SHORTFALL_POLICIES = (POLICY_REJECT, POLICY_ALLOW)


@dataclass
class BatchAllocation:
    batch_id: int
    batch_no: str
    quantity: int


@dataclass
class AllocationResult:
    """一次分配的结果: 每个批次扣减了多少，以及未能覆盖的数量"""
    allocations: List[BatchAllocation] = field(default_factory=list)
    shortfall: int = 0

    @property
    def allocated(self):
        return sum(a.quantity for a in self.allocations)

    @property
    def batch_nos(self):
        """写入库存流水的批次号，逗号分隔"""
        return ', '.join(a.batch_no for a in self.allocations)

    def as_pairs(self):
        return [(a.batch_no, a.quantity) for a in self.allocations]


class BatchService:

    def __init__(self, batches=None, log=None):
        self.batches = batches or BatchRepository()
        self.log = log or MovementLogRepository()

    def create_batch(self, product, quantity, unit_cost, provenance, related_order_type,
                     supplier=None, supplier_name=None, production_date=None, expiry_date=None):
        """
        新建批次并写入一条入库批次流水
        调用方负责提交事务
        """
        if quantity <= 0:
            raise ValidationError(f"批次数量必须大于 0: {quantity}")

        batch = InventoryBatch(
            batch_no=numbering.generate_unique(
                lambda: numbering.batch_no(product.code), self.batches.batch_no_exists
            ),
            product_id=product.id,
            product_name=product.name,
            quantity=quantity,
            remaining_quantity=quantity,
            purchase_price=unit_cost or 0.0,
            supplier_id=supplier.id if supplier else None,
            supplier_name=supplier.name if supplier else supplier_name,
            source_type=provenance.kind,
            purchase_order_id=provenance.order_id,
            purchase_order_no=provenance.order_no,
            production_date=production_date,
            expiry_date=expiry_date,
            status=InventoryBatch.STATUS_ACTIVE,
        )
        self.batches.add(batch)
        # 批次流水需要 batch.id
        self.batches.flush()
        self.log.append_movement(batch, BatchMovement.TYPE_IN, quantity, related_order_type, provenance)
        return batch

    def allocate_fifo(self, product, quantity_needed, provenance, related_order_type,
                      newest_first=False, policy=None):
        """
        按入库时间从早到晚扣减批次
        :param newest_first: 反向分配 (库存调整的 latest 策略)
        :param policy: reject 在扣减前抛出 InsufficientBatchStock; allow 分配到哪算哪
        :return: AllocationResult
        """
        policy = policy or current_app.config.get('BATCH_SHORTFALL_POLICY', POLICY_REJECT)
        if policy not in SHORTFALL_POLICIES:
            raise ValueError(f"未知的批次不足策略: {policy}")

        candidates = self.batches.available(product.id, newest_first=newest_first, for_update=True)
        available = sum(b.remaining_quantity for b in candidates)
        if available < quantity_needed:
            if policy == POLICY_REJECT:
                raise InsufficientBatchStock(product.name, quantity_needed, available)
            logger.warning('批次数量不足: %s 需要 %s, 可分配 %s, 差额 %s 未关联批次',
                           product.name, quantity_needed, available, quantity_needed - available)

        result = AllocationResult()
        still_needed = quantity_needed
        for batch in candidates:
            if still_needed <= 0:
                break
            take = min(batch.remaining_quantity, still_needed)
            batch.remaining_quantity -= take
            if batch.remaining_quantity == 0:
                batch.status = InventoryBatch.STATUS_EXHAUSTED
            self.log.append_movement(batch, BatchMovement.TYPE_OUT, take, related_order_type, provenance)
            result.allocations.append(BatchAllocation(batch.id, batch.batch_no, take))
            still_needed -= take

        result.shortfall = still_needed
        return result

    def available_batches(self, product_id):
        """可分配批次，FIFO 顺序"""
        return self.batches.available(product_id)

    def list_batches(self, product_id=None, status=None, keyword=None, page=1, per_page=20):
        query = self.batches.search(product_id=product_id, status=status, keyword=keyword)
        return self.batches.paginate(query, page, per_page)

    def get_batch(self, batch_id):
        return self.batches.get_or_404(batch_id)

    def batch_movements(self, batch_id):
        batch = self.batches.get_or_404(batch_id)
        return self.log.movements(batch_id=batch.id).all()

    def inventory_valuation(self, product_id=None):
        """在库批次按入库成本的估值"""
        return self.batches.valuation(product_id)


batch_service = BatchService()
