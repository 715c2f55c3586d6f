from sqlalchemy import func

from stockledger.exceptions import BatchNotFound
from stockledger.extensions import db
from stockledger.models.stock import InventoryBatch
from .base import BaseRepository


class BatchRepository(BaseRepository):
    model = InventoryBatch
    not_found = BatchNotFound
    label = '批次'

    def batch_no_exists(self, batch_no):
        return InventoryBatch.query.filter(InventoryBatch.batch_no == batch_no).first() is not None

    def available(self, product_id, newest_first=False, for_update=False):
        """
        可分配批次: active 且剩余 > 0
        默认按入库时间从早到晚 (FIFO)，时间相同时按 id
        """
        query = self.query().filter(
            InventoryBatch.product_id == product_id,
            InventoryBatch.status == InventoryBatch.STATUS_ACTIVE,
            InventoryBatch.remaining_quantity > 0,
        )
        if newest_first:
            query = query.order_by(InventoryBatch.created_at.desc(), InventoryBatch.id.desc())
        else:
            query = query.order_by(InventoryBatch.created_at.asc(), InventoryBatch.id.asc())
        if for_update:
            query = query.with_for_update()
        return query.all()

    def search(self, product_id=None, status=None, keyword=None):
        query = self.query()
        if product_id:
            query = query.filter(InventoryBatch.product_id == product_id)
        if status:
            query = query.filter(InventoryBatch.status == status)
        if keyword:
            like = f"%{keyword}%"
            query = query.filter(
                InventoryBatch.batch_no.ilike(like) | InventoryBatch.product_name.ilike(like)
            )
        return query.order_by(InventoryBatch.created_at.asc(), InventoryBatch.id.asc())

    def expiring(self, as_of):
        """过期日早于 as_of 且仍为 active 的批次"""
        return self.query().filter(
            InventoryBatch.status == InventoryBatch.STATUS_ACTIVE,
            InventoryBatch.expiry_date.isnot(None),
            InventoryBatch.expiry_date < as_of,
        ).order_by(InventoryBatch.product_id, InventoryBatch.id).all()

    def remaining_by_product(self, statuses=InventoryBatch.LEDGER_STATUSES):
        """{product_id: 剩余数量之和}"""
        rows = db.session.query(
            InventoryBatch.product_id, func.coalesce(func.sum(InventoryBatch.remaining_quantity), 0)
        ).filter(
            InventoryBatch.is_deleted.is_(False),
            InventoryBatch.status.in_(statuses),
        ).group_by(InventoryBatch.product_id).all()
        return {pid: int(total) for pid, total in rows}

    def valuation(self, product_id=None):
        """按入库成本计算的在库金额"""
        query = db.session.query(
            func.coalesce(func.sum(InventoryBatch.remaining_quantity * InventoryBatch.purchase_price), 0.0)
        ).filter(
            InventoryBatch.is_deleted.is_(False),
            InventoryBatch.status == InventoryBatch.STATUS_ACTIVE,
        )
        if product_id:
            query = query.filter(InventoryBatch.product_id == product_id)
        return float(query.scalar() or 0.0)
