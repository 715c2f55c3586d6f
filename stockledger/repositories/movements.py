from stockledger.extensions import db
from stockledger.models.stock import BatchMovement, InventoryRecord
from stockledger.models.sys import CommandReceipt


class MovementLogRepository:
    """
    库存流水与批次流水
    只追加，不提供修改或删除
    """

    def append_record(self, product, record_type, quantity, before_stock, after_stock, reason,
                      provenance, operator, batch_no=None):
        record = InventoryRecord(
            product_id=product.id,
            product_name=product.name,
            type=record_type,
            quantity=quantity,
            before_stock=before_stock,
            after_stock=after_stock,
            reason=reason,
            batch_no=batch_no or None,
            source_type=provenance.kind,
            related_order_id=provenance.order_id,
            related_order_no=provenance.order_no,
            operator_id=operator.id,
            operator_name=operator.name,
        )
        db.session.add(record)
        return record

    def append_movement(self, batch, movement_type, quantity, related_order_type, provenance):
        movement = BatchMovement(
            batch_id=batch.id,
            batch_no=batch.batch_no,
            product_id=batch.product_id,
            type=movement_type,
            quantity=quantity,
            remaining_quantity=batch.remaining_quantity,
            related_order_id=provenance.order_id,
            related_order_no=provenance.order_no,
            related_order_type=related_order_type,
        )
        db.session.add(movement)
        return movement

    def records(self, product_id=None, record_type=None, order_no=None):
        query = InventoryRecord.query
        if product_id:
            query = query.filter(InventoryRecord.product_id == product_id)
        if record_type:
            query = query.filter(InventoryRecord.type == record_type)
        if order_no:
            query = query.filter(InventoryRecord.related_order_no == order_no)
        # 最新的流水在前
        return query.order_by(InventoryRecord.created_at.desc(), InventoryRecord.id.desc())

    def movements(self, batch_id=None, product_id=None, order_id=None, order_type=None):
        query = BatchMovement.query
        if batch_id:
            query = query.filter(BatchMovement.batch_id == batch_id)
        if product_id:
            query = query.filter(BatchMovement.product_id == product_id)
        if order_id:
            query = query.filter(BatchMovement.related_order_id == order_id)
        if order_type:
            query = query.filter(BatchMovement.related_order_type == order_type)
        return query.order_by(BatchMovement.created_at.asc(), BatchMovement.id.asc())

    def all_records(self):
        return InventoryRecord.query.order_by(InventoryRecord.id).all()


class CommandReceiptRepository:

    def find(self, key):
        return CommandReceipt.query.filter_by(key=key).first()

    def add(self, key, command, target_id):
        receipt = CommandReceipt(key=key, command=command, target_id=target_id)
        db.session.add(receipt)
        return receipt
