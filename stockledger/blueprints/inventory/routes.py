"""库存调整 / 批次 / 流水 接口"""
from flask import request

from stockledger.blueprints.inventory import inventory_bp
from stockledger.blueprints.inventory.forms import ManualReceiveForm, StockAdjustmentForm
from stockledger.services.audit_service import audit_service
from stockledger.services.batch_service import batch_service
from stockledger.services.catalog_service import catalog_service
from stockledger.services.inventory_service import inventory_service
from stockledger.services.movement_service import movement_service
from stockledger.utils.request_helpers import (
    current_operator, idempotency_key, json_body, ok, page_args, paginated, validate_form
)


@inventory_bp.route('/adjust', methods=['POST'])
def adjust():
    """库存调整，返回调整流水与调整后的商品"""
    data = validate_form(StockAdjustmentForm())
    record = inventory_service.adjust_inventory(
        data['product_id'],
        data['delta'],
        data.get('reason'),
        operator=current_operator(),
        idempotency_key=idempotency_key(),
    )
    return ok({
        'record': record.to_dict(),
        'product': catalog_service.get_product(record.product_id).to_dict(),
    }, 201)


@inventory_bp.route('/receive', methods=['POST'])
def receive_manual():
    """手动入库"""
    data = validate_form(ManualReceiveForm())
    record = inventory_service.receive_manual(
        data['product_id'],
        data['quantity'],
        reason=data.get('reason'),
        unit_cost=data.get('unit_cost'),
        operator=current_operator(),
        idempotency_key=idempotency_key(),
    )
    return ok({
        'record': record.to_dict(),
        'product': catalog_service.get_product(record.product_id).to_dict(),
    }, 201)


@inventory_bp.route('/records', methods=['GET'])
def records():
    """库存流水，最新在前"""
    page, per_page = page_args()
    pagination = movement_service.list_records(
        product_id=request.args.get('product_id', type=int),
        record_type=request.args.get('type') or None,
        order_no=request.args.get('order_no') or None,
        page=page, per_page=per_page,
    )
    return paginated(pagination)


@inventory_bp.route('/batches', methods=['GET'])
def batches():
    page, per_page = page_args()
    pagination = batch_service.list_batches(
        product_id=request.args.get('product_id', type=int),
        status=request.args.get('status') or None,
        keyword=request.args.get('q', '').strip() or None,
        page=page, per_page=per_page,
    )
    return paginated(pagination)


@inventory_bp.route('/batches/<int:batch_id>', methods=['GET'])
def batch_detail(batch_id):
    return ok(batch_service.get_batch(batch_id).to_dict())


@inventory_bp.route('/batches/<int:batch_id>/movements', methods=['GET'])
def batch_movements(batch_id):
    return ok([m.to_dict() for m in batch_service.batch_movements(batch_id)])


@inventory_bp.route('/movements', methods=['GET'])
def movements():
    return ok([m.to_dict() for m in movement_service.list_movements(
        product_id=request.args.get('product_id', type=int),
        order_id=request.args.get('order_id', type=int),
        order_type=request.args.get('order_type') or None,
    )])


@inventory_bp.route('/valuation', methods=['GET'])
def valuation():
    """按批次入库成本估值"""
    product_id = request.args.get('product_id', type=int)
    return ok({
        'product_id': product_id,
        'total_value': round(batch_service.inventory_valuation(product_id), 2),
    })


@inventory_bp.route('/expire', methods=['POST'])
def expire():
    """{"as_of": "2024-06-01"}，缺省为今天"""
    expired = inventory_service.expire_batches(json_body().get('as_of'), operator=current_operator())
    return ok([b.to_dict() for b in expired])


@inventory_bp.route('/audit', methods=['GET'])
def audit():
    violations = audit_service.verify()
    return ok({
        'consistent': not violations,
        'violations': [v.to_dict() for v in violations],
    })
