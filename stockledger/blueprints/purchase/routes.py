"""采购单接口"""
from flask import request

from stockledger.blueprints.purchase import purchase_bp
from stockledger.services.inventory_service import inventory_service
from stockledger.services.purchase_service import purchase_service
from stockledger.utils.request_helpers import (
    current_operator, idempotency_key, json_body, ok, page_args, paginated
)


@purchase_bp.route('', methods=['GET'])
def list_orders():
    page, per_page = page_args()
    pagination = purchase_service.list_orders(
        status=request.args.get('status') or None,
        partner_id=request.args.get('supplier_id', type=int),
        keyword=request.args.get('q', '').strip() or None,
        page=page, per_page=per_page,
    )
    return paginated(pagination, lambda o: o.to_dict(include_items=False))


@purchase_bp.route('/pending', methods=['GET'])
def pending_orders():
    return ok([o.to_dict(include_items=False) for o in purchase_service.pending_orders()])


@purchase_bp.route('', methods=['POST'])
def create_order():
    """
    创建采购单
    {"supplier_id": 1, "order_date": "2024-01-01", "expected_date": "2024-01-05",
     "items": [{"product_id": 1, "quantity": 10, "price": 5.0}]}
    """
    data = json_body()
    order = purchase_service.create_order(
        data.get('supplier_id'),
        data.get('items'),
        date_info=data,
        remark=data.get('remark'),
        status=data.get('status'),
        order_no=data.get('order_no'),
    )
    return ok(order.to_dict(), 201)


@purchase_bp.route('/<int:order_id>', methods=['GET'])
def get_order(order_id):
    return ok(purchase_service.get_order(order_id).to_dict())


@purchase_bp.route('/<int:order_id>', methods=['PATCH', 'PUT'])
def edit_order(order_id):
    return ok(purchase_service.edit_order(order_id, json_body()).to_dict())


@purchase_bp.route('/<int:order_id>', methods=['DELETE'])
def delete_order(order_id):
    purchase_service.delete_order(order_id)
    return ok({'id': order_id})


@purchase_bp.route('/<int:order_id>/receive', methods=['POST'])
def receive(order_id):
    """
    收货入库
    {"items": [{"product_id": 1, "received_quantity": 5, "expiry_date": "2025-01-01"}]}
    """
    order = inventory_service.receive_purchase(
        order_id,
        json_body().get('items'),
        operator=current_operator(),
        idempotency_key=idempotency_key(),
    )
    return ok(order.to_dict())
