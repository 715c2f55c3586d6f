"""销售单接口"""
from flask import request

from stockledger.blueprints.sales import sales_bp
from stockledger.services.inventory_service import inventory_service
from stockledger.services.movement_service import movement_service
from stockledger.services.sales_service import sales_service
from stockledger.utils.request_helpers import (
    current_operator, idempotency_key, json_body, ok, page_args, paginated
)


@sales_bp.route('', methods=['GET'])
def list_orders():
    page, per_page = page_args()
    pagination = sales_service.list_orders(
        status=request.args.get('status') or None,
        partner_id=request.args.get('customer_id', type=int),
        keyword=request.args.get('q', '').strip() or None,
        page=page, per_page=per_page,
    )
    return paginated(pagination, lambda o: o.to_dict(include_items=False))


@sales_bp.route('/pending', methods=['GET'])
def pending_orders():
    return ok([o.to_dict(include_items=False) for o in sales_service.pending_orders()])


@sales_bp.route('', methods=['POST'])
def create_order():
    """
    创建销售单，未填写单价时取商品售价
    {"customer_id": 1, "delivery_date": "2024-01-05",
     "items": [{"product_id": 1, "quantity": 2}]}
    """
    data = json_body()
    order = sales_service.create_order(
        data.get('customer_id'),
        data.get('items'),
        date_info=data,
        remark=data.get('remark'),
        status=data.get('status'),
        order_no=data.get('order_no'),
    )
    return ok(order.to_dict(), 201)


@sales_bp.route('/<int:order_id>', methods=['GET'])
def get_order(order_id):
    return ok(sales_service.get_order(order_id).to_dict())


@sales_bp.route('/<int:order_id>', methods=['PATCH', 'PUT'])
def edit_order(order_id):
    return ok(sales_service.edit_order(order_id, json_body()).to_dict())


@sales_bp.route('/<int:order_id>', methods=['DELETE'])
def delete_order(order_id):
    sales_service.delete_order(order_id)
    return ok({'id': order_id})


@sales_bp.route('/<int:order_id>/ship', methods=['POST'])
def ship(order_id):
    """
    发货出库，按 FIFO 扣减批次
    {"items": [{"product_id": 1, "shipped_quantity": 2}]}
    """
    order = inventory_service.ship_sale(
        order_id,
        json_body().get('items'),
        operator=current_operator(),
        idempotency_key=idempotency_key(),
    )
    return ok(order.to_dict())


@sales_bp.route('/<int:order_id>/items/<int:product_id>/batches', methods=['GET'])
def item_batches(order_id, product_id):
    """销售明细消耗的批次"""
    return ok(movement_service.sale_item_batches(order_id, product_id))
