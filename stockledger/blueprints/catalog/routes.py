from flask import request

from stockledger.blueprints.catalog import catalog_bp
from stockledger.blueprints.catalog.forms import ProductForm
from stockledger.services.batch_service import batch_service
from stockledger.services.catalog_service import catalog_service
from stockledger.services.inventory_service import inventory_service
from stockledger.services.movement_service import movement_service
from stockledger.utils.request_helpers import (
    current_operator, json_body, ok, page_args, paginated, validate_form
)


@catalog_bp.route('', methods=['GET'])
def list_products():
    """商品列表，支持关键字 / 状态 / 分类筛选"""
    page, per_page = page_args()
    pagination = catalog_service.list_products(
        keyword=request.args.get('q', '').strip() or None,
        status=request.args.get('status') or None,
        category=request.args.get('category') or None,
        page=page, per_page=per_page,
    )
    return paginated(pagination)


@catalog_bp.route('', methods=['POST'])
def create_product():
    data = validate_form(ProductForm())
    opening_stock = data.pop('opening_stock', 0)
    product = catalog_service.create_product(data)
    if opening_stock:
        inventory_service.adjust_inventory(product.id, opening_stock, '期初库存', operator=current_operator())
    return ok(product.to_dict(), 201)


@catalog_bp.route('/lookup', methods=['GET'])
def lookup():
    """扫码: 先匹配条码，再匹配商品编码"""
    product = catalog_service.find_by_scan(request.args.get('code'))
    return ok(product.to_dict())


@catalog_bp.route('/low-stock', methods=['GET'])
def low_stock():
    return ok([p.to_dict() for p in catalog_service.low_stock_products()])


@catalog_bp.route('/<int:product_id>', methods=['GET'])
def get_product(product_id):
    product = catalog_service.get_product(product_id)
    data = product.to_dict()
    data['stock_value'] = batch_service.inventory_valuation(product.id)
    return ok(data)


@catalog_bp.route('/<int:product_id>', methods=['PATCH', 'PUT'])
def update_product(product_id):
    product = catalog_service.update_product(product_id, json_body())
    return ok(product.to_dict())


@catalog_bp.route('/<int:product_id>', methods=['DELETE'])
def delete_product(product_id):
    catalog_service.delete_product(product_id)
    return ok({'id': product_id})


@catalog_bp.route('/<int:product_id>/toggle', methods=['POST'])
def toggle_product(product_id):
    product = catalog_service.toggle_status(product_id)
    return ok(product.to_dict())


@catalog_bp.route('/<int:product_id>/batches', methods=['GET'])
def product_batches(product_id):
    """可分配批次，按 FIFO 顺序"""
    catalog_service.get_product(product_id)
    return ok([b.to_dict() for b in batch_service.available_batches(product_id)])


@catalog_bp.route('/<int:product_id>/records', methods=['GET'])
def product_records(product_id):
    catalog_service.get_product(product_id)
    page, per_page = page_args()
    pagination = movement_service.list_records(
        product_id=product_id, record_type=request.args.get('type') or None,
        page=page, per_page=per_page,
    )
    return paginated(pagination)
