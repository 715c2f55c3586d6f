import re

import pytest

from stockledger.exceptions import (
    InvalidQuantity, OrderNotFound, OrderStateError, PartyNotFound, ProductNotFound, ValidationError
)
from stockledger.models.purchase import PurchaseOrder
from stockledger.models.trade import SaleOrder
from stockledger.services.inventory_service import inventory_service
from stockledger.services.purchase_service import purchase_service
from stockledger.services.sales_service import sales_service


def test_create_purchase_order_totals_and_snapshots(make_product, make_purchase, supplier):
    rice = make_product(name='大米')
    oil = make_product(name='花生油')

    order = make_purchase([(rice, 10, 5.0), (oil, 4, 12.5)],
                          date_info={'order_date': '2024-03-01', 'expected_date': '2024-03-05'})

    assert re.match(r'^PO-\d{8}-\d{3}$', order.order_no)
    assert order.status == PurchaseOrder.STATUS_PENDING
    assert order.supplier_name == supplier.name
    assert order.total_amount == 100.0
    assert order.received_amount == 0
    assert order.expected_date.isoformat() == '2024-03-05'
    assert [(i.product_name, i.amount, i.received_quantity) for i in order.items] == [
        ('大米', 50.0, 0), ('花生油', 50.0, 0)
    ]


def test_sale_order_defaults_price_to_product_sale_price(make_product, customer):
    product = make_product(sale_price=8.8)
    order = sales_service.create_order(customer.id, [{'product_id': product.id, 'quantity': 5}])

    assert re.match(r'^SO-\d{8}-\d{3}$', order.order_no)
    assert order.items[0].price == 8.8
    assert order.total_amount == pytest.approx(44.0)
    assert order.customer_name == customer.name
    assert order.shipped_amount == 0


@pytest.mark.parametrize('line', [
    {'quantity': 0, 'price': 1},
    {'quantity': -3, 'price': 1},
    {'quantity': 2, 'price': -1},
    {'quantity': 'abc', 'price': 1},
])
def test_invalid_quantities_rejected(make_product, supplier, line):
    product = make_product()
    with pytest.raises(InvalidQuantity):
        purchase_service.create_order(supplier.id, [dict(line, product_id=product.id)])
    assert PurchaseOrder.query.count() == 0


def test_unknown_partner_or_product(make_product, supplier, customer):
    product = make_product()
    with pytest.raises(PartyNotFound):
        purchase_service.create_order(999, [{'product_id': product.id, 'quantity': 1}])
    # 客户不能作为采购单的供应商
    with pytest.raises(PartyNotFound):
        purchase_service.create_order(customer.id, [{'product_id': product.id, 'quantity': 1}])
    with pytest.raises(ProductNotFound):
        purchase_service.create_order(supplier.id, [{'product_id': 999, 'quantity': 1}])


def test_duplicate_product_lines_and_empty_items_rejected(make_product, supplier):
    product = make_product()
    with pytest.raises(ValidationError):
        purchase_service.create_order(supplier.id, [
            {'product_id': product.id, 'quantity': 1},
            {'product_id': product.id, 'quantity': 2},
        ])
    with pytest.raises(ValidationError):
        purchase_service.create_order(supplier.id, [])


def test_explicit_order_no_must_be_unique(make_product, make_purchase):
    product = make_product()
    make_purchase([(product, 1, 1.0)], order_no='PO-20240101-001')
    with pytest.raises(ValidationError):
        make_purchase([(product, 1, 1.0)], order_no='PO-20240101-001')


def test_edit_header_and_items_before_receiving(make_product, make_purchase):
    a = make_product()
    b = make_product()
    order = make_purchase([(a, 10, 2.0)])

    edited = purchase_service.edit_order(order.id, {
        'expected_date': '2024-05-01',
        'remark': '加急',
        'status': PurchaseOrder.STATUS_CONFIRMED,
        'items': [{'product_id': a.id, 'quantity': 5, 'price': 2.0},
                  {'product_id': b.id, 'quantity': 3, 'price': 10.0}],
    })

    assert edited.status == PurchaseOrder.STATUS_CONFIRMED
    assert edited.remark == '加急'
    assert edited.total_amount == 40.0
    assert sorted((i.product_id, i.quantity) for i in edited.items) == [(a.id, 5), (b.id, 3)]


def test_edit_rejects_unknown_status(make_product, make_purchase):
    order = make_purchase([(make_product(), 1, 1.0)])
    with pytest.raises(ValidationError):
        purchase_service.edit_order(order.id, {'status': 'lost'})


def test_items_locked_once_received(make_product, make_purchase):
    product = make_product()
    order = make_purchase([(product, 10, 2.0)])
    inventory_service.receive_purchase(order.id, [{'product_id': product.id, 'received_quantity': 4}])

    with pytest.raises(OrderStateError):
        purchase_service.edit_order(order.id, {'items': [{'product_id': product.id, 'quantity': 1}]})
    # 表头仍可修改
    assert purchase_service.edit_order(order.id, {'remark': '部分到货'}).remark == '部分到货'


def test_delete_refused_after_receiving(make_product, make_purchase):
    product = make_product()
    order = make_purchase([(product, 10, 2.0)])
    inventory_service.receive_purchase(order.id, [{'product_id': product.id, 'received_quantity': 1}])

    with pytest.raises(OrderStateError):
        purchase_service.delete_order(order.id)
    assert purchase_service.get_order(order.id).id == order.id


def test_delete_pending_order_is_soft(make_product, make_sale):
    order = make_sale([(make_product(), 2, 3.0)])
    sales_service.delete_order(order.id)

    with pytest.raises(OrderNotFound):
        sales_service.get_order(order.id)
    assert SaleOrder.query.count() == 1


def test_pending_and_list_orders(make_product, make_purchase):
    product = make_product()
    open_order = make_purchase([(product, 5, 1.0)])
    done = make_purchase([(product, 5, 1.0)])
    inventory_service.receive_purchase(done.id, [{'product_id': product.id, 'received_quantity': 5}])

    assert [o.id for o in purchase_service.pending_orders()] == [open_order.id]
    assert purchase_service.list_orders(status=PurchaseOrder.STATUS_RECEIVED).total == 1
    assert purchase_service.list_orders(keyword=done.order_no).items[0].id == done.id
