import pytest

from stockledger.exceptions import BatchNotFound, OrderNotFound
from stockledger.models.stock import BatchMovement, InventoryBatch
from stockledger.services.batch_service import AllocationResult, BatchAllocation, batch_service
from stockledger.services.inventory_service import inventory_service
from stockledger.services.movement_service import movement_service


@pytest.fixture
def stocked(make_product, make_purchase):
    """一个商品，两张采购单分别入库 5 件 (单价 2) 和 10 件 (单价 3)"""
    product = make_product(code='MILK')
    for quantity, price in ((5, 2.0), (10, 3.0)):
        order = make_purchase([(product, quantity, price)])
        inventory_service.receive_purchase(order.id, [{'product_id': product.id, 'received_quantity': quantity}])
    return product


def test_available_batches_in_fifo_order(stocked):
    batches = batch_service.available_batches(stocked.id)
    assert [b.remaining_quantity for b in batches] == [5, 10]
    assert [b.purchase_price for b in batches] == [2.0, 3.0]
    assert batches[0].created_at <= batches[1].created_at


def test_exhausted_batches_leave_the_fifo_queue(stocked, make_sale):
    sale = make_sale([(stocked, 5, 9.0)])
    inventory_service.ship_sale(sale.id, [{'product_id': stocked.id, 'shipped_quantity': 5}])

    remaining = batch_service.available_batches(stocked.id)
    assert [b.remaining_quantity for b in remaining] == [10]
    exhausted = InventoryBatch.query.filter_by(status=InventoryBatch.STATUS_EXHAUSTED).one()
    assert exhausted.remaining_quantity == 0
    assert exhausted.quantity == 5


def test_batch_movements_track_remaining(stocked, make_sale):
    first = batch_service.available_batches(stocked.id)[0]
    sale = make_sale([(stocked, 2, 9.0)])
    inventory_service.ship_sale(sale.id, [{'product_id': stocked.id, 'shipped_quantity': 2}])
    sale = make_sale([(stocked, 1, 9.0)])
    inventory_service.ship_sale(sale.id, [{'product_id': stocked.id, 'shipped_quantity': 1}])

    movements = batch_service.batch_movements(first.id)
    assert [(m.type, m.quantity, m.remaining_quantity) for m in movements] == [
        (BatchMovement.TYPE_IN, 5, 5),
        (BatchMovement.TYPE_OUT, 2, 3),
        (BatchMovement.TYPE_OUT, 1, 2),
    ]
    with pytest.raises(BatchNotFound):
        batch_service.batch_movements(999)


def test_sale_item_batches_aggregates_per_batch(stocked, make_sale):
    sale = make_sale([(stocked, 12, 9.0)])
    inventory_service.ship_sale(sale.id, [{'product_id': stocked.id, 'shipped_quantity': 4}])
    inventory_service.ship_sale(sale.id, [{'product_id': stocked.id, 'shipped_quantity': 8}])

    consumed = movement_service.sale_item_batches(sale.id, stocked.id)
    assert [c['quantity'] for c in consumed] == [5, 7]
    assert sum(c['quantity'] for c in consumed) == 12
    with pytest.raises(OrderNotFound):
        movement_service.sale_item_batches(999, stocked.id)


def test_inventory_valuation(stocked, make_product, make_sale):
    assert batch_service.inventory_valuation(stocked.id) == pytest.approx(5 * 2.0 + 10 * 3.0)

    sale = make_sale([(stocked, 6, 9.0)])
    inventory_service.ship_sale(sale.id, [{'product_id': stocked.id, 'shipped_quantity': 6}])
    # 剩 9 件都在第二批
    assert batch_service.inventory_valuation(stocked.id) == pytest.approx(9 * 3.0)

    other = make_product(purchase_price=1.5)
    inventory_service.adjust_inventory(other.id, 4, '盘盈')
    assert batch_service.inventory_valuation() == pytest.approx(9 * 3.0 + 4 * 1.5)


def test_list_batches_filters(stocked, make_product):
    other = make_product(code='BREAD')
    inventory_service.receive_manual(other.id, 3)

    assert batch_service.list_batches().total == 3
    assert batch_service.list_batches(product_id=stocked.id).total == 2
    assert batch_service.list_batches(keyword='BREAD').total == 1
    assert batch_service.list_batches(status=InventoryBatch.STATUS_EXHAUSTED).total == 0


def test_batch_numbers_are_unique(stocked):
    numbers = [b.batch_no for b in InventoryBatch.query]
    assert len(set(numbers)) == len(numbers)
    assert all(n.startswith('MILK-') for n in numbers)


def test_allocation_result_helpers():
    result = AllocationResult([BatchAllocation(1, 'A-1', 5), BatchAllocation(2, 'A-2', 2)], shortfall=1)
    assert result.allocated == 7
    assert result.batch_nos == 'A-1, A-2'
    assert result.as_pairs() == [('A-1', 5), ('A-2', 2)]
    assert AllocationResult().batch_nos == ''
