"""
HTTP 接口测试
只通过 test client 读写，每个请求使用独立的会话
"""
from urllib.parse import quote

import pytest


def create_product(client, **overrides):
    data = {'code': 'TEA-01', 'name': '龙井茶', 'unit': '盒', 'purchase_price': 20.0, 'sale_price': 35.0,
            'min_stock': 2}
    data.update(overrides)
    resp = client.post('/api/products', json=data)
    assert resp.status_code == 201, resp.get_json()
    return resp.get_json()['data']


def create_partner(client, kind, name):
    resp = client.post(f'/api/{kind}', json={'name': name, 'phone': '13800138000'})
    assert resp.status_code == 201, resp.get_json()
    return resp.get_json()['data']


@pytest.fixture
def trade_setup(client):
    """商品 + 供应商 + 客户"""
    return {
        'product': create_product(client),
        'supplier': create_partner(client, 'suppliers', '杭州茶业有限公司'),
        'customer': create_partner(client, 'customers', '西湖茶馆'),
    }


def test_index(client):
    resp = client.get('/api/')
    assert resp.status_code == 200
    assert resp.get_json()['success'] is True


def test_unknown_route_returns_json_404(client):
    resp = client.get('/api/nothing-here')
    assert resp.status_code == 404
    body = resp.get_json()
    assert body['success'] is False
    assert body['code'] == 404


def test_ledger_error_shape(client):
    resp = client.get('/api/products/999')
    assert resp.status_code == 404
    body = resp.get_json()
    assert body['error'] == 'ProductNotFound'
    assert body['success'] is False
    assert body['id'] == 999


def test_create_product_with_opening_stock(client):
    product = create_product(client, code='CUP-01', name='茶杯', opening_stock=6)
    assert product['stock'] == 6

    detail = client.get(f"/api/products/{product['id']}").get_json()['data']
    assert detail['stock_value'] == pytest.approx(6 * 20.0)

    records = client.get(f"/api/products/{product['id']}/records").get_json()
    assert records['total'] == 1
    assert records['data'][0]['reason'] == '期初库存'
    assert records['data'][0]['type'] == 'adjust'

    batches = client.get(f"/api/products/{product['id']}/batches").get_json()['data']
    assert [b['remaining_quantity'] for b in batches] == [6]
    assert batches[0]['source_type'] == 'adjustment'


def test_product_form_validation(client):
    resp = client.post('/api/products', json={'code': 'bad code!', 'name': 'x'})
    assert resp.status_code == 400
    assert 'code' in resp.get_json()['errors']

    resp = client.post('/api/products', json={'name': '缺编码'})
    assert resp.status_code == 400


def test_patch_product_cannot_touch_stock(client):
    product = create_product(client)
    resp = client.patch(f"/api/products/{product['id']}", json={'stock': 99})
    assert resp.status_code == 400

    resp = client.patch(f"/api/products/{product['id']}", json={'sale_price': 40})
    assert resp.status_code == 200
    assert resp.get_json()['data']['sale_price'] == 40.0


def test_lookup_by_barcode(client):
    create_product(client, barcode='6920000000001')
    resp = client.get('/api/products/lookup', query_string={'code': '6920000000001'})
    assert resp.status_code == 200
    assert resp.get_json()['data']['code'] == 'TEA-01'

    assert client.get('/api/products/lookup', query_string={'code': 'nope'}).status_code == 404


def test_full_purchase_and_sale_flow(client, trade_setup):
    product, supplier, customer = trade_setup['product'], trade_setup['supplier'], trade_setup['customer']

    resp = client.post('/api/purchase-orders', json={
        'supplier_id': supplier['id'],
        'items': [{'product_id': product['id'], 'quantity': 20, 'price': 18.0}],
    })
    assert resp.status_code == 201
    po = resp.get_json()['data']
    assert po['status'] == 'pending'
    assert po['total_amount'] == 360.0

    pending = client.get('/api/purchase-orders/pending').get_json()['data']
    assert [o['id'] for o in pending] == [po['id']]

    resp = client.post(f"/api/purchase-orders/{po['id']}/receive",
                       json={'items': [{'product_id': product['id'], 'received_quantity': 20}]})
    assert resp.status_code == 200
    assert resp.get_json()['data']['status'] == 'received'

    resp = client.post('/api/sale-orders', json={
        'customer_id': customer['id'],
        'items': [{'product_id': product['id'], 'quantity': 15}],
    })
    assert resp.status_code == 201
    so = resp.get_json()['data']
    assert so['items'][0]['price'] == 35.0

    resp = client.post(f"/api/sale-orders/{so['id']}/ship",
                       json={'items': [{'product_id': product['id'], 'shipped_quantity': 15}]})
    assert resp.status_code == 200
    assert resp.get_json()['data']['status'] == 'completed'

    consumed = client.get(f"/api/sale-orders/{so['id']}/items/{product['id']}/batches").get_json()['data']
    assert [c['quantity'] for c in consumed] == [15]

    detail = client.get(f"/api/products/{product['id']}").get_json()['data']
    assert detail['stock'] == 5

    audit = client.get('/api/inventory/audit').get_json()['data']
    assert audit == {'consistent': True, 'violations': []}


def test_ship_insufficient_stock_returns_409(client, trade_setup):
    product, customer = trade_setup['product'], trade_setup['customer']
    so = client.post('/api/sale-orders', json={
        'customer_id': customer['id'],
        'items': [{'product_id': product['id'], 'quantity': 3}],
    }).get_json()['data']

    resp = client.post(f"/api/sale-orders/{so['id']}/ship",
                       json={'items': [{'product_id': product['id'], 'shipped_quantity': 3}]})
    assert resp.status_code == 409
    body = resp.get_json()
    assert body['error'] == 'InsufficientStock'
    assert body['available'] == 0


def test_adjust_endpoint(client):
    product = create_product(client)

    resp = client.post('/api/inventory/adjust', json={'product_id': product['id'], 'delta': 0})
    assert resp.status_code == 400

    resp = client.post('/api/inventory/adjust', json={'product_id': product['id'], 'delta': -1})
    assert resp.status_code == 409
    assert resp.get_json()['error'] == 'NegativeStockError'

    resp = client.post('/api/inventory/adjust', json={'product_id': product['id'], 'delta': 4, 'reason': '盘盈'},
                       headers={'X-Operator-Id': 'u7', 'X-Operator-Name': quote('王仓管')})
    assert resp.status_code == 201
    data = resp.get_json()['data']
    assert data['product']['stock'] == 4
    assert data['record']['reason'] == '盘盈'
    assert data['record']['operator_id'] == 'u7'
    assert data['record']['operator_name'] == '王仓管'


def test_adjust_idempotency_header(client):
    product = create_product(client)
    payload = {'product_id': product['id'], 'delta': 3}
    headers = {'Idempotency-Key': 'adj-42'}

    first = client.post('/api/inventory/adjust', json=payload, headers=headers).get_json()['data']
    second = client.post('/api/inventory/adjust', json=payload, headers=headers).get_json()['data']

    assert first['record']['id'] == second['record']['id']
    assert second['product']['stock'] == 3


def test_manual_receive_endpoint(client):
    product = create_product(client)
    resp = client.post('/api/inventory/receive', json={'product_id': product['id'], 'quantity': 5,
                                                      'unit_cost': 12.5})
    assert resp.status_code == 201
    data = resp.get_json()['data']
    assert data['record']['reason'] == '手动入库'
    assert data['product']['stock'] == 5

    valuation = client.get('/api/inventory/valuation', query_string={'product_id': product['id']})
    assert valuation.get_json()['data']['total_value'] == 62.5

    resp = client.post('/api/inventory/receive', json={'product_id': product['id'], 'quantity': 0})
    assert resp.status_code == 400


def test_records_batches_and_movements(client):
    product = create_product(client, opening_stock=3)
    client.post('/api/inventory/adjust', json={'product_id': product['id'], 'delta': -1})

    records = client.get('/api/inventory/records', query_string={'product_id': product['id']}).get_json()
    # 最新的在前
    assert [r['quantity'] for r in records['data']] == [-1, 3]

    batches = client.get('/api/inventory/batches').get_json()
    assert batches['total'] == 1
    batch_id = batches['data'][0]['id']
    assert client.get(f'/api/inventory/batches/{batch_id}').get_json()['data']['remaining_quantity'] == 2

    movements = client.get(f'/api/inventory/batches/{batch_id}/movements').get_json()['data']
    assert [(m['type'], m['quantity']) for m in movements] == [('in', 3), ('out', 1)]

    all_moves = client.get('/api/inventory/movements', query_string={'product_id': product['id']})
    assert len(all_moves.get_json()['data']) == 2


def test_expire_endpoint(client, trade_setup):
    product, supplier = trade_setup['product'], trade_setup['supplier']
    po = client.post('/api/purchase-orders', json={
        'supplier_id': supplier['id'],
        'items': [{'product_id': product['id'], 'quantity': 4, 'price': 18.0}],
    }).get_json()['data']
    client.post(f"/api/purchase-orders/{po['id']}/receive", json={
        'items': [{'product_id': product['id'], 'received_quantity': 4, 'expiry_date': '2024-01-31'}],
    })

    resp = client.post('/api/inventory/expire', json={'as_of': '2024-02-01'})
    assert resp.status_code == 200
    expired = resp.get_json()['data']
    assert [b['status'] for b in expired] == ['expired']

    detail = client.get(f"/api/products/{product['id']}").get_json()['data']
    assert detail['stock'] == 0
    assert client.get('/api/inventory/audit').get_json()['data']['consistent'] is True


def test_partner_endpoints(client):
    supplier = create_partner(client, 'suppliers', '甲')
    assert supplier['code'].startswith('SUP')

    assert client.get(f"/api/customers/{supplier['id']}").status_code == 404
    resp = client.post('/api/suppliers', json={'name': '乙', 'phone': '12345'})
    assert resp.status_code == 400

    listing = client.get('/api/suppliers').get_json()
    assert listing['total'] == 1


def test_dashboard(client, trade_setup):
    client.post('/api/purchase-orders', json={
        'supplier_id': trade_setup['supplier']['id'],
        'items': [{'product_id': trade_setup['product']['id'], 'quantity': 2, 'price': 10.0}],
    })
    stats = client.get('/api/dashboard').get_json()['data']
    assert stats['total_products'] == 1
    assert stats['total_suppliers'] == 1
    assert stats['total_customers'] == 1
    assert stats['pending_purchases'] == 1
    assert stats['this_month_purchase_amount'] == 20.0
    # 新商品库存 0 <= 最低库存 2
    assert stats['low_stock_products'] == 1


@pytest.mark.parametrize('items', [
    [5],
    'abc',
    {'product_id': 1, 'quantity': 1},
    [{'product_id': 1, 'quantity': 1, 'received_quantity': 1, 'shipped_quantity': 1}, 'x'],
])
def test_malformed_items_rejected(client, trade_setup, items):
    product, supplier, customer = trade_setup['product'], trade_setup['supplier'], trade_setup['customer']

    resp = client.post('/api/purchase-orders', json={'supplier_id': supplier['id'], 'items': items})
    assert resp.status_code == 400
    assert resp.get_json()['error'] == 'ValidationError'

    po = client.post('/api/purchase-orders', json={
        'supplier_id': supplier['id'],
        'items': [{'product_id': product['id'], 'quantity': 5, 'price': 18.0}],
    }).get_json()['data']
    resp = client.post(f"/api/purchase-orders/{po['id']}/receive", json={'items': items})
    assert resp.status_code == 400

    so = client.post('/api/sale-orders', json={
        'customer_id': customer['id'],
        'items': [{'product_id': product['id'], 'quantity': 1}],
    }).get_json()['data']
    resp = client.post(f"/api/sale-orders/{so['id']}/ship", json={'items': items})
    assert resp.status_code == 400

    # 被拒绝的请求不留下任何单据或库存变动
    assert client.get('/api/purchase-orders').get_json()['total'] == 1
    assert client.get(f"/api/products/{product['id']}").get_json()['data']['stock'] == 0
    assert client.get('/api/inventory/records').get_json()['total'] == 0


def test_patch_product_code_is_validated(client):
    product = create_product(client)
    for code in ('TEA,01', 'TEA 01'):
        resp = client.patch(f"/api/products/{product['id']}", json={'code': code})
        assert resp.status_code == 400
        assert resp.get_json()['field'] == 'code'
    assert client.get(f"/api/products/{product['id']}").get_json()['data']['code'] == 'TEA-01'
