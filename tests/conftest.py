"""
Pytest configuration and fixtures for the ledger tests
每个测试使用独立的内存数据库
"""
import pytest

from stockledger import create_app
from stockledger.extensions import db as _db
from stockledger.services.catalog_service import catalog_service
from stockledger.services.party_service import customer_service, supplier_service
from stockledger.services.purchase_service import purchase_service
from stockledger.services.sales_service import sales_service


@pytest.fixture(scope='function')
def app():
    """Create Flask application for testing"""
    app = create_app('testing')

    with app.app_context():
        _db.create_all()
        yield app
        _db.session.remove()
        _db.drop_all()


@pytest.fixture(scope='function')
def db(app):
    return _db


@pytest.fixture(scope='function')
def client(app):
    """Create Flask test client"""
    return app.test_client()


@pytest.fixture
def make_product(app):
    counter = {'n': 0}

    def _make(**overrides):
        counter['n'] += 1
        data = {
            'code': f"P{counter['n']:03d}",
            'name': f"测试商品{counter['n']}",
            'unit': '件',
            'purchase_price': 10.0,
            'sale_price': 15.0,
            'min_stock': 5,
        }
        data.update(overrides)
        return catalog_service.create_product(data)
    return _make


@pytest.fixture
def supplier(app):
    return supplier_service.create({'name': '华联商贸有限公司', 'contact': '张三', 'phone': '13800138000'})


@pytest.fixture
def customer(app):
    return customer_service.create({'name': '便民超市', 'contact': '李四', 'credit': 5000})


@pytest.fixture
def make_purchase(supplier):
    """lines: [(product, quantity, price), ...]"""
    def _make(lines, **kwargs):
        return purchase_service.create_order(
            supplier.id,
            [{'product_id': p.id, 'quantity': qty, 'price': price} for p, qty, price in lines],
            **kwargs
        )
    return _make


@pytest.fixture
def make_sale(customer):
    """lines: [(product, quantity, price), ...]"""
    def _make(lines, **kwargs):
        return sales_service.create_order(
            customer.id,
            [{'product_id': p.id, 'quantity': qty, 'price': price} for p, qty, price in lines],
            **kwargs
        )
    return _make

