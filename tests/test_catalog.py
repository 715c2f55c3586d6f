import pytest

from stockledger.exceptions import NegativeStockError, ProductNotFound, ValidationError
from stockledger.models.biz import Product
from stockledger.services.catalog_service import catalog_service


def test_create_product_starts_with_zero_stock(make_product):
    product = make_product(code='RICE-5KG', name='东北大米', purchase_price='32.5')

    assert product.id is not None
    assert product.stock == 0
    assert product.purchase_price == 32.5
    assert product.status == Product.STATUS_ACTIVE


def test_create_product_rejects_stock_field(app):
    with pytest.raises(ValidationError):
        catalog_service.create_product({'code': 'X1', 'name': '矿泉水', 'stock': 100})
    assert Product.query.count() == 0


def test_create_product_requires_code_and_name(app):
    with pytest.raises(ValidationError):
        catalog_service.create_product({'name': '没有编码'})
    with pytest.raises(ValidationError):
        catalog_service.create_product({'code': 'NO-NAME'})


def test_duplicate_code_and_barcode_rejected(make_product):
    make_product(code='A001', barcode='6901234567890')

    with pytest.raises(ValidationError) as exc:
        make_product(code='A001')
    assert exc.value.payload['field'] == 'code'

    with pytest.raises(ValidationError) as exc:
        make_product(code='A002', barcode='6901234567890')
    assert exc.value.payload['field'] == 'barcode'


def test_empty_barcode_is_stored_as_null(make_product):
    first = make_product(barcode='')
    second = make_product(barcode='  ')
    assert first.barcode is None
    assert second.barcode is None


@pytest.mark.parametrize('code', ['A 1', 'A,1', 'A/1', 'C' * 65, 12345])
def test_create_product_rejects_malformed_code(app, code):
    with pytest.raises(ValidationError) as exc:
        catalog_service.create_product({'code': code, 'name': '矿泉水'})
    assert exc.value.payload['field'] == 'code'
    assert Product.query.count() == 0


def test_update_product_rejects_malformed_code(make_product):
    product = make_product(code='A001')
    with pytest.raises(ValidationError):
        catalog_service.update_product(product.id, {'code': 'A001, A002'})
    assert catalog_service.get_product(product.id).code == 'A001'


def test_update_product_cannot_patch_stock(make_product):
    product = make_product()
    with pytest.raises(ValidationError):
        catalog_service.update_product(product.id, {'stock': 50})

    updated = catalog_service.update_product(product.id, {'name': '新名称', 'sale_price': 20})
    assert updated.name == '新名称'
    assert updated.sale_price == 20.0
    assert updated.stock == 0


def test_update_product_code_must_stay_unique(make_product):
    make_product(code='A001')
    other = make_product(code='A002')
    with pytest.raises(ValidationError):
        catalog_service.update_product(other.id, {'code': 'A001'})


def test_update_unknown_product(app):
    with pytest.raises(ProductNotFound):
        catalog_service.update_product(999, {'name': 'x'})


def test_delete_product_is_soft(make_product, db):
    product = make_product()
    catalog_service.delete_product(product.id)

    with pytest.raises(ProductNotFound):
        catalog_service.get_product(product.id)
    row = db.session.get(Product, product.id)
    assert row is not None and row.is_deleted


def test_toggle_status(make_product):
    product = make_product()
    assert catalog_service.toggle_status(product.id).status == Product.STATUS_INACTIVE
    assert catalog_service.toggle_status(product.id).status == Product.STATUS_ACTIVE


def test_find_by_scan_prefers_barcode_over_code(make_product):
    by_barcode = make_product(code='C-100', barcode='SCAN01')
    by_code = make_product(code='SCAN01', barcode='6900000000001')

    assert catalog_service.find_by_scan('SCAN01').id == by_barcode.id
    assert catalog_service.find_by_scan('6900000000001').id == by_code.id
    assert catalog_service.find_by_scan(' C-100 ').id == by_barcode.id


def test_find_by_scan_unknown_code(make_product):
    make_product()
    with pytest.raises(ProductNotFound):
        catalog_service.find_by_scan('nothing-here')
    with pytest.raises(ValidationError):
        catalog_service.find_by_scan('')


def test_low_stock_products(make_product):
    low = make_product(min_stock=5)
    boundary = make_product(min_stock=0)

    result = catalog_service.low_stock_products()
    # stock == min_stock 也算低库存
    assert {p.id for p in result} == {low.id, boundary.id}
    assert all(p.is_low_stock for p in result)


def test_list_products_filters(make_product):
    make_product(name='可口可乐', category='饮料')
    make_product(name='百事可乐', category='饮料')
    make_product(name='薯片', category='零食')

    page = catalog_service.list_products(keyword='可乐')
    assert page.total == 2
    page = catalog_service.list_products(category='零食')
    assert [p.name for p in page.items] == ['薯片']


def test_adjust_stock_primitive_rejects_negative(make_product, db):
    product = make_product()
    assert catalog_service.adjust_stock(product.id, 7) == (0, 7)
    with pytest.raises(NegativeStockError):
        catalog_service.adjust_stock(product.id, -1)
    db.session.rollback()
    with pytest.raises(ProductNotFound):
        catalog_service.adjust_stock(12345, 1)
