from datetime import datetime

from stockledger.exceptions import NegativeStockError, ProductNotFound
from stockledger.models.biz import Product
from .base import BaseRepository


class ProductRepository(BaseRepository):
    model = Product
    not_found = ProductNotFound
    label = '商品'

    def code_exists(self, code, exclude_id=None):
        query = Product.query.filter(Product.code == code)
        if exclude_id:
            query = query.filter(Product.id != exclude_id)
        return query.first() is not None

    def barcode_exists(self, barcode, exclude_id=None):
        query = Product.query.filter(Product.barcode == barcode)
        if exclude_id:
            query = query.filter(Product.id != exclude_id)
        return query.first() is not None

    def find_by_barcode(self, barcode):
        return self.query().filter(Product.barcode == barcode).first()

    def find_by_code(self, code):
        return self.query().filter(Product.code == code).first()

    def search(self, keyword=None, status=None, category=None):
        query = self.query()
        if keyword:
            like = f"%{keyword}%"
            query = query.filter(
                Product.name.ilike(like) | Product.code.ilike(like) | Product.barcode.ilike(like)
            )
        if status:
            query = query.filter(Product.status == status)
        if category:
            query = query.filter(Product.category == category)
        return query.order_by(Product.id.asc())

    def low_stock(self):
        return self.query().filter(Product.stock <= Product.min_stock).order_by(Product.stock.asc()).all()

    def lock_many(self, product_ids, include_deleted=False):
        """
        对一组商品加行锁并返回 {id: Product}
        任一 id 不存在即抛出 ProductNotFound
        """
        ids = sorted(set(product_ids))
        if not ids:
            return {}
        query = Product.query.filter(Product.id.in_(ids))
        if not include_deleted:
            query = query.filter(Product.is_deleted.is_(False))
        rows = query.order_by(Product.id).with_for_update().all()
        found = {p.id: p for p in rows}
        missing = [pid for pid in ids if pid not in found]
        if missing:
            raise ProductNotFound(f"商品不存在: {missing[0]}", payload={'id': missing[0]})
        return found

    def adjust_stock(self, product_id, new_stock):
        """
        写入新的库存值，返回 (before, after)
        增减量由库存变动引擎决定，这里不做计算
        """
        # 已删除商品的过期批次仍需冲减库存
        product = self.get(product_id, include_deleted=True)
        if product is None:
            raise ProductNotFound(f"商品不存在: {product_id}", payload={'id': product_id})
        before = product.stock or 0
        if new_stock < 0:
            raise NegativeStockError(product.name, before - new_stock, before)
        product.stock = new_stock
        product.updated_at = datetime.utcnow()
        return before, new_stock
