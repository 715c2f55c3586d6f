"""商品目录服务"""
import logging

from stockledger.exceptions import ProductNotFound, ValidationError
from stockledger.models.biz import Product
from stockledger.repositories import ProductRepository
from stockledger.utils.transaction import atomic
from stockledger.utils.validators import check_code, to_int, to_price

logger = logging.getLogger(__name__)

TEXT_FIELDS = ('code', 'barcode', 'name', 'category', 'specification', 'unit')
PRICE_FIELDS = ('purchase_price', 'sale_price')


class CatalogService:
    """
    商品主数据
    库存字段不对外开放修改，只有库存变动引擎通过 adjust_stock 写入
    """

    def __init__(self, products=None):
        self.products = products or ProductRepository()

    def _clean(self, data, partial=False):
        if 'stock' in data:
            raise ValidationError("库存不能直接修改，请使用入库、出库或库存调整", payload={'field': 'stock'})

        cleaned = {}
        for field in TEXT_FIELDS:
            if field in data:
                value = data[field]
                cleaned[field] = value.strip() if isinstance(value, str) else value
        # 空条码视为未设置，避免唯一约束冲突
        if 'barcode' in cleaned and not cleaned['barcode']:
            cleaned['barcode'] = None

        for field in PRICE_FIELDS:
            if field in data:
                cleaned[field] = to_price(data[field], field)
        if 'min_stock' in data:
            cleaned['min_stock'] = to_int(data['min_stock'] or 0, 'min_stock', minimum=0)
        if 'status' in data:
            if data['status'] not in Product.STATUSES:
                raise ValidationError(f"无效的商品状态: {data['status']}", payload={'field': 'status'})
            cleaned['status'] = data['status']

        if not partial:
            for field in ('code', 'name'):
                if not cleaned.get(field):
                    raise ValidationError(f"缺少必填字段: {field}", payload={'field': field})
        elif any(field in cleaned and not cleaned[field] for field in ('code', 'name')):
            raise ValidationError("编码和名称不能为空")
        if cleaned.get('code'):
            check_code(cleaned['code'])
        return cleaned

    def _check_unique(self, cleaned, exclude_id=None):
        if cleaned.get('code') and self.products.code_exists(cleaned['code'], exclude_id):
            raise ValidationError(f"商品编码已存在: {cleaned['code']}", payload={'field': 'code'})
        if cleaned.get('barcode') and self.products.barcode_exists(cleaned['barcode'], exclude_id):
            raise ValidationError(f"条码已存在: {cleaned['barcode']}", payload={'field': 'barcode'})

    def create_product(self, data):
        """新建商品，初始库存恒为 0"""
        cleaned = self._clean(data)
        with atomic():
            self._check_unique(cleaned)
            product = self.products.add(Product(stock=0, **cleaned))
            self.products.flush()
        logger.info('新建商品 %s (%s)', product.code, product.name)
        return product

    def update_product(self, product_id, patch):
        cleaned = self._clean(patch, partial=True)
        with atomic():
            product = self.products.get_or_404(product_id)
            self._check_unique(cleaned, exclude_id=product.id)
            for field, value in cleaned.items():
                setattr(product, field, value)
        logger.info('更新商品 %s: %s', product_id, ', '.join(sorted(cleaned)) or '-')
        return product

    def delete_product(self, product_id):
        with atomic():
            product = self.products.get_or_404(product_id)
            self.products.remove(product)
        logger.info('删除商品 %s (剩余库存 %s)', product_id, product.stock)
        return product

    def toggle_status(self, product_id):
        """上架 / 下架"""
        with atomic():
            product = self.products.get_or_404(product_id)
            product.status = (Product.STATUS_INACTIVE if product.status == Product.STATUS_ACTIVE
                              else Product.STATUS_ACTIVE)
        return product

    def adjust_stock(self, product_id, new_stock):
        """
        写入库存绝对值，返回 (before, after)
        仅供库存变动引擎在其事务内调用，不自行提交
        """
        return self.products.adjust_stock(product_id, new_stock)

    def get_product(self, product_id):
        return self.products.get_or_404(product_id)

    def list_products(self, keyword=None, status=None, category=None, page=1, per_page=20):
        query = self.products.search(keyword=keyword, status=status, category=category)
        return self.products.paginate(query, page, per_page)

    def find_by_scan(self, code):
        """
        扫码查找商品
        先按条码匹配，再按商品编码匹配
        """
        code = (code or '').strip()
        if not code:
            raise ValidationError("扫码内容为空", payload={'field': 'code'})
        product = self.products.find_by_barcode(code) or self.products.find_by_code(code)
        if product is None:
            raise ProductNotFound(f"未找到条码或编码为 {code} 的商品", payload={'code': code})
        return product

    def low_stock_products(self):
        return self.products.low_stock()


# 全局单例
catalog_service = CatalogService()
