"""
订单账本公共逻辑
采购单与销售单结构对称，子类只声明字段名差异
"""
import logging

from stockledger.exceptions import OrderStateError, ValidationError
from stockledger.repositories import ProductRepository
from stockledger.utils import numbering
from stockledger.utils.dates import parse_date
from stockledger.utils.transaction import atomic
from stockledger.utils.validators import to_int, to_price

logger = logging.getLogger(__name__)


class OrderService:
    order_model = None
    item_model = None
    orders = None
    partners = None
    prefix = None

    partner_field = None        # supplier / customer
    due_date_field = None       # expected_date / delivery_date
    progress_field = None       # received_quantity / shipped_quantity
    progress_amount_field = None  # received_amount / shipped_amount
    default_price_field = None  # 未填写单价时取商品的 purchase_price / sale_price

    def __init__(self, products=None):
        self.products = products or ProductRepository()

    @property
    def label(self):
        return self.orders.label

    def generate_order_no(self):
        """PO-20240101-001 / SO-20240101-001"""
        return numbering.order_no(self.prefix)

    def _partner(self, partner_id):
        if partner_id in (None, ''):
            raise ValidationError(f"缺少{self.partners.label}", payload={'field': f'{self.partner_field}_id'})
        return self.partners.get_or_404(to_int(partner_id, f'{self.partner_field}_id'))

    def _build_items(self, order, items):
        """
        生成订单明细并返回订单总额
        :param items: [{'product_id': 1, 'quantity': 10, 'price': 5.0}, ...]
        """
        if not isinstance(items, list):
            raise ValidationError("明细必须是数组", payload={'field': 'items'})
        if not items:
            raise ValidationError("订单至少需要一条明细", payload={'field': 'items'})

        seen = set()
        total = 0.0
        for index, data in enumerate(items):
            if not isinstance(data, dict):
                raise ValidationError(f"明细格式错误: items[{index}]", payload={'field': f'items[{index}]'})
            product_id = to_int(data.get('product_id'), f'items[{index}].product_id')
            quantity = to_int(data.get('quantity'), f'items[{index}].quantity', minimum=1)
            if product_id in seen:
                raise ValidationError(f"商品重复: {product_id}，请合并为一行", payload={'product_id': product_id})
            seen.add(product_id)

            product = self.products.get_or_404(product_id)
            if data.get('price') in (None, ''):
                price = getattr(product, self.default_price_field) or 0.0
            else:
                price = to_price(data['price'], f'items[{index}].price')

            amount = quantity * price
            order.items.append(self.item_model(
                product_id=product.id,
                product_name=product.name,
                quantity=quantity,
                price=price,
                amount=amount,
                **{self.progress_field: 0}
            ))
            total += amount
        return total

    def has_progress(self, order):
        """是否已有收货 / 发货"""
        return (getattr(order, self.progress_amount_field) or 0) > 0 or any(
            getattr(item, self.progress_field) > 0 for item in order.items
        )

    def create_order(self, partner_id, items, date_info=None, remark=None, status=None, order_no=None):
        """
        创建订单
        :param date_info: {'order_date': ..., expected_date / delivery_date: ...}
        """
        date_info = date_info or {}
        status = status or self.order_model.STATUS_PENDING
        if status not in self.order_model.STATUSES:
            raise ValidationError(f"无效的订单状态: {status}", payload={'field': 'status'})

        with atomic():
            partner = self._partner(partner_id)
            if order_no:
                if self.orders.order_no_exists(order_no):
                    raise ValidationError(f"单号已存在: {order_no}", payload={'field': 'order_no'})
            else:
                order_no = numbering.generate_unique(self.generate_order_no, self.orders.order_no_exists)

            order = self.order_model(
                order_no=order_no,
                order_date=parse_date(date_info.get('order_date'), 'order_date'),
                status=status,
                remark=remark,
                **{
                    f'{self.partner_field}_id': partner.id,
                    f'{self.partner_field}_name': partner.name,
                    self.due_date_field: parse_date(date_info.get(self.due_date_field), self.due_date_field),
                    self.progress_amount_field: 0.0,
                }
            )
            order.total_amount = self._build_items(order, items)
            self.orders.add(order)
            self.orders.flush()

        logger.info('创建%s %s: %s 行, 合计 %.2f', self.label, order.order_no, len(order.items), order.total_amount)
        return order

    def edit_order(self, order_id, patch):
        """
        覆盖订单头字段 (状态不做流转校验)
        替换明细仅限尚未收货 / 发货的订单，并重算总额
        """
        with atomic():
            order = self.orders.get_or_404(order_id)

            partner_key = f'{self.partner_field}_id'
            if patch.get(partner_key) not in (None, ''):
                partner = self._partner(patch[partner_key])
                setattr(order, partner_key, partner.id)
                setattr(order, f'{self.partner_field}_name', partner.name)

            for field in ('order_date', self.due_date_field):
                if field in patch:
                    setattr(order, field, parse_date(patch[field], field))
            if 'remark' in patch:
                order.remark = patch['remark']
            if patch.get('status'):
                if patch['status'] not in self.order_model.STATUSES:
                    raise ValidationError(f"无效的订单状态: {patch['status']}", payload={'field': 'status'})
                order.status = patch['status']

            if 'items' in patch:
                if self.has_progress(order):
                    raise OrderStateError(f"{self.label} {order.order_no} 已有出入库记录，不能修改明细",
                                          payload={'order_no': order.order_no})
                order.items.clear()
                self.orders.flush()
                order.total_amount = self._build_items(order, patch['items'])

        logger.info('编辑%s %s', self.label, order.order_no)
        return order

    def delete_order(self, order_id):
        """已有出入库的订单不可删除，否则软删除"""
        with atomic():
            order = self.orders.get_or_404(order_id)
            if self.has_progress(order):
                raise OrderStateError(f"{self.label} {order.order_no} 已有出入库记录，不能删除",
                                      payload={'order_no': order.order_no})
            self.orders.remove(order)
        logger.info('删除%s %s', self.label, order.order_no)
        return order

    def get_order(self, order_id):
        return self.orders.get_or_404(order_id)

    def list_orders(self, status=None, partner_id=None, keyword=None, page=1, per_page=20):
        query = self.orders.search(status=status, partner_id=partner_id, keyword=keyword)
        return self.orders.paginate(query, page, per_page)

    def pending_orders(self):
        """待处理 (pending / confirmed) 的订单"""
        return self.orders.pending()
