"""销售管理服务"""
from stockledger.models.trade import SaleOrder, SaleOrderItem
from stockledger.repositories import SaleOrderRepository
from .order_service import OrderService
from .party_service import customer_service


class SalesService(OrderService):
    """销售单: 客户 + 交货日期，按发货数量推进"""
    order_model = SaleOrder
    item_model = SaleOrderItem
    orders = SaleOrderRepository()
    partners = customer_service.partners
    prefix = 'SO'

    partner_field = 'customer'
    due_date_field = 'delivery_date'
    progress_field = 'shipped_quantity'
    progress_amount_field = 'shipped_amount'
    default_price_field = 'sale_price'


sales_service = SalesService()
