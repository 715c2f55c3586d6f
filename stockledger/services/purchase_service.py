"""采购管理服务"""
from stockledger.models.purchase import PurchaseOrder, PurchaseOrderItem
from stockledger.repositories import PurchaseOrderRepository
from .order_service import OrderService
from .party_service import supplier_service


class PurchaseService(OrderService):
    """采购单: 供应商 + 预计到货日期，按收货数量推进"""
    order_model = PurchaseOrder
    item_model = PurchaseOrderItem
    orders = PurchaseOrderRepository()
    partners = supplier_service.partners
    prefix = 'PO'

    partner_field = 'supplier'
    due_date_field = 'expected_date'
    progress_field = 'received_quantity'
    progress_amount_field = 'received_amount'
    default_price_field = 'purchase_price'


purchase_service = PurchaseService()
