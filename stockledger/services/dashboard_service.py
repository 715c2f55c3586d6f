"""首页统计"""
from stockledger.extensions import cache
from stockledger.models.biz import Partner, Product
from stockledger.repositories import (
    PartnerRepository, ProductRepository, PurchaseOrderRepository, SaleOrderRepository
)
from stockledger.utils.dates import month_start
from stockledger.utils.transaction import STATS_CACHE_KEY


class DashboardService:

    def __init__(self):
        self.products = ProductRepository()
        self.suppliers = PartnerRepository(Partner.TYPE_SUPPLIER)
        self.customers = PartnerRepository(Partner.TYPE_CUSTOMER)
        self.purchase_orders = PurchaseOrderRepository()
        self.sale_orders = SaleOrderRepository()

    def compute_stats(self):
        since = month_start()
        return {
            'total_products': self.products.query().count(),
            'low_stock_products': self.products.query().filter(Product.stock <= Product.min_stock).count(),
            'total_suppliers': self.suppliers.query().count(),
            'total_customers': self.customers.query().count(),
            'pending_purchases': len(self.purchase_orders.pending()),
            'pending_sales': len(self.sale_orders.pending()),
            'this_month_purchase_amount': round(
                sum(o.total_amount or 0 for o in self.purchase_orders.created_since(since)), 2),
            'this_month_sale_amount': round(
                sum(o.total_amount or 0 for o in self.sale_orders.created_since(since)), 2),
        }

    def get_stats(self):
        """带缓存，任何写命令提交后失效"""
        stats = cache.get(STATS_CACHE_KEY)
        if stats is None:
            stats = self.compute_stats()
            cache.set(STATS_CACHE_KEY, stats)
        return stats


dashboard_service = DashboardService()
