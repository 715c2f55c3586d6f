# 按照依赖顺序导入
from .base import BaseModel
from .biz import Product, Partner
from .purchase import PurchaseOrder, PurchaseOrderItem
from .trade import SaleOrder, SaleOrderItem
from .stock import Provenance, Operator, InventoryBatch, BatchMovement, InventoryRecord
from .sys import CommandReceipt
