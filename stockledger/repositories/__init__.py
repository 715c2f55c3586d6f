from .base import BaseRepository
from .catalog import ProductRepository
from .party import PartnerRepository
from .orders import PurchaseOrderRepository, SaleOrderRepository
from .batches import BatchRepository
from .movements import MovementLogRepository, CommandReceiptRepository
