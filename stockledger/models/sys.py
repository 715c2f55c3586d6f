from stockledger.extensions import db
from .base import BaseModel


class CommandReceipt(BaseModel):
    """
    幂等回执
    调用方携带幂等键重试时，据此跳过已执行过的库存命令
    """
    __tablename__ = 'sys_command_receipts'

    key = db.Column(db.String(128), unique=True, index=True, nullable=False)
    command = db.Column(db.String(32), nullable=False)  # receive_purchase / ship_sale / adjust_inventory
    target_id = db.Column(db.Integer)  # 订单 id 或调整流水 id
