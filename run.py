import os
from stockledger import create_app, db
from stockledger.models import (
    Product, Partner,
    PurchaseOrder, PurchaseOrderItem,
    SaleOrder, SaleOrderItem,
    InventoryBatch, BatchMovement, InventoryRecord,
    CommandReceipt,
)

# 从环境变量获取配置模式
# 支持 FLASK_ENV 或 FLASK_CONFIG
config_name = os.getenv('FLASK_ENV') or os.getenv('FLASK_CONFIG') or 'default'
if config_name in ('development', 'dev'):
    config_name = 'development'

app = create_app(config_name)


@app.shell_context_processor
def make_shell_context():
    """
    配置 Flask Shell 上下文。
    'flask shell' 中可直接使用 db 与各账本模型。
    """
    return dict(
        db=db,
        app=app,
        Product=Product,
        Partner=Partner,
        PurchaseOrder=PurchaseOrder,
        PurchaseOrderItem=PurchaseOrderItem,
        SaleOrder=SaleOrder,
        SaleOrderItem=SaleOrderItem,
        InventoryBatch=InventoryBatch,
        BatchMovement=BatchMovement,
        InventoryRecord=InventoryRecord,
        CommandReceipt=CommandReceipt,
    )


if __name__ == '__main__':
    app.run(host='0.0.0.0', port=5000)
