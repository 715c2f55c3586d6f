import random
from datetime import date, timedelta

import click
from flask.cli import with_appcontext

from stockledger.exceptions import LedgerException
from stockledger.extensions import db
from stockledger.models.biz import Partner, Product
from stockledger.models.purchase import PurchaseOrder
from stockledger.models.stock import BatchMovement, InventoryBatch, InventoryRecord, Operator
from stockledger.models.trade import SaleOrder
from stockledger.services.audit_service import audit_service
from stockledger.services.catalog_service import catalog_service
from stockledger.services.inventory_service import inventory_service
from stockledger.services.party_service import customer_service, supplier_service
from stockledger.services.purchase_service import purchase_service
from stockledger.services.sales_service import sales_service
from stockledger.utils.fake_gen import fake

FORGE_OPERATOR = Operator(id='forge', name='演示数据')


@click.command('status')
@with_appcontext
def status():
    """
    [验证指令] 查看当前数据库中的数据统计。
    """
    click.echo(click.style('📊 库存账本数据统计:', fg='cyan', bold=True))

    p_count = Product.query.filter_by(is_deleted=False).count()
    click.echo(f" - 商品 (Products): \t{p_count}")
    click.echo(f" - 供应商 (Suppliers): \t{Partner.query.filter_by(type=Partner.TYPE_SUPPLIER).count()}")
    click.echo(f" - 客户 (Customers): \t{Partner.query.filter_by(type=Partner.TYPE_CUSTOMER).count()}")
    click.echo(f" - 采购单 (Purchases): \t{PurchaseOrder.query.count()}")
    click.echo(f" - 销售单 (Sales): \t{SaleOrder.query.count()}")
    click.echo(f" - 批次 (Batches): \t{InventoryBatch.query.count()}")
    click.echo(f" - 批次流水 (Moves): \t{BatchMovement.query.count()}")
    click.echo(f" - 库存流水 (Records): \t{InventoryRecord.query.count()}")

    if p_count > 0:
        click.echo(click.style('✔ 数据库连接正常，数据已存在。', fg='green'))
    else:
        click.echo(click.style('⚠ 数据库为空，请运行 flask forge 生成数据。', fg='yellow'))


@click.command('check-ledger')
@with_appcontext
def check_ledger():
    """校验 库存 == 批次剩余之和 等账本不变量"""
    violations = audit_service.verify()
    if not violations:
        click.echo(click.style('✔ 账本一致', fg='green'))
        return
    for v in violations:
        click.echo(click.style(f"✘ [{v.rule}] {v.entity}#{v.entity_id}: {v.detail}", fg='red'))
    raise click.exceptions.Exit(1)


@click.command('expire-batches')
@click.option('--as-of', default=None, help='截止日期 YYYY-MM-DD (默认今天)')
@with_appcontext
def expire_batches(as_of):
    """把过期日早于截止日期的批次标记为 expired 并冲减库存"""
    expired = inventory_service.expire_batches(as_of)
    for batch in expired:
        click.echo(f" - {batch.batch_no} ({batch.product_name}) 剩余 {batch.remaining_quantity}")
    click.echo(click.style(f'✔ {len(expired)} 个批次已过期', fg='green'))


@click.command('forge')
@click.option('--scale', default=1, help='数据规模倍数 (默认1倍)')
@with_appcontext
def forge(scale):
    """
    [演示数据] 重建库表并生成商品、往来单位和订单。
    所有库存都经由收货 / 发货命令入账，生成后账本保持一致。
    警告：这将清除数据库中的现有数据！
    """
    click.echo(click.style(f'⚡ 初始化演示数据 (规模: {scale}x)...', fg='cyan', bold=True))

    # 1. 清除旧数据
    db.drop_all()
    db.create_all()

    # 2. 往来单位
    click.echo('正在创建供应商与客户...')
    suppliers, customers = init_partners(scale)

    # 3. 商品
    click.echo('正在创建商品目录...')
    products = init_products(scale)

    # 4. 采购收货
    click.echo('正在生成采购单并收货入库...')
    init_purchases(suppliers, products, scale)

    # 5. 销售发货
    click.echo('正在生成销售单并发货...')
    init_sales(customers, products, scale)

    click.echo(click.style('✔ 演示数据构建完成！', fg='green', bold=True))
    violations = audit_service.verify()
    if violations:
        click.echo(click.style(f'⚠ 账本校验发现 {len(violations)} 处不一致', fg='yellow'))


def init_partners(scale=1):
    suppliers = []
    for _ in range(5 * scale):
        suppliers.append(supplier_service.create({
            'name': fake.trade_company(),
            'contact': fake.name(),
            'phone': fake.phone_number(),
            'address': fake.address(),
        }))
    customers = []
    for i in range(10 * scale):
        customers.append(customer_service.create({
            'name': fake.trade_company(),
            'contact': fake.name(),
            'phone': fake.phone_number(),
            'email': f"customer{i}@example.com",
            'credit': random.choice([0, 5000, 20000]),
        }))
    click.echo(f'  ✓ 已创建 {len(suppliers)} 个供应商, {len(customers)} 个客户')
    return suppliers, customers


def init_products(scale=1):
    products = []
    for i in range(20 * scale):
        name, category, unit = fake.trade_product()
        cost = round(random.uniform(2, 80), 2)
        products.append(catalog_service.create_product({
            'code': f"P{i + 1:05d}",
            'barcode': fake.ean13(),
            'name': name,
            'category': category,
            'specification': fake.trade_specification(),
            'unit': unit,
            'purchase_price': cost,
            'sale_price': round(cost * random.uniform(1.2, 1.8), 2),
            'min_stock': random.choice([5, 10, 20]),
        }))
    click.echo(f'  ✓ 已创建 {len(products)} 个商品')
    return products


def init_purchases(suppliers, products, scale=1):
    today = date.today()
    count = 0
    for _ in range(10 * scale):
        lines = random.sample(products, k=min(random.randint(1, 4), len(products)))
        order = purchase_service.create_order(
            random.choice(suppliers).id,
            [{'product_id': p.id, 'quantity': random.randint(20, 100)} for p in lines],
            date_info={
                'order_date': today - timedelta(days=random.randint(5, 30)),
                'expected_date': today,
            },
        )
        # 部分采购单只收一部分货
        partial = random.random() < 0.3
        inventory_service.receive_purchase(order.id, [
            {
                'product_id': item.product_id,
                'received_quantity': item.quantity // 2 if partial else item.quantity,
                'expiry_date': today + timedelta(days=random.randint(30, 365)),
            }
            for item in order.items
        ], operator=FORGE_OPERATOR)
        count += 1
    click.echo(f'  ✓ 已收货 {count} 张采购单')


def init_sales(customers, products, scale=1):
    count = 0
    for _ in range(15 * scale):
        in_stock = [p for p in products if p.stock > 0]
        if not in_stock:
            break
        lines = random.sample(in_stock, k=min(random.randint(1, 3), len(in_stock)))
        order = sales_service.create_order(
            random.choice(customers).id,
            [{'product_id': p.id, 'quantity': random.randint(1, max(1, p.stock // 3))} for p in lines],
            date_info={'order_date': date.today()},
        )
        try:
            inventory_service.ship_sale(order.id, [
                {'product_id': item.product_id, 'shipped_quantity': item.quantity} for item in order.items
            ], operator=FORGE_OPERATOR)
        except LedgerException as e:
            # 库存不足的单据保持待发货
            click.echo(click.style(f'  ⚠ {order.order_no}: {e.message}', fg='yellow'))
            continue
        count += 1
    click.echo(f'  ✓ 已发货 {count} 张销售单')
