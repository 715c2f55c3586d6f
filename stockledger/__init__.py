import logging
import os

import colorlog
from flask import Flask, jsonify
from sqlalchemy import inspect

from config import config
from stockledger.exceptions import LedgerException
from stockledger.extensions import db, migrate, cache

from stockledger import commands


def create_app(config_name='default'):
    """库存账本应用工厂函数"""
    app = Flask(__name__)

    # 1. 加载配置
    app.config.from_object(config[config_name])
    config[config_name].init_app(app)
    app.json.sort_keys = False

    # 2. 初始化扩展
    db.init_app(app)
    migrate.init_app(app, db)
    cache.init_app(app)

    # 3. 配置日志
    configure_logging(app)

    # 4. 注册蓝图 (Blueprints)
    register_blueprints(app)

    # 5. 注册全局错误处理
    register_error_handlers(app)

    # 6. 注册 CLI 命令
    register_commands(app)

    # 7. 首次启动自动建表
    auto_init_database(app)

    return app


def auto_init_database(app):
    """库表不存在时自动创建 (正式环境建议使用 flask db upgrade)"""
    if not app.config.get('AUTO_CREATE_TABLES'):
        return
    with app.app_context():
        from stockledger import models  # noqa: F401  注册所有模型
        tables = inspect(db.engine).get_table_names()
        if 'biz_products' not in tables:
            app.logger.info('首次启动，正在创建数据库表...')
            db.create_all()
            app.logger.info('数据库初始化完成 (%s)', os.path.basename(str(db.engine.url)))


def register_blueprints(app):
    """注册所有业务模块蓝图"""
    # 商品目录
    from stockledger.blueprints.catalog import catalog_bp
    app.register_blueprint(catalog_bp, url_prefix='/api/products')

    # 供应商 / 客户
    from stockledger.blueprints.partners import supplier_bp, customer_bp
    app.register_blueprint(supplier_bp, url_prefix='/api/suppliers')
    app.register_blueprint(customer_bp, url_prefix='/api/customers')

    # 采购管理
    from stockledger.blueprints.purchase import purchase_bp
    app.register_blueprint(purchase_bp, url_prefix='/api/purchase-orders')

    # 销售管理
    from stockledger.blueprints.sales import sales_bp
    app.register_blueprint(sales_bp, url_prefix='/api/sale-orders')

    # 库存 / 批次 / 流水
    from stockledger.blueprints.inventory import inventory_bp
    app.register_blueprint(inventory_bp, url_prefix='/api/inventory')

    # 仪表盘
    from stockledger.blueprints.main import main_bp
    app.register_blueprint(main_bp, url_prefix='/api')


def register_error_handlers(app):
    @app.errorhandler(LedgerException)
    def handle_ledger_exception(e):
        return jsonify(e.to_dict()), e.code

    @app.errorhandler(404)
    def page_not_found(e):
        return jsonify({'success': False, 'error': 'NotFound', 'message': '请求的资源不存在', 'code': 404}), 404

    @app.errorhandler(405)
    def method_not_allowed(e):
        return jsonify({'success': False, 'error': 'MethodNotAllowed', 'message': '不支持的请求方法',
                        'code': 405}), 405

    @app.errorhandler(500)
    def internal_server_error(e):
        return jsonify({'success': False, 'error': 'InternalServerError', 'message': '服务器内部错误',
                        'code': 500}), 500


def register_commands(app):
    """注册 Flask CLI 命令"""
    app.cli.add_command(commands.forge)
    app.cli.add_command(commands.status)
    app.cli.add_command(commands.check_ledger)
    app.cli.add_command(commands.expire_batches)


def configure_logging(app):
    """配置彩色控制台日志，服务层日志挂在 stockledger 命名空间下"""
    ledger_logger = logging.getLogger('stockledger')
    if app.debug:
        handler = logging.StreamHandler()
        handler.setLevel(logging.INFO)

        formatter = colorlog.ColoredFormatter(
            "%(log_color)s[%(asctime)s] %(levelname)-8s%(reset)s %(blue)s%(name)s%(reset)s %(message)s",
            datefmt="%H:%M:%S",
            reset=True,
            log_colors={
                'DEBUG':    'cyan',
                'INFO':     'green',
                'WARNING':  'yellow',
                'ERROR':    'red',
                'CRITICAL': 'red,bg_white',
            },
            style='%'
        )
        handler.setFormatter(formatter)
        app.logger.addHandler(handler)
        # 重复调用 create_app 时不重复挂 handler
        if not any(isinstance(h.formatter, colorlog.ColoredFormatter) for h in ledger_logger.handlers):
            ledger_logger.addHandler(handler)
        ledger_logger.setLevel(logging.INFO)
    elif not app.testing:
        ledger_logger.setLevel(logging.WARNING)
