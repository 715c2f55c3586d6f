import os
from dotenv import load_dotenv

# 加载 .env 环境变量
load_dotenv()
basedir = os.path.abspath(os.path.dirname(__file__))


class Config:
    """基础配置类"""
    SECRET_KEY = os.environ.get('SECRET_KEY') or 'hard-to-guess-string'

    # 数据库配置
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    SQLALCHEMY_RECORD_QUERIES = True

    # JSON 接口不走浏览器会话，表单只做字段校验
    WTF_CSRF_ENABLED = False

    # 缓存配置 (仪表盘统计，生产环境可改 Redis)
    CACHE_TYPE = "SimpleCache"
    CACHE_DEFAULT_TIMEOUT = 300

    # 批次账本策略
    # reject: FIFO 批次不足时拒绝整单出库; allow: 沿用旧行为，欠分配只记警告
    BATCH_SHORTFALL_POLICY = os.environ.get('BATCH_SHORTFALL_POLICY', 'reject').lower()
    # fifo: 盘亏调整从最早批次扣减; latest: 从最新批次扣减
    ADJUST_DECREASE_POLICY = os.environ.get('ADJUST_DECREASE_POLICY', 'fifo').lower()

    # 未传操作人时写入流水的默认操作人
    DEFAULT_OPERATOR_ID = os.environ.get('DEFAULT_OPERATOR_ID', 'system')
    DEFAULT_OPERATOR_NAME = os.environ.get('DEFAULT_OPERATOR_NAME', '系统管理员')

    LEDGER_PAGE_SIZE = int(os.environ.get('LEDGER_PAGE_SIZE', 20))

    # 首次启动时自动建表
    AUTO_CREATE_TABLES = os.environ.get('AUTO_CREATE_TABLES', 'true').lower() in ('1', 'true', 'yes')

    @staticmethod
    def init_app(app):
        # 确保 SQLite 文件所在目录存在
        instance_dir = os.path.join(basedir, 'instance')
        if not os.path.exists(instance_dir):
            os.makedirs(instance_dir)


class DevelopmentConfig(Config):
    """开发环境配置"""
    DEBUG = True
    SQLALCHEMY_DATABASE_URI = os.environ.get('DATABASE_URL') or \
        'sqlite:///' + os.path.join(basedir, 'instance', 'stockledger.db')


class ProductionConfig(Config):
    """生产环境配置"""
    DEBUG = False

    DATABASE_URL = os.environ.get('DATABASE_URL') or \
        'sqlite:///' + os.path.join(basedir, 'instance', 'stockledger_prod.db')
    # PostgreSQL URL 修正（部分平台使用 postgres://）
    if DATABASE_URL and DATABASE_URL.startswith('postgres://'):
        DATABASE_URL = DATABASE_URL.replace('postgres://', 'postgresql://', 1)

    SQLALCHEMY_DATABASE_URI = DATABASE_URL

    @classmethod
    def init_app(cls, app):
        Config.init_app(app)


class TestingConfig(Config):
    TESTING = True
    SQLALCHEMY_DATABASE_URI = 'sqlite://'
    SQLALCHEMY_RECORD_QUERIES = False
    CACHE_TYPE = "NullCache"
    AUTO_CREATE_TABLES = False
    BATCH_SHORTFALL_POLICY = 'reject'
    ADJUST_DECREASE_POLICY = 'fifo'

    @staticmethod
    def init_app(app):
        pass


config = {
    'development': DevelopmentConfig,
    'production': ProductionConfig,
    'testing': TestingConfig,
    'default': DevelopmentConfig
}
