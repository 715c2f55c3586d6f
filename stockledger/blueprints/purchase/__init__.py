from flask import Blueprint

# 注意：url_prefix 在 stockledger/__init__.py 注册时设置，这里不重复设置
purchase_bp = Blueprint('purchase', __name__)

from . import routes
