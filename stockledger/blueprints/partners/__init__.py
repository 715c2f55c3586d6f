from flask import Blueprint

# 供应商与客户共用同一套路由，注册时分别挂到 /api/suppliers 和 /api/customers
supplier_bp = Blueprint('suppliers', __name__)
customer_bp = Blueprint('customers', __name__)

from . import routes
