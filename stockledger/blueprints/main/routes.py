from flask import jsonify

from stockledger.blueprints.main import main_bp
from stockledger.services.dashboard_service import dashboard_service


@main_bp.route('/')
def index():
    return jsonify({'success': True, 'service': 'stockledger'})


@main_bp.route('/dashboard')
def dashboard_stats():
    """
    仪表盘统计
    商品 / 低库存 / 往来单位数量，待处理订单，本月采购与销售金额
    """
    return jsonify({'success': True, 'data': dashboard_service.get_stats()})
