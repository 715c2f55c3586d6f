"""
JSON 接口通用辅助
操作人 / 幂等键来自请求头，分页参数来自 query string
"""
from urllib.parse import unquote

from flask import current_app, jsonify, request

from stockledger.exceptions import ValidationError
from stockledger.models.stock import Operator

MAX_PER_PAGE = 100


def json_body():
    data = request.get_json(silent=True)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValidationError("请求体必须是 JSON 对象")
    return data


def current_operator():
    """X-Operator-Id / X-Operator-Name，缺省取配置中的系统操作人"""
    config = current_app.config
    name = request.headers.get('X-Operator-Name')
    return Operator(
        id=request.headers.get('X-Operator-Id') or config['DEFAULT_OPERATOR_ID'],
        # 请求头只能是 latin-1，中文姓名按 URL 编码传递
        name=unquote(name) if name else config['DEFAULT_OPERATOR_NAME'],
    )


def idempotency_key():
    return request.headers.get('Idempotency-Key') or None


def page_args():
    page = max(request.args.get('page', 1, type=int), 1)
    per_page = request.args.get('per_page', current_app.config['LEDGER_PAGE_SIZE'], type=int)
    return page, min(max(per_page, 1), MAX_PER_PAGE)


def validate_form(form):
    """
    表单校验失败抛出 ValidationError
    返回实际提交了值的字段
    """
    if not form.validate_on_submit():
        raise ValidationError("参数校验失败", payload={'errors': form.errors})
    return {
        name: value for name, value in form.data.items()
        if name != 'csrf_token' and value not in (None, '')
    }


def ok(data=None, status=200, **extra):
    payload = {'success': True, 'data': data}
    payload.update(extra)
    return jsonify(payload), status


def paginated(pagination, serialize=None):
    serialize = serialize or (lambda obj: obj.to_dict())
    return ok(
        [serialize(obj) for obj in pagination.items],
        total=pagination.total,
        page=pagination.page,
        per_page=pagination.per_page,
        pages=pagination.pages,
    )
