"""
表单验证器 + 服务层数值校验
"""
import re

from wtforms.validators import ValidationError

from stockledger import exceptions

# 编码用于拼接批次号，只允许字母数字、下划线和连字符
CODE_PATTERN = re.compile(r'^[A-Za-z0-9_-]+$')
CODE_MAX_LENGTH = 64
CODE_ERROR = '编码只能包含字母、数字、下划线和连字符'


def validate_phone(form, field):
    """验证手机号 / 座机格式"""
    if field.data:
        pattern = r'^(1[3-9]\d{9}|0\d{2,3}-?\d{7,8})$'
        if not re.match(pattern, field.data):
            raise ValidationError('请输入有效的电话号码')


def validate_code(form, field):
    """验证商品编码格式"""
    if field.data and not CODE_PATTERN.match(field.data):
        raise ValidationError(CODE_ERROR)


def validate_non_zero(form, field):
    if field.data is not None and field.data == 0:
        raise ValidationError('调整数量不能为 0')


def validate_non_negative(form, field):
    """验证非负数"""
    if field.data is not None and field.data < 0:
        raise ValidationError('数值不能为负')


def to_int(value, field, minimum=None):
    """
    把请求中的数量转成 int
    :param minimum: 允许的最小值, 低于它抛出 InvalidQuantity
    """
    # 3.5 之类的小数不做截断
    if isinstance(value, bool) or (isinstance(value, float) and not value.is_integer()):
        raise exceptions.InvalidQuantity(f"{field} 必须是整数", payload={'field': field})
    try:
        number = int(value)
    except (TypeError, ValueError):
        raise exceptions.InvalidQuantity(f"{field} 必须是整数", payload={'field': field})
    if minimum is not None and number < minimum:
        raise exceptions.InvalidQuantity(f"{field} 不能小于 {minimum}", payload={'field': field, 'value': number})
    return number


def to_price(value, field):
    """金额 / 单价: 非负浮点数"""
    if value in (None, ''):
        return 0.0
    try:
        number = float(value)
    except (TypeError, ValueError):
        raise exceptions.InvalidQuantity(f"{field} 必须是数字", payload={'field': field})
    if number < 0:
        raise exceptions.InvalidQuantity(f"{field} 不能为负", payload={'field': field, 'value': number})
    return number


def check_code(value, field='code'):
    """服务层编码校验，与 validate_code 同一规则"""
    if not isinstance(value, str) or not CODE_PATTERN.match(value):
        raise exceptions.ValidationError(CODE_ERROR, payload={'field': field, 'value': value})
    if len(value) > CODE_MAX_LENGTH:
        raise exceptions.ValidationError(f"{field} 长度不能超过 {CODE_MAX_LENGTH}", payload={'field': field})
    return value
