from datetime import date, datetime

from stockledger.exceptions import ValidationError

DATE_FORMAT = '%Y-%m-%d'


def parse_date(value, field='date'):
    """接受 date / datetime / 'YYYY-MM-DD' 字符串，空值返回 None"""
    if value in (None, ''):
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return datetime.strptime(str(value)[:10], DATE_FORMAT).date()
    except ValueError:
        raise ValidationError(f"日期格式错误: {field}={value}", payload={'field': field})


def month_start(today=None):
    today = today or date.today()
    return datetime(today.year, today.month, 1)
