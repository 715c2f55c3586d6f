from flask_wtf import FlaskForm
from wtforms import FloatField, IntegerField, StringField
from wtforms.validators import InputRequired, Length, NumberRange, Optional

from stockledger.utils.validators import validate_non_negative, validate_non_zero


class StockAdjustmentForm(FlaskForm):
    """库存调整表单: delta 为正盘盈，为负盘亏"""
    product_id = IntegerField('商品', validators=[InputRequired()])
    delta = IntegerField('调整数量', validators=[InputRequired(message="调整数量不能为 0"), validate_non_zero])
    reason = StringField('调整原因', validators=[Optional(), Length(max=255)])


class ManualReceiveForm(FlaskForm):
    """不关联采购单的手动入库"""
    product_id = IntegerField('商品', validators=[InputRequired()])
    quantity = IntegerField('入库数量', validators=[
        InputRequired(),
        NumberRange(min=1, message="数量必须大于 0")
    ])
    unit_cost = FloatField('成本单价', validators=[Optional(), validate_non_negative])
    reason = StringField('备注', validators=[Optional(), Length(max=255)])
