from flask_wtf import FlaskForm
from wtforms import FloatField, StringField
from wtforms.validators import DataRequired, Length, NumberRange, Optional

from stockledger.utils.validators import validate_phone


class PartnerForm(FlaskForm):
    """新建供应商 / 客户，编码留空时自动生成"""
    code = StringField('编码', validators=[Optional(), Length(max=32)])
    name = StringField('名称', validators=[DataRequired(), Length(max=128)])
    contact = StringField('联系人', validators=[Optional(), Length(max=64)])
    phone = StringField('电话', validators=[Optional(), validate_phone])
    address = StringField('地址', validators=[Optional(), Length(max=256)])
    email = StringField('邮箱', validators=[Optional(), Length(max=128)])
    credit = FloatField('信用额度', validators=[Optional(), NumberRange(min=0)])
