from flask_wtf import FlaskForm
from wtforms import FloatField, IntegerField, StringField
from wtforms.validators import DataRequired, Length, NumberRange, Optional

from stockledger.utils.validators import validate_code


class ProductForm(FlaskForm):
    """新建商品"""
    code = StringField('商品编码', validators=[DataRequired(), Length(max=64), validate_code])
    barcode = StringField('条码', validators=[Optional(), Length(max=64)])
    name = StringField('商品名称', validators=[DataRequired(), Length(max=128)])
    category = StringField('分类', validators=[Optional(), Length(max=64)])
    specification = StringField('规格', validators=[Optional(), Length(max=128)])
    unit = StringField('单位', validators=[Optional(), Length(max=16)])

    purchase_price = FloatField('进价', validators=[Optional(), NumberRange(min=0, message="价格不能为负")])
    sale_price = FloatField('售价', validators=[Optional(), NumberRange(min=0, message="价格不能为负")])
    min_stock = IntegerField('最低库存', validators=[Optional(), NumberRange(min=0)])

    # 期初库存通过库存调整入账，生成 adjustment 批次
    opening_stock = IntegerField('期初库存', validators=[Optional(), NumberRange(min=0)])
