from datetime import date, datetime
from stockledger.extensions import db


class BaseModel(db.Model):
    """
    账本模型基类
    包含：ID主键, 创建时间, 更新时间, 软删除标记, 序列化方法
    """
    __abstract__ = True

    id = db.Column(db.Integer, primary_key=True, autoincrement=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow, index=True)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # 软删除标记：保留流水对主数据的引用
    is_deleted = db.Column(db.Boolean, default=False, index=True)

    def soft_delete(self):
        """标记删除，不提交事务"""
        self.is_deleted = True

    def to_dict(self):
        """
        通用序列化方法：将模型转换为字典，便于 API 返回 JSON。
        过滤掉以 '_' 开头的私有属性。
        """
        data = {}
        for c in self.__table__.columns:
            if c.name.startswith('_'):
                continue
            val = getattr(self, c.name)
            if isinstance(val, (datetime, date)):
                data[c.name] = val.isoformat()
            else:
                data[c.name] = val
        return data

    def __repr__(self):
        return f'<{type(self).__name__} {self.id}>'
