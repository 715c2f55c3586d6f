import logging

from stockledger.exceptions import NotFound
from stockledger.extensions import db

logger = logging.getLogger(__name__)


class BaseRepository:
    """
    单实体仓储基类
    只负责读写会话，不提交事务 (由命令级 atomic() 统一提交)
    """
    model = None
    not_found = NotFound
    label = '记录'

    def get(self, entity_id, include_deleted=False):
        if entity_id is None:
            return None
        obj = db.session.get(self.model, entity_id)
        if obj is None or (obj.is_deleted and not include_deleted):
            return None
        return obj

    def get_or_404(self, entity_id):
        obj = self.get(entity_id)
        if obj is None:
            raise self.not_found(f"{self.label}不存在: {entity_id}", payload={'id': entity_id})
        return obj

    def query(self):
        """未删除的记录"""
        return self.model.query.filter(self.model.is_deleted.is_(False))

    def add(self, obj):
        db.session.add(obj)
        return obj

    def flush(self):
        db.session.flush()

    def remove(self, obj):
        obj.soft_delete()
        logger.debug('%s %s 已标记删除', self.label, obj.id)

    @staticmethod
    def paginate(query, page=1, per_page=20):
        return query.paginate(page=page, per_page=per_page, error_out=False)
