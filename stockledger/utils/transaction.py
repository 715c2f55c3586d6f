"""
命令级事务
同一商品的库存与批次读改写必须串行: 进程内按商品加锁 (排序获取防死锁),
数据库侧配合 SELECT ... FOR UPDATE; 整个命令一次提交, 出错整体回滚。
"""
import logging
import threading
from contextlib import contextmanager

from stockledger.exceptions import LedgerException
from stockledger.extensions import db, cache

logger = logging.getLogger(__name__)

STATS_CACHE_KEY = 'dashboard_stats'


class ProductLockRegistry:
    """按商品 id 分配互斥锁"""

    def __init__(self):
        self._guard = threading.Lock()
        self._locks = {}

    def _lock_for(self, product_id):
        with self._guard:
            lock = self._locks.get(product_id)
            if lock is None:
                lock = self._locks[product_id] = threading.Lock()
            return lock

    @contextmanager
    def hold(self, product_ids):
        locks = [self._lock_for(pid) for pid in sorted(set(product_ids))]
        for lock in locks:
            lock.acquire()
        try:
            yield
        finally:
            for lock in reversed(locks):
                lock.release()


product_locks = ProductLockRegistry()


@contextmanager
def atomic(product_ids=()):
    """
    在商品锁内执行一组变更并提交
    :param product_ids: 本次命令会修改库存的商品
    """
    with product_locks.hold(product_ids):
        try:
            yield db.session
            db.session.commit()
        except LedgerException as e:
            db.session.rollback()
            logger.warning('命令被拒绝，已回滚: %s', e.message)
            raise
        except Exception:
            db.session.rollback()
            logger.exception('事务回滚 (商品: %s)', sorted(set(product_ids)) or '-')
            raise
    # 统计数据随任何写入失效
    cache.delete(STATS_CACHE_KEY)
