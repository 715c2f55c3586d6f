class LedgerException(Exception):
    """库存账本基础异常类"""
    def __init__(self, message, code=500, payload=None):
        super().__init__(message)
        self.message = message
        self.code = code
        self.payload = payload

    def to_dict(self):
        rv = dict(self.payload or ())
        rv['message'] = self.message
        rv['code'] = self.code
        rv['error'] = type(self).__name__
        rv['success'] = False
        return rv


class ValidationError(LedgerException):
    """请求数据不合法"""
    def __init__(self, message="Invalid data", payload=None):
        super().__init__(message, code=400, payload=payload)


class InvalidQuantity(ValidationError):
    """数量为零或负数"""
    def __init__(self, message="数量必须大于 0", payload=None):
        super().__init__(message, payload=payload)


class NotFound(LedgerException):
    """引用的对象不存在"""
    def __init__(self, message="Not found", payload=None):
        super().__init__(message, code=404, payload=payload)


class ProductNotFound(NotFound):
    pass


class PartyNotFound(NotFound):
    pass


class OrderNotFound(NotFound):
    pass


class BatchNotFound(NotFound):
    pass


class OrderStateError(LedgerException):
    """订单当前状态不允许该操作"""
    def __init__(self, message, payload=None):
        super().__init__(message, code=409, payload=payload)


class InsufficientStock(LedgerException):
    """出库或扣减会使商品库存为负"""
    def __init__(self, product_name, required, available, message=None):
        super().__init__(
            message or f"库存不足！{product_name} 当前库存: {available}, 尝试扣减: {required}",
            code=409,
            payload={'product': product_name, 'required': required, 'available': available}
        )


class NegativeStockError(InsufficientStock):
    """手动调整后库存为负"""
    def __init__(self, product_name, required, available):
        super().__init__(
            product_name, required, available,
            message=f"调整后库存为负！{product_name} 当前库存: {available}, 调整: -{required}"
        )


class InsufficientBatchStock(LedgerException):
    """FIFO 批次剩余量不足以覆盖出库数量"""
    def __init__(self, product_name, required, available):
        super().__init__(
            f"批次库存不足！{product_name} 可分配批次数量: {available}, 需要: {required}",
            code=409,
            payload={'product': product_name, 'required': required, 'available': available}
        )
