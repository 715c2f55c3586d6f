"""
单号 / 编码生成
订单号: PO-YYYYMMDD-NNN, SO-YYYYMMDD-NNN
伙伴编码: SUPYYYYMMDDNNN, CUSYYYYMMDDNNN
批次号: <商品编码>-YYYYMMDD-HHmm-NN
"""
import random
import uuid
from datetime import datetime

MAX_ATTEMPTS = 50


def order_no(prefix, now=None):
    now = now or datetime.now()
    return f"{prefix}-{now.strftime('%Y%m%d')}-{random.randint(0, 999):03d}"


def partner_code(prefix, now=None):
    now = now or datetime.now()
    return f"{prefix}{now.strftime('%Y%m%d')}{random.randint(0, 999):03d}"


def batch_no(product_code, now=None):
    now = now or datetime.now()
    return f"{product_code}-{now.strftime('%Y%m%d')}-{now.strftime('%H%M')}-{random.randint(0, 99):02d}"


def generate_unique(generate, exists):
    """
    重复调用 generate 直到 exists 返回 False
    随机后缀用尽时追加一段 uuid
    """
    for _ in range(MAX_ATTEMPTS):
        candidate = generate()
        if not exists(candidate):
            return candidate
    return f"{generate()}-{uuid.uuid4().hex[:4].upper()}"
