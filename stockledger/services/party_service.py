"""供应商 / 客户档案服务"""
import logging

from stockledger.exceptions import ValidationError
from stockledger.models.biz import Partner
from stockledger.repositories import PartnerRepository
from stockledger.utils import numbering
from stockledger.utils.transaction import atomic
from stockledger.utils.validators import to_price

logger = logging.getLogger(__name__)

TEXT_FIELDS = ('code', 'name', 'contact', 'phone', 'address', 'email')


class PartyService:
    """
    往来单位档案
    供应商与客户共用 Partner 表，code_prefix 决定自动编码前缀 (SUP / CUS)
    """

    def __init__(self, partner_type, code_prefix, partners=None):
        self.partner_type = partner_type
        self.code_prefix = code_prefix
        self.partners = partners or PartnerRepository(partner_type)

    @property
    def label(self):
        return self.partners.label

    def generate_code(self):
        """SUP20240101123 / CUS20240101123"""
        return numbering.partner_code(self.code_prefix)

    def _clean(self, data, partial=False):
        cleaned = {}
        for field in TEXT_FIELDS:
            if field in data:
                value = data[field]
                cleaned[field] = value.strip() if isinstance(value, str) else value
        if 'status' in data:
            if data['status'] not in Partner.STATUSES:
                raise ValidationError(f"无效的状态: {data['status']}", payload={'field': 'status'})
            cleaned['status'] = data['status']
        if 'credit' in data and self.partner_type == Partner.TYPE_CUSTOMER:
            cleaned['credit'] = to_price(data['credit'], 'credit')

        if not partial and not cleaned.get('name'):
            raise ValidationError(f"{self.label}名称不能为空", payload={'field': 'name'})
        if partial and 'name' in cleaned and not cleaned['name']:
            raise ValidationError(f"{self.label}名称不能为空", payload={'field': 'name'})
        return cleaned

    def create(self, data):
        cleaned = self._clean(data)
        with atomic():
            if cleaned.get('code'):
                if self.partners.code_exists(cleaned['code']):
                    raise ValidationError(f"{self.label}编码已存在: {cleaned['code']}", payload={'field': 'code'})
            else:
                cleaned['code'] = numbering.generate_unique(self.generate_code, self.partners.code_exists)
            partner = self.partners.add(Partner(type=self.partner_type, **cleaned))
            self.partners.flush()
        logger.info('新建%s %s (%s)', self.label, partner.code, partner.name)
        return partner

    def update(self, partner_id, patch):
        cleaned = self._clean(patch, partial=True)
        with atomic():
            partner = self.partners.get_or_404(partner_id)
            if cleaned.get('code') and self.partners.code_exists(cleaned['code'], exclude_id=partner.id):
                raise ValidationError(f"{self.label}编码已存在: {cleaned['code']}", payload={'field': 'code'})
            if 'code' in cleaned and not cleaned['code']:
                cleaned.pop('code')
            for field, value in cleaned.items():
                setattr(partner, field, value)
        return partner

    def delete(self, partner_id):
        """软删除，历史订单仍保留名称快照"""
        with atomic():
            partner = self.partners.get_or_404(partner_id)
            self.partners.remove(partner)
        logger.info('删除%s %s', self.label, partner_id)
        return partner

    def toggle_status(self, partner_id):
        with atomic():
            partner = self.partners.get_or_404(partner_id)
            partner.status = (Partner.STATUS_INACTIVE if partner.status == Partner.STATUS_ACTIVE
                              else Partner.STATUS_ACTIVE)
        return partner

    def get(self, partner_id):
        return self.partners.get_or_404(partner_id)

    def list(self, keyword=None, status=None, page=1, per_page=20):
        query = self.partners.search(keyword=keyword, status=status)
        return self.partners.paginate(query, page, per_page)


supplier_service = PartyService(Partner.TYPE_SUPPLIER, 'SUP')
customer_service = PartyService(Partner.TYPE_CUSTOMER, 'CUS')
