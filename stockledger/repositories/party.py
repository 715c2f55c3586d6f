from stockledger.exceptions import PartyNotFound
from stockledger.models.biz import Partner
from .base import BaseRepository


class PartnerRepository(BaseRepository):
    """供应商 / 客户共用一张表，按 type 区分"""
    model = Partner
    not_found = PartyNotFound

    def __init__(self, partner_type):
        self.partner_type = partner_type
        self.label = '供应商' if partner_type == Partner.TYPE_SUPPLIER else '客户'

    def get(self, entity_id, include_deleted=False):
        obj = super().get(entity_id, include_deleted=include_deleted)
        if obj is not None and obj.type != self.partner_type:
            return None
        return obj

    def query(self):
        return super().query().filter(Partner.type == self.partner_type)

    def code_exists(self, code, exclude_id=None):
        query = Partner.query.filter(Partner.type == self.partner_type, Partner.code == code)
        if exclude_id:
            query = query.filter(Partner.id != exclude_id)
        return query.first() is not None

    def search(self, keyword=None, status=None):
        query = self.query()
        if keyword:
            like = f"%{keyword}%"
            query = query.filter(
                Partner.name.ilike(like) | Partner.code.ilike(like) | Partner.contact.ilike(like)
            )
        if status:
            query = query.filter(Partner.status == status)
        return query.order_by(Partner.id.asc())
