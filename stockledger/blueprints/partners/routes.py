from flask import request

from stockledger.blueprints.partners import customer_bp, supplier_bp
from stockledger.blueprints.partners.forms import PartnerForm
from stockledger.services.party_service import customer_service, supplier_service
from stockledger.utils.request_helpers import json_body, ok, page_args, paginated, validate_form


def register_partner_routes(bp, service):
    """在蓝图上挂载往来单位的 CRUD 接口"""

    @bp.route('', methods=['GET'])
    def list_partners():
        page, per_page = page_args()
        pagination = service.list(
            keyword=request.args.get('q', '').strip() or None,
            status=request.args.get('status') or None,
            page=page, per_page=per_page,
        )
        return paginated(pagination)

    @bp.route('', methods=['POST'])
    def create_partner():
        partner = service.create(validate_form(PartnerForm()))
        return ok(partner.to_dict(), 201)

    @bp.route('/<int:partner_id>', methods=['GET'])
    def get_partner(partner_id):
        return ok(service.get(partner_id).to_dict())

    @bp.route('/<int:partner_id>', methods=['PATCH', 'PUT'])
    def update_partner(partner_id):
        return ok(service.update(partner_id, json_body()).to_dict())

    @bp.route('/<int:partner_id>', methods=['DELETE'])
    def delete_partner(partner_id):
        service.delete(partner_id)
        return ok({'id': partner_id})

    @bp.route('/<int:partner_id>/toggle', methods=['POST'])
    def toggle_partner(partner_id):
        return ok(service.toggle_status(partner_id).to_dict())


register_partner_routes(supplier_bp, supplier_service)
register_partner_routes(customer_bp, customer_service)
