from flask import request, jsonify, send_file, current_app
from flask_login import login_required
from police_id.routes import members_bp
from police_id import registry
from police_id.errors import NotFound
from police_id.id_generator import issue_member, update_member, generate_verification_qr
from police_id.security import Operation, requires


@members_bp.route('', methods=['GET'])
@login_required
@requires(Operation.LIST_MEMBERS)
def list_members():
    search = request.args.get('search', '').strip() or None
    return jsonify([member.to_dict() for member in registry.list_members(search)])


@members_bp.route('', methods=['POST'])
@login_required
@requires(Operation.CREATE_MEMBER)
def create_member():
    member = issue_member(request.get_json(silent=True))
    return jsonify({'success': True, 'id': member.id, 'id_number': member.id_number}), 201


@members_bp.route('/<int:member_id>', methods=['PUT'])
@login_required
@requires(Operation.UPDATE_MEMBER)
def edit_member(member_id):
    member = update_member(member_id, request.get_json(silent=True))
    return jsonify(member.to_dict())


@members_bp.route('/<int:member_id>', methods=['DELETE'])
@login_required
@requires(Operation.DELETE_MEMBER)
def delete_member(member_id):
    record = registry.delete_member(member_id)
    current_app.logger.info(f"Deleted {record['id_number']}")
    return jsonify({'success': True})


@members_bp.route('/<id_number>/qr')
@login_required
@requires(Operation.RENDER_QR)
def member_qr(id_number):
    """QR code for the back of the card; does not count as a scan"""
    if registry.get_by_id_number(id_number) is None:
        raise NotFound(f'No card with ID number {id_number}')

    base_url = current_app.config.get('PUBLIC_BASE_URL') or request.url_root
    image = generate_verification_qr(id_number, base_url)
    return send_file(image, mimetype='image/png', download_name=f'{id_number}_qr.png')
