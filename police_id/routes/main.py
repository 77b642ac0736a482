from flask import jsonify
from flask_login import login_required
from police_id.routes import main_bp
from police_id import registry
from police_id.security import Operation, requires


@main_bp.route('/')
def index():
    return jsonify({
        'name': 'Police ID Registry API',
        'status': 'running',
        'health': '/api/health',
    })


@main_bp.route('/api/health')
def health():
    return jsonify({'ok': True})


@main_bp.route('/api/scans/<id_number>')
@login_required
@requires(Operation.READ_SCANS)
def scans(id_number):
    return jsonify([scan.to_dict() for scan in registry.list_scans(id_number)])


@main_bp.route('/api/assets')
@login_required
@requires(Operation.READ_ASSETS)
def assets():
    return jsonify(registry.list_assets())
