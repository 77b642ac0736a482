from flask import request, jsonify
from flask_login import login_required, current_user
from police_id.routes import auth_bp
from police_id.security import authenticate


@auth_bp.route('/login', methods=['POST'])
def login():
    data = request.get_json(silent=True) or {}
    username = data.get('username')
    password = data.get('password')

    token, principal = authenticate(username, password)
    return jsonify({'token': token, 'principal': principal.to_dict()})


@auth_bp.route('/me')
@login_required
def me():
    return jsonify(current_user.to_dict())
