from flask import request, jsonify, current_app
from flask_login import login_required, current_user
from police_id.routes import admin_bp
from police_id import registry, store
from police_id.errors import ValidationError
from police_id.security import Operation, Role, requires


def json_body():
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        raise ValidationError('Expected a JSON object')
    return data


def optional_string(data, key):
    value = data.get(key)
    if value is not None and (not isinstance(value, str) or not value.strip()):
        raise ValidationError(f'{key} must be a non-empty string')
    return value


# Assets

@admin_bp.route('/assets', methods=['POST'])
@login_required
@requires(Operation.WRITE_ASSETS)
def save_asset():
    data = json_body()
    key = optional_string(data, 'key')
    value = optional_string(data, 'value')
    if not key or not value:
        raise ValidationError('Missing key or value')

    registry.upsert_asset(key.strip(), value)
    current_app.logger.info(f"{current_user.username} updated asset {key.strip()}")
    return jsonify({'success': True})


# Accounts

@admin_bp.route('/accounts', methods=['GET'])
@login_required
@requires(Operation.MANAGE_ACCOUNTS)
def accounts():
    return jsonify([account.to_dict() for account in registry.list_accounts()])


@admin_bp.route('/accounts', methods=['POST'])
@login_required
@requires(Operation.MANAGE_ACCOUNTS)
def add_account():
    data = json_body()
    username = optional_string(data, 'username')
    password = optional_string(data, 'password')
    if not username or not password:
        raise ValidationError('username and password are required')
    role = Role.parse(data.get('role', Role.VIEWER.value))

    account = registry.insert_account(username.strip(), password, role)
    current_app.logger.info(f"{current_user.username} created account {account.username} ({account.role})")
    return jsonify(account.to_dict()), 201


@admin_bp.route('/accounts/<int:account_id>', methods=['PUT'])
@login_required
@requires(Operation.MANAGE_ACCOUNTS)
def edit_account(account_id):
    data = json_body()
    role = Role.parse(data['role']) if data.get('role') is not None else None
    password = optional_string(data, 'password')
    if role is None and password is None:
        raise ValidationError('Nothing to update: provide role and/or password')

    account = registry.update_account(account_id, role=role, password=password)
    current_app.logger.info(f"{current_user.username} updated account {account.username}")
    return jsonify(account.to_dict())


@admin_bp.route('/accounts/<int:account_id>', methods=['DELETE'])
@login_required
@requires(Operation.MANAGE_ACCOUNTS)
def delete_account(account_id):
    record = registry.delete_account(account_id)
    current_app.logger.info(f"{current_user.username} deleted account {record['username']}")
    return jsonify({'success': True})


# Backups

@admin_bp.route('/backups', methods=['GET'])
@login_required
@requires(Operation.MANAGE_BACKUPS)
def backups():
    return jsonify(store.list_backups())


@admin_bp.route('/backups', methods=['POST'])
@store.exclusive
@login_required
@requires(Operation.MANAGE_BACKUPS)
def create_backup():
    return jsonify(store.snapshot()), 201


@admin_bp.route('/backups/restore', methods=['POST'])
@store.exclusive
@login_required
@requires(Operation.MANAGE_BACKUPS)
def restore_backup():
    data = json_body()
    store.restore(data.get('filename'))
    return jsonify({'success': True})
