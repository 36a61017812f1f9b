# saledesk/drafts/routes.py

from flask import Blueprint, abort, current_app, jsonify, request

from saledesk.errors import CreationPending, DraftValidationError
from saledesk.drafts.models import Customer, SaleKind

bp = Blueprint('drafts', __name__)


def _check_secret():
    secret = current_app.config.get('ADMIN_SECRET')
    if secret and request.headers.get('X-Admin-Secret') != secret:
        abort(403)


@bp.before_request
def before():
    _check_secret()


@bp.errorhandler(DraftValidationError)
def validation_failed(e):
    status = 409 if isinstance(e, CreationPending) else 400
    return jsonify(success=False, error=e.message), status


def _registry():
    return current_app.extensions['sale_drafts']


def _kind(kind):
    try:
        return SaleKind(kind)
    except ValueError:
        abort(404)


def _controller(key):
    controller = _registry().get(key)
    if controller is None:
        abort(404)
    return controller


def _reply(controller, success=True, **extra):
    """Every mutating endpoint answers with the draft and the pending messages."""
    return jsonify(
        success=success,
        draft=controller.snapshot(),
        messages=[n.to_dict() for n in controller.drain_notices()],
        **extra,
    )


@bp.route('/<kind>/new', methods=['POST'])
def open_draft(kind):
    key, controller = _registry().open(_kind(kind))
    return _reply(controller, key=key), 201


@bp.route('/<kind>/<int:entity_id>/edit', methods=['POST'])
def open_existing(kind, entity_id):
    data = request.get_json(silent=True) or {}
    key, controller = _registry().open(_kind(kind), editing=True)
    loaded = controller.load(entity_id, status=data.get('status'))
    return _reply(controller, success=loaded, key=key)


@bp.route('/drafts/<key>')
def show_draft(key):
    controller = _controller(key)
    return jsonify(draft=controller.snapshot())


@bp.route('/drafts/<key>/customer', methods=['POST'])
def select_customer(key):
    controller = _controller(key)
    data = request.get_json() or {}
    if not data.get('id'):
        raise DraftValidationError('Customer is required')
    sale_id = controller.select_customer(Customer.from_form(data))
    return _reply(controller, success=sale_id is not None)


@bp.route('/drafts/<key>/steps/next', methods=['POST'])
def next_step(key):
    controller = _controller(key)
    return _reply(controller, success=controller.advance_step())


@bp.route('/drafts/<key>/steps/prev', methods=['POST'])
def prev_step(key):
    controller = _controller(key)
    return _reply(controller, success=controller.retreat_step())


@bp.route('/drafts/<key>/items', methods=['POST'])
def add_item(key):
    controller = _controller(key)
    items = controller.add_line_item()
    return _reply(controller, success=items is not None)


@bp.route('/drafts/<key>/items/<item_id>', methods=['POST'])
def update_item(key, item_id):
    controller = _controller(key)
    controller.update_line_item(item_id, request.get_json() or {})
    return _reply(controller)


@bp.route('/drafts/<key>/items/<item_id>/save', methods=['POST'])
def save_item(key, item_id):
    controller = _controller(key)
    data = request.get_json(silent=True) or {}
    saved = controller.save_line_item(item_id, picture_id=data.get('pictureId'))
    return _reply(controller, success=saved is not None)


@bp.route('/drafts/<key>/items/<item_id>/remove', methods=['POST'])
def remove_item(key, item_id):
    controller = _controller(key)
    items = controller.remove_line_item(item_id)
    return _reply(controller, success=items is not None)


@bp.route('/drafts/<key>/addresses/<address_type>', methods=['POST'])
def edit_address(key, address_type):
    controller = _controller(key)
    data = request.get_json() or {}
    allowed = {
        'name': 'name',
        'street': 'street',
        'street2': 'street2',
        'city': 'city',
        'state': 'state',
        'zipCode': 'zip_code',
        'country': 'country',
    }
    # keys absent from the body keep their value
    changes = {attr: data[name] for name, attr in allowed.items() if name in data}
    controller.edit_address(address_type, **changes)
    return _reply(controller)


@bp.route('/drafts/<key>/addresses/<address_type>/select', methods=['POST'])
def select_address(key, address_type):
    controller = _controller(key)
    data = request.get_json() or {}
    try:
        index = int(data.get('index', 0))
    except (TypeError, ValueError):
        raise DraftValidationError('Address index must be a number') from None
    controller.select_saved_address(address_type, index)
    return _reply(controller)


@bp.route('/drafts/<key>/addresses/same-as-shipping', methods=['POST'])
def same_as_shipping(key):
    controller = _controller(key)
    data = request.get_json() or {}
    controller.set_same_as_shipping(bool(data.get('enabled')))
    return _reply(controller)


@bp.route('/drafts/<key>/addresses/save', methods=['POST'])
def save_addresses(key):
    controller = _controller(key)
    return _reply(controller, success=controller.save_addresses())


@bp.route('/drafts/<key>/shipping', methods=['POST'])
def update_shipping(key):
    controller = _controller(key)
    data = request.get_json() or {}
    allowed = {
        'company': 'company',
        'type': 'type',
        'cost': 'cost',
        'date': 'date',
        'trackingNumber': 'tracking_number',
    }
    changes = {attr: data[name] for name, attr in allowed.items() if name in data}
    return _reply(controller, success=controller.update_shipping(**changes))


@bp.route('/drafts/<key>/checkout', methods=['POST'])
def update_checkout(key):
    controller = _controller(key)
    data = request.get_json() or {}
    changes = {}
    if 'dateOrderNeededBy' in data:
        changes['date_needed_by'] = data['dateOrderNeededBy']
    if 'additionalInstructions' in data:
        changes['additional_instructions'] = data['additionalInstructions']
    controller.update_checkout(**changes)
    return _reply(controller)


@bp.route('/drafts/<key>/checkout/save', methods=['POST'])
def save_checkout(key):
    controller = _controller(key)
    return _reply(controller, success=controller.save_checkout())


@bp.route('/drafts/<key>/status', methods=['POST'])
def change_status(key):
    controller = _controller(key)
    data = request.get_json() or {}
    return _reply(controller, success=controller.change_status(data.get('status')))


@bp.route('/drafts/<key>/notes', methods=['POST'])
def edit_notes(key):
    controller = _controller(key)
    data = request.get_json() or {}
    accepted = controller.edit_notes(data.get('content') or '')
    return _reply(controller, success=accepted)


@bp.route('/drafts/<key>/notes/save', methods=['POST'])
def save_notes(key):
    controller = _controller(key)
    controller.save_notes()
    return _reply(controller, success=controller.notes.state.value != 'error')


@bp.route('/drafts/<key>/connectivity', methods=['POST'])
def connectivity(key):
    controller = _controller(key)
    data = request.get_json() or {}
    controller.set_online(bool(data.get('online')))
    return _reply(controller)


@bp.route('/drafts/<key>/submit', methods=['POST'])
def submit(key):
    controller = _controller(key)
    return _reply(controller, success=controller.submit())


@bp.route('/drafts/<key>/discard', methods=['POST'])
def discard(key):
    if not _registry().discard(key):
        abort(404)
    return jsonify(success=True)
