# Challenge-related routes

from flask import Blueprint, current_app, jsonify, request

from services.auth_service import require_auth
from services.challenge_service import ChallengeService
from services.progress import format_quit_request_record
from utils.validation import parse_create_challenge, parse_quit_request

challenge_bp = Blueprint('challenges', __name__, url_prefix='/challenges')


def _service() -> ChallengeService:
    return ChallengeService(clock=current_app.config.get('CLOCK'))


# --- CREATE ---
@challenge_bp.route('', methods=['POST'])
@require_auth
def create_challenge(principal):
    duration_days, reason = parse_create_challenge(request.get_json(silent=True))
    service = _service()
    challenge = service.create_challenge(principal.principal_id, principal.device_id, duration_days, reason)
    return jsonify(service.present(challenge)), 201


# --- ACTIVE ---
@challenge_bp.route('/active', methods=['GET'])
@require_auth
def get_active_challenge(principal):
    service = _service()
    challenge = service.get_active_challenge(principal.principal_id)
    return jsonify({'challenge': service.present(challenge) if challenge else None}), 200


# --- CANCEL ---
@challenge_bp.route('/<challenge_id>/cancel', methods=['PATCH'])
@require_auth
def cancel_challenge(principal, challenge_id):
    service = _service()
    challenge = service.cancel_challenge(principal.principal_id, challenge_id)
    return jsonify(service.present(challenge)), 200


# --- QUIT REQUEST ---
@challenge_bp.route('/<challenge_id>/quit-request', methods=['POST'])
@require_auth
def request_quit(principal, challenge_id):
    feeling = parse_quit_request(request.get_json(silent=True))
    service = _service()
    challenge = service.request_quit(principal.principal_id, challenge_id, feeling)
    return jsonify(service.present(challenge)), 200


@challenge_bp.route('/<challenge_id>/quit-request', methods=['DELETE'])
@require_auth
def cancel_quit_request(principal, challenge_id):
    service = _service()
    challenge = service.cancel_quit_request(principal.principal_id, challenge_id)
    return jsonify(service.present(challenge)), 200


@challenge_bp.route('/<challenge_id>/quit-requests', methods=['GET'])
@require_auth
def list_quit_requests(principal, challenge_id):
    records = _service().list_quit_requests(principal.principal_id, challenge_id)
    return jsonify({'quitRequests': [format_quit_request_record(r) for r in records]}), 200


# --- HISTORY ---
@challenge_bp.route('', methods=['GET'])
@require_auth
def list_history(principal):
    service = _service()
    now = service.now()
    challenges = service.list_history(principal.principal_id)
    return jsonify({'challenges': [service.present(c, now) for c in challenges]}), 200
