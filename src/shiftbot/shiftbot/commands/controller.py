from __future__ import annotations

import structlog
from flask import Flask, jsonify, request

from ..container import Container
from ..core.constants import GENERIC_FAILURE_MESSAGE
from ..core.exceptions import ValidationError
from .interactions import PING, parse_interaction
from .model import ActionResult, ActionSource
from .rendering import PONG, render_response
from .signature import verify_signature

logger = structlog.get_logger("shiftbot.controller")


def register(app: Flask, container: Container) -> None:
    settings = container.settings

    @app.route("/health", methods=["GET"], endpoint="health")
    def health():
        return jsonify({"status": "ok"})

    @app.route("/interactions", methods=["POST"], endpoint="interactions")
    def interactions():
        body = request.get_data()
        if settings.public_key:
            ok = verify_signature(
                public_key_hex=settings.public_key,
                signature_hex=request.headers.get("X-Signature-Ed25519", ""),
                timestamp=request.headers.get("X-Signature-Timestamp", ""),
                body=body,
            )
            if not ok:
                logger.warning("interaction_signature_rejected", remote_addr=request.remote_addr)
                return jsonify({"error": "invalid request signature"}), 401

        payload = request.get_json(silent=True)
        if not isinstance(payload, dict):
            return jsonify({"error": "invalid payload"}), 400
        if payload.get("type") == PING:
            return jsonify({"type": PONG})

        try:
            action = parse_interaction(payload, admin_role_id=settings.admin_role_id)
            if settings.guild_id and action.guild_id != str(settings.guild_id):
                raise ValidationError("This bot is not enabled for this server.")
        except ValidationError as e:
            return jsonify(render_response(ActionResult.failure(str(e))))
        except Exception:
            logger.exception("interaction_parse_crashed")
            return jsonify(render_response(ActionResult.failure(GENERIC_FAILURE_MESSAGE)))

        result = container.command_facade.handle(action)
        return jsonify(render_response(result, update=action.source == ActionSource.BUTTON))
