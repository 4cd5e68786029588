# Overview: Request decorators for API routes.

import hmac
from functools import wraps
from flask import current_app, request, jsonify, g


def _resolve_caller(token: str, tokens: dict[str, str]) -> str | None:
    for known, name in tokens.items():
        if hmac.compare_digest(known, token):
            return name
    return None


def require_auth(f):
    """
    Resolve the caller identity from the Authorization header.

    Sets g.caller to the configured name for the bearer token. When no
    API_TOKENS are configured the API is open and g.caller is "anonymous".

    Returns 401 if tokens are configured and the header is missing or the
    token is unknown.
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        tokens = current_app.config.get("API_TOKENS") or {}
        if not tokens:
            g.caller = "anonymous"
            return f(*args, **kwargs)

        auth_header = request.headers.get("Authorization")
        if not auth_header or not auth_header.startswith("Bearer "):
            return jsonify({"error": "Authentication required"}), 401

        token = auth_header.split(" ", 1)[1].strip()
        caller = _resolve_caller(token, tokens)
        if caller is None:
            return jsonify({"error": "Invalid token"}), 401

        g.caller = caller
        return f(*args, **kwargs)

    return decorated_function
