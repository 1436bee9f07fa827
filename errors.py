from flask import jsonify
from sqlalchemy.exc import IntegrityError
from models import db

class ValidationFailed(Exception):
    """Input rejected before reaching the database.

    ``errors`` is a list of ``{"field": ..., "message": ...}`` dicts, one per
    offending field, so callers can render messages next to form inputs.
    """

    def __init__(self, errors):
        super().__init__("; ".join(f"{e['field']}: {e['message']}" for e in errors))
        self.errors = errors

    @classmethod
    def from_pydantic(cls, exc):
        errors = []
        for err in exc.errors():
            field = ".".join(str(part) for part in err["loc"]) or "__root__"
            errors.append({"field": field, "message": err["msg"]})
        return cls(errors)

def register_error_handlers(app):
    @app.errorhandler(ValidationFailed)
    def validation_failed(e):
        return jsonify(errors=e.errors), 400
    @app.errorhandler(IntegrityError)
    def constraint_violation(e):
        db.session.rollback()
        app.logger.warning("constraint violation: %s", e.orig)
        return jsonify(code=409, message="Record conflicts with existing data"), 409
    @app.errorhandler(404)
    def not_found(e):
        return jsonify(code=404, message="Not found"), 404
    @app.errorhandler(500)
    def server_error(e):
        return jsonify(code=500, message="Something broke on our end"), 500
    @app.errorhandler(403)
    def forbidden(e):
        return jsonify(code=403, message="Access denied"), 403
