import logging
from flask import Flask
from config import DevConfig
from models import db
from errors import register_error_handlers

def create_app(config_object=DevConfig):
    app = Flask(__name__)
    app.config.from_object(config_object)
    app.logger.setLevel(getattr(logging, str(app.config.get("LOG_LEVEL", "INFO")).upper(), logging.INFO))

    db.init_app(app)
    register_error_handlers(app)

    # tables are created at startup; there is no migration tool yet
    with app.app_context():
        db.create_all()

    return app

if __name__ == "__main__":
    create_app().run(host="0.0.0.0", port=5000, debug=True)
