from datetime import datetime
import logging
import os
import sys

from flask import Flask
from flask_cors import CORS

from config import Config
from errors import register_error_handlers
from identity import init_firebase
from models import db
from routes_calendar import register_calendar_routes
from routes_files import register_file_routes
from routes_forum import register_forum_routes
from routes_groups import register_group_routes
from routes_messages import register_message_routes
from routes_notifications import register_notification_routes
from routes_polls import register_poll_routes
from routes_users import register_user_routes

logger = logging.getLogger(__name__)


def configure_logging(config):
    level = getattr(logging, str(config.get('LOG_LEVEL', 'INFO')).upper(), logging.INFO)
    handlers = [logging.StreamHandler(sys.stdout)]
    log_file = config.get('LOG_FILE')
    if log_file:
        log_dir = os.path.dirname(log_file)
        if log_dir:
            os.makedirs(log_dir, exist_ok=True)
        handlers.append(logging.FileHandler(log_file))
    logging.basicConfig(level=level, format=config.get('LOG_FORMAT'), handlers=handlers)


def create_app(config_object=Config):
    app = Flask(__name__)
    app.config.from_object(config_object)
    configure_logging(app.config)

    CORS(app, resources={r"/*": {"origins": app.config['CORS_ORIGINS'].split(',')}})

    db.init_app(app)
    init_firebase(app)
    register_error_handlers(app)

    @app.get("/health")
    def health():
        return {"status": "ok"}

    @app.get("/api/test")
    def api_test():
        return {
            "status": "ok",
            "timestamp": datetime.utcnow().isoformat() + "Z",
            "message": "API is working",
        }

    # real-time transport is served elsewhere; clients only probe this path
    @app.get("/api/socket")
    def socket_placeholder():
        return "Socket.IO endpoint", 200

    register_group_routes(app)
    register_forum_routes(app)
    register_poll_routes(app)
    register_calendar_routes(app)
    register_message_routes(app)
    register_notification_routes(app)
    register_user_routes(app)
    register_file_routes(app)

    logger.info("app created (env=%s)", app.config.get('ENV'))
    return app


if __name__ == '__main__':
    app = create_app()
    with app.app_context():
        db.create_all()
    app.run(host='0.0.0.0', port=5000, debug=True)
