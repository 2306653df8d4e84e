"""
TaskTracker Development Server - WebSocket-enabled
Initializes eventlet before the app so Socket.IO gets full WebSocket support.
"""
import eventlet
eventlet.monkey_patch()

import os

os.environ.setdefault("SOCKETIO_ASYNC_MODE", "eventlet")

from app import create_app
from extensions import socketio

app = create_app()

if __name__ == "__main__":
    print("🚀 Starting TaskTracker with WebSocket support...")
    socketio.run(
        app,
        host='0.0.0.0',
        port=int(os.getenv('PORT', '5000')),
        debug=app.config.get('DEBUG', False),
        use_reloader=app.config.get('DEBUG', False),
        log_output=True
    )
