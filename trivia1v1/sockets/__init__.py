from .match_events import register_match_events
from .user_events import register_user_events

def register_sockets(socketio):
    register_match_events(socketio)
    register_user_events(socketio)
