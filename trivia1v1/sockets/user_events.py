from flask import request
from flask_socketio import emit, join_room

from trivia1v1.errors import TriviaError
from trivia1v1.routes.utils import normalize_user_id
from trivia1v1.services.realtime import user_room


def register_user_events(socketio):

    # ---------------------------
    # USER ROOM (invitations, turn pings)
    # ---------------------------
    @socketio.on("user_subscribe")
    def handle_user_subscribe(data):
        try:
            user_id = normalize_user_id((data or {}).get("user_id"))
        except TriviaError as e:
            emit("match_error", e.to_dict(), to=request.sid)
            return
        join_room(user_room(user_id))
        emit("user_subscribed", {"user_id": user_id}, to=request.sid)
