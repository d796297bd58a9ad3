from extensions import socketio


def match_room(match_id):
    return f"match:{match_id}"


def user_room(user_id):
    return f"user:{user_id}"


def broadcast_match(snapshot):
    """Push the committed match row and player rows to everyone watching the match."""
    match_id = snapshot["match"]["id"]
    room = match_room(match_id)
    socketio.emit("match_updated", {
        "match": snapshot["match"],
        "question": snapshot.get("question"),
        "time_left": snapshot.get("time_left"),
    }, to=room)
    socketio.emit("players_updated", {
        "match_id": match_id,
        "players": snapshot["players"],
    }, to=room)


def broadcast_question_result(match_id, result):
    socketio.emit("question_result", result, to=match_room(match_id))


def notify_user(user_id, event, payload):
    socketio.emit(event, payload, to=user_room(user_id))
