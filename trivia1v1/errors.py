class TriviaError(Exception):
    """Base error for match, invitation and admin operations."""
    status_code = 400

    def __init__(self, msg, status_code=None):
        super().__init__(msg)
        self.msg = msg
        if status_code is not None:
            self.status_code = status_code

    def to_dict(self):
        return {"status": "error", "msg": self.msg, "code": self.__class__.__name__}


class ValidationError(TriviaError):
    status_code = 400


class AuthError(TriviaError):
    status_code = 401


class NotYourTurnError(TriviaError):
    status_code = 403


class NotFoundError(TriviaError):
    status_code = 404


class ConflictError(TriviaError):
    status_code = 409
