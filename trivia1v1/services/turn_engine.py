"""Turn rules of a 1v1 trivia match.

The engine only mutates the Match/MatchPlayer objects it is given and reports
what happened in a TurnOutcome. Loading, locking, persisting the turn record
and committing are the match service's job, so the whole resolution of an
answer lands in a single transaction.

Phases: wheel -> questions -> (wheel | character-round) -> ... -> finished.
"""
from dataclasses import dataclass, field
from datetime import datetime

from trivia1v1.errors import NotYourTurnError, ValidationError
from trivia1v1.models.enums import MatchPhase, MatchStatus


@dataclass
class TurnRules:
    time_limit: float = 20
    streak_for_character_round: int = 3
    characters_per_turn: int = 3
    characters_to_win: int = 6

    @classmethod
    def from_config(cls, config):
        return cls(
            time_limit=float(config.get("QUESTION_TIME_LIMIT", 20)),
            streak_for_character_round=int(config.get("STREAK_FOR_CHARACTER_ROUND", 3)),
            characters_per_turn=int(config.get("CHARACTERS_PER_TURN", 3)),
            characters_to_win=int(config.get("CHARACTERS_TO_WIN", 6)),
        )


@dataclass
class TurnOutcome:
    action: str
    player_id: str
    phase: str = ""
    question_id: int | None = None
    correct: bool = False
    timed_out: bool = False
    streak: int = 0
    character_won: int | None = None
    stolen_from: str | None = None
    turn_passed: bool = False
    next_player_id: str | None = None
    finished: bool = False
    winner_id: str | None = None
    turn_record: dict | None = None
    question_opened: bool = False
    extra: dict = field(default_factory=dict)

    def to_dict(self):
        return {
            "action": self.action,
            "player_id": self.player_id,
            "phase": self.phase,
            "question_id": self.question_id,
            "correct": self.correct,
            "timed_out": self.timed_out,
            "streak": self.streak,
            "character_won": self.character_won,
            "stolen_from": self.stolen_from,
            "turn_passed": self.turn_passed,
            "next_player_id": self.next_player_id,
            "finished": self.finished,
            "winner_id": self.winner_id,
            **self.extra,
        }


class TurnEngine:
    def __init__(self, match, rules=None):
        self.match = match
        self.rules = rules or TurnRules()

    # ---------------------------
    # GUARDS
    # ---------------------------
    def require_active(self):
        if self.match.status == MatchStatus.WAITING.value:
            raise ValidationError("Match has not started yet")
        if self.match.status == MatchStatus.FINISHED.value:
            raise ValidationError("Match is already finished")

    def require_participant(self, user_id):
        player = self.match.player_for(user_id)
        if not player:
            raise NotYourTurnError("You are not a player in this match")
        return player

    def require_turn(self, user_id):
        self.require_active()
        player = self.require_participant(user_id)
        if self.match.current_player_id != user_id:
            raise NotYourTurnError("It is not your turn")
        return player

    def in_character_question(self):
        return (self.match.phase == MatchPhase.CHARACTER_ROUND.value
                and self.match.character_category_id is not None)

    def has_open_question(self):
        if self.match.current_question_id is None or self.match.question_started_at is None:
            return False
        return self.match.phase == MatchPhase.QUESTIONS.value or self.in_character_question()

    def deadline(self):
        if self.match.question_started_at is None:
            return None
        return self.match.question_started_at + self.rules.time_limit

    def time_left(self, now):
        deadline = self.deadline()
        if deadline is None:
            return None
        return max(0.0, deadline - now)

    def is_expired(self, now):
        deadline = self.deadline()
        return deadline is not None and now > deadline

    # ---------------------------
    # WHEEL
    # ---------------------------
    def spin(self, user_id, category_id, questions, now):
        player = self.require_turn(user_id)
        if self.match.phase != MatchPhase.WHEEL.value:
            raise ValidationError("The wheel can only be spun between questions")
        if not questions:
            raise ValidationError("This category has no questions left for this turn")

        self.match.current_category_id = category_id
        self.match.set_queue([q.id for q in questions])
        self._open_question(questions[0].id, now)
        self.match.phase = MatchPhase.QUESTIONS.value

        return TurnOutcome(
            action="spin",
            player_id=user_id,
            phase=self.match.phase,
            question_id=questions[0].id,
            streak=player.current_streak or 0,
            question_opened=True,
            extra={"category_id": category_id},
        )

    # ---------------------------
    # CHARACTER ROUND
    # ---------------------------
    def choose_character(self, user_id, category_id, question, now):
        player = self.require_turn(user_id)
        if self.match.phase != MatchPhase.CHARACTER_ROUND.value:
            raise ValidationError("No character round in progress")
        if self.match.character_category_id is not None:
            raise ValidationError("A character question is already open")
        if player.has_character(category_id):
            raise ValidationError("You already hold this character")
        if question is None:
            raise ValidationError("No questions available for this character")

        opponent = self.match.opponent_of(user_id)
        self.match.character_category_id = category_id
        self.match.character_steal = bool(opponent and opponent.has_character(category_id))
        self._open_question(question.id, now)

        return TurnOutcome(
            action="choose_character",
            player_id=user_id,
            phase=self.match.phase,
            question_id=question.id,
            streak=player.current_streak or 0,
            question_opened=True,
            extra={"category_id": category_id, "steal": bool(self.match.character_steal)},
        )

    def skip_character_round(self, user_id):
        player = self.require_turn(user_id)
        if self.match.phase != MatchPhase.CHARACTER_ROUND.value:
            raise ValidationError("No character round in progress")
        if self.match.character_category_id is not None:
            raise ValidationError("Answer the open character question first")

        outcome = TurnOutcome(action="skip_character_round", player_id=user_id)
        self._pass_turn(player, outcome)
        outcome.phase = self.match.phase
        return outcome

    # ---------------------------
    # ANSWERS
    # ---------------------------
    def answer(self, user_id, option_index, question, now):
        player = self.require_turn(user_id)
        if not self.has_open_question():
            raise ValidationError("No question is open")
        if question is None or question.id != self.match.current_question_id:
            raise ValidationError("Answer does not belong to the open question")

        if self.is_expired(now):
            return self._resolve(player, None, False, True, now)
        return self._resolve(player, option_index, question.is_correct(option_index), False, now)

    def expire(self, now, user_id=None):
        """Timeout. Only once the server clock is past the deadline."""
        self.require_active()
        if user_id is not None:
            self.require_participant(user_id)
        if not self.has_open_question():
            raise ValidationError("No question is open")
        if not self.is_expired(now):
            raise ValidationError("Question time has not run out yet")
        player = self.match.player_for(self.match.current_player_id)
        return self._resolve(player, None, False, True, now)

    def _resolve(self, player, option_index, correct, timed_out, now):
        match = self.match
        in_character = self.in_character_question()
        category_id = match.character_category_id if in_character else match.current_category_id
        question_id = match.current_question_id
        time_taken = min(max(0.0, now - (match.question_started_at or now)), self.rules.time_limit)

        match.current_question_number = (match.current_question_number or 0) + 1
        if correct:
            player.correct_answers = (player.correct_answers or 0) + 1
        else:
            player.incorrect_answers = (player.incorrect_answers or 0) + 1

        outcome = TurnOutcome(
            action="timeout" if timed_out else "answer",
            player_id=player.user_id,
            question_id=question_id,
            correct=correct,
            timed_out=timed_out,
        )
        streak_at_answer = 0

        if in_character:
            if correct:
                streak_at_answer = player.current_streak or 0
                outcome.character_won = category_id
                outcome.stolen_from = self._award_character(player, category_id)
                player.current_streak = 0
                match.characters_this_turn = (match.characters_this_turn or 0) + 1
                self._clear_question()
                if not self._check_winner(outcome):
                    if match.characters_this_turn >= self.rules.characters_per_turn:
                        self._pass_turn(player, outcome)
                    else:
                        match.phase = MatchPhase.WHEEL.value
            else:
                self._pass_turn(player, outcome)
        elif correct:
            player.current_streak = (player.current_streak or 0) + 1
            player.best_streak = max(player.best_streak or 0, player.current_streak)
            streak_at_answer = player.current_streak
            self._clear_question()
            if player.current_streak >= self.rules.streak_for_character_round:
                match.phase = MatchPhase.CHARACTER_ROUND.value
            else:
                match.phase = MatchPhase.WHEEL.value
        else:
            self._pass_turn(player, outcome)

        outcome.streak = player.current_streak or 0
        outcome.phase = match.phase
        outcome.turn_record = {
            "match_id": match.id,
            "player_id": player.user_id,
            "category_id": category_id,
            "question_id": question_id,
            "selected_option": option_index,
            "answer_correct": correct,
            "timed_out": timed_out,
            "time_taken": time_taken,
            "streak_at_answer": streak_at_answer,
            "character_won": outcome.character_won,
        }
        match.touch()
        return outcome

    # ---------------------------
    # STATE HELPERS
    # ---------------------------
    def _open_question(self, question_id, now):
        self.match.current_question_id = question_id
        self.match.question_started_at = now
        asked = self.match.get_asked()
        if question_id not in asked:
            asked.append(question_id)
        self.match.set_asked(asked)
        self.match.touch()

    def _clear_question(self):
        self.match.current_question_id = None
        self.match.question_started_at = None
        self.match.current_category_id = None
        self.match.set_queue([])
        self.match.character_category_id = None
        self.match.character_steal = False

    def _award_character(self, player, category_id):
        """Steal (if the opponent holds it) then claim. Returns the robbed user id."""
        stolen_from = None
        opponent = self.match.opponent_of(player.user_id)
        if opponent and opponent.has_character(category_id):
            opponent.set_characters([c for c in opponent.get_characters() if c != category_id])
            stolen_from = opponent.user_id

        characters = player.get_characters()
        if category_id not in characters and len(characters) < self.rules.characters_to_win:
            characters.append(category_id)
        player.set_characters(characters)
        return stolen_from

    def _pass_turn(self, player, outcome):
        match = self.match
        opponent = match.opponent_of(player.user_id)
        player.current_streak = 0
        # no opponent yet: the turn stays with the only player
        match.current_player_id = opponent.user_id if opponent else player.user_id
        match.phase = MatchPhase.WHEEL.value
        match.current_question_number = 0
        match.characters_this_turn = 0
        match.set_asked([])
        self._clear_question()
        match.touch()
        outcome.turn_passed = True
        outcome.next_player_id = match.current_player_id

    def _check_winner(self, outcome):
        for p in self.match.players:
            if len(p.get_characters()) >= self.rules.characters_to_win:
                self._finish(p.user_id)
                outcome.finished = True
                outcome.winner_id = p.user_id
                return True
        return False

    def _finish(self, winner_id):
        match = self.match
        match.status = MatchStatus.FINISHED.value
        match.phase = MatchPhase.FINISHED.value
        match.winner_id = winner_id
        match.finished_at = datetime.utcnow()
        match.current_player_id = None
        self._clear_question()
        match.touch()
