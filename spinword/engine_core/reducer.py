"""
Reducer - Applies actions to game state.

The reducer is the single point of state mutation.
All state changes must go through apply_action().

Design principles:
- Pure function: (state, action) -> new_state (+ history entry)
- Validates before applying; a rejected action leaves the state untouched
- Returns ActionResult with success/failure, never raises for rule breaks
- Rotation follows the game's rotation mode (see rotation.py)
"""

from __future__ import annotations
from dataclasses import dataclass, field

from ..settings import ALPHABET, VOWELS, GameSettings, DEFAULT_SETTINGS
from .state import (
    GameState, GameStatus, PlayerState, PuzzleState, Prize,
    HistoryEntry, HistoryKind, HistoryResult, RotationMode,
)
from .action import Action, ActionType, ActionResult, TURN_ACTIONS
from .errors import ErrorCode
from .rotation import next_player_id, rotation_mode_for, turn_order
from .wheel import (
    OutcomeKind, WheelOutcome, WILD_CARD, MILLION_DOLLAR_WEDGE,
    GIFT_TAG_NAME, GIFT_TAG_VALUE, SPECIAL_LETTER_VALUES,
)


PRIZE_DESCRIPTIONS = {
    "TRIP TO HAWAII": "A 7-day trip for two to Maui, Hawaii including airfare and hotel",
    "NEW CAR": "A brand new sedan courtesy of our sponsors",
    "TRIP TO EUROPE": "A 10-day European vacation for two including airfare",
    GIFT_TAG_NAME: "A $1000 shopping spree gift certificate",
}


def normalize_answer(text: str) -> str:
    """Uppercase and collapse whitespace."""
    return " ".join(text.upper().split())


@dataclass
class Reducer:
    """
    Reducer applies actions to game state.

    Stateless - all state is in GameState.
    Settings provide the rule constants.
    """
    settings: GameSettings = field(default_factory=lambda: DEFAULT_SETTINGS)

    def apply(self, state: GameState, action: Action) -> ActionResult:
        """
        Apply an action to the game state.

        Returns ActionResult with new state or error.
        """
        validation = self._validate_action(state, action)
        if validation:
            message, code = validation
            return ActionResult.failure(message, error_code=code)

        handler = self._get_handler(action.action_type)
        if not handler:
            return ActionResult.failure(f"No handler for action type: {action.action_type}")

        return handler(state, action)

    def _validate_action(self, state: GameState, action: Action) -> tuple[str, ErrorCode] | None:
        """
        Validate that an action is legal in the current state.

        Returns (message, code) if invalid, None if valid.
        """
        action_type = action.action_type

        if state.status == GameStatus.FINISHED and action_type != ActionType.RESTART_GAME:
            return "Game is over - no actions allowed", ErrorCode.INVALID_ACTION

        if state.status == GameStatus.WAITING and action_type != ActionType.START_GAME:
            return "Game not started", ErrorCode.INVALID_ACTION

        if action_type == ActionType.START_GAME and state.status != GameStatus.WAITING:
            return "Game already started", ErrorCode.INVALID_ACTION

        if action_type in TURN_ACTIONS:
            if state.current_player is None:
                return "No seat holds the turn", ErrorCode.INVALID_ACTION
            if not state.is_current(action.player_id):
                return f"Not {action.player_id}'s turn", ErrorCode.WRONG_TURN
            if state.round_complete and action_type != ActionType.END_TURN:
                return "Round is over", ErrorCode.INVALID_ACTION

        return None

    def _get_handler(self, action_type: ActionType):
        handlers = {
            ActionType.BEGIN_SPIN: self._handle_begin_spin,
            ActionType.SPIN: self._handle_spin,
            ActionType.GUESS_LETTER: self._handle_guess_letter,
            ActionType.SOLVE: self._handle_solve,
            ActionType.END_TURN: self._handle_end_turn,
            ActionType.START_GAME: self._handle_start_game,
            ActionType.NEXT_ROUND: self._handle_next_round,
            ActionType.RESTART_GAME: self._handle_restart_game,
        }
        return handlers.get(action_type)

    # ------------------------------------------------------------------
    # Spin
    # ------------------------------------------------------------------

    def _spin_error(self, state: GameState) -> str | None:
        if state.is_final_round:
            return "No spinning in the final round"
        if state.wheel_value is not None:
            return "Call a consonant for your spin first"
        return None

    def _handle_begin_spin(self, state: GameState, action: Action) -> ActionResult:
        error = self._spin_error(state)
        if error:
            return ActionResult.failure(error)
        if state.is_spinning:
            return ActionResult.failure("The wheel is already spinning")

        player = state.current_player
        new_state = state._copy_with(
            is_spinning=True,
            turn_in_progress=True,
            message=f"{player.name} is spinning...",
        )
        return ActionResult.success_with_state(new_state, changes=[f"{player.name} started a spin"])

    def _handle_spin(self, state: GameState, action: Action) -> ActionResult:
        """
        Resolve a spin outcome.

        Bankrupt and Lose a Turn pass play on; every other outcome leaves the
        turn with the spinner, who must call a consonant next.
        """
        outcome = action.payload.outcome
        if outcome is None:
            return ActionResult.failure("Spin has no outcome")
        error = self._spin_error(state)
        if error:
            return ActionResult.failure(error)

        player = state.current_player
        new_state = state._copy_with(
            last_spin_result=outcome,
            wheel_value=None if outcome.ends_turn else outcome,
            is_spinning=False,
            turn_in_progress=False,
        )

        if outcome.kind == OutcomeKind.BANKRUPT:
            bankrupt = player._copy_with(
                round_money=0,
                prizes=tuple(p for p in player.prizes if p.round != state.round),
            )
            new_state = self._rotate(
                new_state.with_player(bankrupt),
                f"BANKRUPT! {player.name} loses this round's money and prizes. ",
            )
            return ActionResult.success_with_state(new_state, changes=[f"{player.name} went bankrupt"])

        if outcome.kind == OutcomeKind.LOSE_TURN:
            new_state = self._rotate(new_state, "LOSE A TURN! ")
            return ActionResult.success_with_state(new_state, changes=[f"{player.name} lost a turn"])

        if outcome.kind == OutcomeKind.MONEY:
            message = f"{player.name} spun ${outcome.amount}! Call a consonant."
        else:
            message = f"{player.name} landed on {outcome.describe()}! Call a consonant to claim it."

        new_state = new_state._copy_with(message=message)
        return ActionResult.success_with_state(
            new_state,
            changes=[f"{player.name} spun {outcome.describe()}"],
        )

    # ------------------------------------------------------------------
    # Letters
    # ------------------------------------------------------------------

    def _handle_guess_letter(self, state: GameState, action: Action) -> ActionResult:
        letter = (action.payload.letter or "").strip().upper()
        if len(letter) != 1 or letter not in ALPHABET:
            return ActionResult.failure("Invalid letter")
        if letter in state.used_letters:
            return ActionResult.failure(f"{letter} has already been called")
        if state.puzzle is None:
            return ActionResult.failure("No puzzle on the board")

        player = state.current_player
        is_vowel = letter in VOWELS
        final = state.is_final_round
        # A letter called against a pending spin is paid by that spin, vowel
        # or not. Vowels are only bought when no spin is pending.
        purchase = False
        use_wild = False

        if final:
            if is_vowel and state.vowels_remaining <= 0:
                return ActionResult.failure("No vowels remaining in the final round")
            if not is_vowel and state.consonants_remaining <= 0:
                return ActionResult.failure("No consonants remaining in the final round")
        elif state.wheel_value is not None:
            pass
        elif is_vowel:
            if player.round_money < self.settings.vowel_cost:
                return ActionResult.failure(
                    f"Not enough money to buy a vowel (${self.settings.vowel_cost} required)"
                )
            purchase = True
        else:
            if not (action.payload.use_wild_card and player.has_card(WILD_CARD)):
                return ActionResult.failure("Spin the wheel first")
            use_wild = True

        count = state.puzzle.count(letter)
        new_state = state._copy_with(
            used_letters=state.used_letters | {letter},
            puzzle=state.puzzle.reveal({letter}) if count else state.puzzle,
        )

        if final:
            new_state = new_state._copy_with(
                vowels_remaining=state.vowels_remaining - (1 if is_vowel else 0),
                consonants_remaining=state.consonants_remaining - (0 if is_vowel else 1),
            )
        elif purchase:
            player = player._copy_with(round_money=player.round_money - self.settings.vowel_cost)

        if use_wild:
            cards = list(player.special_cards)
            cards.remove(WILD_CARD)
            player = player._copy_with(special_cards=tuple(cards))

        entry = HistoryEntry(
            kind=HistoryKind.LETTER,
            player_id=player.player_id,
            player_name=player.name,
            value=letter,
            timestamp=action.timestamp or 0.0,
            result=HistoryResult.CORRECT if count else HistoryResult.INCORRECT,
        )
        new_state = new_state._copy_with(history=state.history + (entry,))

        if not count:
            new_state = self._rotate(
                new_state.with_player(player),
                f"Sorry, no {letter}'s. ",
            )
            return ActionResult.success_with_state(
                new_state,
                changes=[f"{player.name} called {letter}: not in puzzle"],
                history_entry=entry,
            )

        plural = f"{count} {letter}'s" if count > 1 else f"1 {letter}"
        if final:
            message = f"Yes! {plural}."
        elif purchase:
            message = f"Yes! {plural}. {player.name} bought a vowel."
        else:
            player, earned, extra = self._award_letter(state, player, count, use_wild)
            message = f"Yes! {plural}. {player.name} earned ${earned}{extra}."
            # The call uses up the spin
            new_state = new_state._copy_with(wheel_value=None)

        new_state = new_state.with_player(player)._copy_with(message=message)
        return ActionResult.success_with_state(
            new_state,
            changes=[f"{player.name} called {letter}: {count} found"],
            history_entry=entry,
        )

    def _award_letter(
        self,
        state: GameState,
        player: PlayerState,
        count: int,
        use_wild: bool,
    ) -> tuple[PlayerState, int, str]:
        """Pay a matching letter at the spin's value and hand out any wedge item."""
        if use_wild:
            last = state.last_spin_result
            value = last.amount if last and last.kind == OutcomeKind.MONEY else SPECIAL_LETTER_VALUES[OutcomeKind.WILD_CARD]
            earned = value * count
            return player._copy_with(round_money=player.round_money + earned), earned, " with the Wild Card"

        outcome: WheelOutcome = state.wheel_value
        earned = outcome.letter_value * count
        player = player._copy_with(round_money=player.round_money + earned)
        extra = ""

        if outcome.kind == OutcomeKind.PRIZE:
            prize = Prize(
                name=outcome.name or "PRIZE",
                value=outcome.amount,
                round=state.round,
                description=PRIZE_DESCRIPTIONS.get(outcome.name or "", "A fabulous prize!"),
            )
            player = player._copy_with(prizes=player.prizes + (prize,))
            extra = f" and won {prize.name}"
        elif outcome.kind == OutcomeKind.GIFT_TAG:
            prize = Prize(
                name=GIFT_TAG_NAME,
                value=GIFT_TAG_VALUE,
                round=state.round,
                description=PRIZE_DESCRIPTIONS[GIFT_TAG_NAME],
            )
            player = player._copy_with(prizes=player.prizes + (prize,))
            extra = f" and the {GIFT_TAG_NAME}"
        elif outcome.kind == OutcomeKind.WILD_CARD and not player.has_card(WILD_CARD):
            player = player._copy_with(special_cards=player.special_cards + (WILD_CARD,))
            extra = " and got the WILD CARD"
        elif outcome.kind == OutcomeKind.MILLION_WEDGE and not player.has_card(MILLION_DOLLAR_WEDGE):
            player = player._copy_with(special_cards=player.special_cards + (MILLION_DOLLAR_WEDGE,))
            extra = " and kept the MILLION DOLLAR WEDGE"

        return player, earned, extra

    # ------------------------------------------------------------------
    # Solve
    # ------------------------------------------------------------------

    def _handle_solve(self, state: GameState, action: Action) -> ActionResult:
        if state.puzzle is None:
            return ActionResult.failure("No puzzle on the board")

        player = state.current_player
        attempt = normalize_answer(action.payload.attempt or "")
        correct = bool(attempt) and attempt == normalize_answer(state.puzzle.text)

        entry = HistoryEntry(
            kind=HistoryKind.SOLVE,
            player_id=player.player_id,
            player_name=player.name,
            value=attempt,
            timestamp=action.timestamp or 0.0,
            result=HistoryResult.CORRECT if correct else HistoryResult.INCORRECT,
        )
        new_state = state._copy_with(history=state.history + (entry,))

        if not correct:
            budget_spent = (
                state.is_final_round
                and state.consonants_remaining <= 0
                and state.vowels_remaining <= 0
            )
            if budget_spent:
                new_state = new_state._copy_with(
                    status=GameStatus.FINISHED,
                    round_complete=True,
                    wheel_value=None,
                    turn_in_progress=False,
                    message=f"Sorry, the answer was {state.puzzle.text}. Game over!",
                )
            else:
                new_state = self._rotate(new_state, "Incorrect! ")
            return ActionResult.success_with_state(
                new_state,
                changes=[f"{player.name} tried to solve: incorrect"],
                history_entry=entry,
            )

        winner = player._copy_with(total_money=player.total_money + player.round_money)
        new_state = new_state.with_player(winner)._copy_with(
            puzzle=state.puzzle.reveal_all(),
            used_letters=state.used_letters | state.puzzle.letters,
            wheel_value=None,
            is_spinning=False,
            turn_in_progress=False,
            round_complete=True,
            winner_id=winner.player_id,
        )

        game_over = state.rotation_mode == RotationMode.SHARED or state.is_final_round
        if game_over:
            new_state = new_state._copy_with(
                status=GameStatus.FINISHED,
                message=f"{winner.name} solved the puzzle! \"{state.puzzle.text}\"",
            )
        else:
            new_state = new_state._copy_with(
                message=(
                    f"Correct! {winner.name} solved \"{state.puzzle.text}\" "
                    f"and wins round {state.round} with ${player.round_money}!"
                ),
            )

        return ActionResult.success_with_state(
            new_state,
            changes=[f"{winner.name} solved the puzzle"],
            history_entry=entry,
        )

    # ------------------------------------------------------------------
    # Turn handoff
    # ------------------------------------------------------------------

    def _handle_end_turn(self, state: GameState, action: Action) -> ActionResult:
        """
        Manual handoff; `next_player_id` defaults to the next eligible seat.

        An explicit target must be a seat that takes turns in the current
        rotation, so the filler seat of a shared game never receives one.
        """
        target = action.payload.next_player_id or next_player_id(state)
        if target is None or target not in state.players:
            return ActionResult.failure(f"No seat {target} in this game")
        if target not in turn_order(state):
            return ActionResult.failure(f"{state.players[target].name} does not take turns")

        new_state = state._copy_with(
            current_player_id=target,
            wheel_value=None,
            is_spinning=False,
            turn_in_progress=False,
            message=f"{state.players[target].name}'s turn!",
        )
        return ActionResult.success_with_state(
            new_state,
            changes=[f"Turn handed from {state.current_player.name} to {state.players[target].name}"],
        )

    def _rotate(self, state: GameState, prefix: str) -> GameState:
        """Pass the turn to the next eligible seat and clear the pending spin."""
        target = next_player_id(state) or state.current_player_id
        name = state.players[target].name if target in state.players else "Next player"
        return state._copy_with(
            current_player_id=target,
            wheel_value=None,
            is_spinning=False,
            turn_in_progress=False,
            message=f"{prefix}{name}'s turn!",
        )

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def _handle_start_game(self, state: GameState, action: Action) -> ActionResult:
        puzzle = action.payload.puzzle or state.puzzle
        if puzzle is None:
            return ActionResult.failure("Select a puzzle before starting")
        if state.human_count == 0:
            return ActionResult.failure("No human players at the table")

        new_state = state._copy_with(
            status=GameStatus.ACTIVE,
            rotation_mode=rotation_mode_for(state.human_count),
        )
        new_state = self._begin_round(new_state, 1, puzzle)
        return ActionResult.success_with_state(new_state, changes=["Game started"])

    def _handle_next_round(self, state: GameState, action: Action) -> ActionResult:
        """
        Move on after a won round.

        Entering the final round requires the human seat to have won money in
        the round just played; otherwise the whole game starts over.
        """
        if not state.round_complete:
            return ActionResult.failure("Round still in progress")
        puzzle = action.payload.puzzle
        if puzzle is None:
            return ActionResult.failure("No puzzle for the next round")

        upcoming = state.round + 1
        if upcoming >= self.settings.final_round and not state.is_final_round:
            if not any(p.round_money > 0 for p in state.human_players):
                new_state = self._reset_game(state, puzzle)
                new_state = new_state._copy_with(
                    message="No winnings to take into the final round. Starting over from round 1!",
                )
                return ActionResult.success_with_state(new_state, changes=["Game restarted"])

        new_state = self._begin_round(state, upcoming, puzzle)
        return ActionResult.success_with_state(new_state, changes=[f"Round {upcoming} started"])

    def _handle_restart_game(self, state: GameState, action: Action) -> ActionResult:
        puzzle = action.payload.puzzle
        if puzzle is None:
            return ActionResult.failure("No puzzle for the new game")
        new_state = self._reset_game(state, puzzle)
        return ActionResult.success_with_state(new_state, changes=["Game restarted"])

    def _reset_game(self, state: GameState, puzzle: PuzzleState) -> GameState:
        """Full restart: scores, prizes, cards and history all cleared."""
        cleared = state.map_players(
            lambda p: p._copy_with(round_money=0, total_money=0, prizes=(), special_cards=())
        )
        cleared = cleared._copy_with(
            status=GameStatus.ACTIVE,
            rotation_mode=rotation_mode_for(state.human_count),
            history=(),
        )
        return self._begin_round(cleared, 1, puzzle)

    def _begin_round(self, state: GameState, round_number: int, puzzle: PuzzleState) -> GameState:
        """Reset per-round fields and put a fresh puzzle on the board."""
        final = round_number >= self.settings.final_round
        board = PuzzleState(
            text=puzzle.text,
            category=puzzle.category,
            special_format=puzzle.special_format,
        )
        used: frozenset[str] = frozenset()
        if final:
            used = frozenset(self.settings.final_round_letters)
            board = board.reveal(used)

        new_state = state.map_players(lambda p: p._copy_with(round_money=0))
        new_state = new_state._copy_with(
            round=round_number,
            puzzle=board,
            used_letters=used,
            wheel_value=None,
            last_spin_result=None,
            is_spinning=False,
            turn_in_progress=False,
            round_complete=False,
            winner_id=None,
            is_final_round=final,
            consonants_remaining=self.settings.final_round_consonants if final else 0,
            vowels_remaining=self.settings.final_round_vowels if final else 0,
            ai_lease=None,
        )

        starter = new_state.host
        if starter is None or not starter.is_human:
            humans = new_state.human_players
            starter = humans[0] if humans else next(iter(new_state.players.values()), None)
        new_state = new_state._copy_with(current_player_id=starter.player_id if starter else None)

        if final:
            message = (
                f"FINAL ROUND! R, S, T, L, N and E are on the board. "
                f"{starter.name}: call {self.settings.final_round_consonants} consonants "
                f"and {self.settings.final_round_vowels} vowel, then solve."
            )
        else:
            message = f"Round {round_number}! {starter.name}'s turn - spin the wheel to begin!"
        return new_state._copy_with(message=message)


def apply_action(
    state: GameState,
    action: Action,
    settings: GameSettings | None = None,
) -> ActionResult:
    """
    Convenience function to apply an action.

    Creates a Reducer and applies the action.
    """
    reducer = Reducer(settings=settings or DEFAULT_SETTINGS)
    return reducer.apply(state, action)
