"""
Tests for the request and response models.

Validates that:
- Moves, snapshots and errors dump to the JSON clients expect
- Every error code has a wire value and an HTTP status
- The OpenAPI schema lists every endpoint with a response model
"""

import pytest
from pydantic import ValidationError


class TestModels:
    """Tests for model validation and dumping."""

    def test_game_response_schema(self):
        """GameResponse has all required fields."""
        from spinword.api.schemas import GameResponse, PlayerInfo, PuzzleInfo, OutcomeInfo

        response = GameResponse(
            game_id="game-123",
            join_code="ABC123",
            status="active",
            round=2,
            current_player_id="player_1",
            puzzle=PuzzleInfo(category="PHRASE", board="G___T ____", revealed=["G", "T"]),
            used_letters=["G", "T", "Z"],
            wheel_value=OutcomeInfo(kind="money", amount=500, label="$500"),
            players=[
                PlayerInfo(
                    player_id="player_1",
                    name="Jen",
                    is_host=True,
                    is_human=True,
                    is_current_turn=True,
                    round_money=500,
                    total_money=1200,
                ),
                PlayerInfo(
                    player_id="computer_1",
                    name="Computer 1",
                    is_host=False,
                    is_human=False,
                    is_current_turn=False,
                    round_money=0,
                    total_money=0,
                ),
            ],
            version=7,
        )

        data = response.model_dump(mode="json")
        assert data["status"] == "active"
        assert data["puzzle"]["answer"] is None
        assert data["wheel_value"]["label"] == "$500"
        assert len(data["players"]) == 2
        assert data["players"][0]["is_host"] is True
        assert data["api_version"] == "v1"

    def test_status_must_be_known(self):
        from spinword.api.schemas import GameResponse

        with pytest.raises(ValidationError):
            GameResponse(game_id="g", join_code="ABC123", status="paused", round=1)

    def test_move_request_schema(self):
        """MoveRequest accepts every move type by value."""
        from spinword.api.schemas import MoveRequest, MoveType

        request = MoveRequest.model_validate(
            {"type": "guess_letter", "player_id": "player_1", "letter": "T"}
        )

        assert request.type == MoveType.GUESS_LETTER
        assert request.use_wild_card is False
        assert {m.value for m in MoveType} == {
            "spin", "guess_letter", "solve", "end_turn", "claim_turn",
        }

    def test_move_request_validation(self):
        """One letter at a time, and the move type is required."""
        from spinword.api.schemas import MoveRequest

        with pytest.raises(ValidationError):
            MoveRequest(type="guess_letter", player_id="player_1", letter="TS")
        with pytest.raises(ValidationError):
            MoveRequest(player_id="player_1")
        with pytest.raises(ValidationError):
            MoveRequest(type="buy_vowel", player_id="player_1")

    def test_create_request_needs_name(self):
        from spinword.api.schemas import CreateGameRequest

        with pytest.raises(ValidationError):
            CreateGameRequest(name="")

        request = CreateGameRequest(name="Jen")
        assert request.join_code is None

    def test_error_response_schema(self):
        """Errors carry a machine-readable code next to the message."""
        from spinword.api.schemas import ErrorResponse, ErrorCode

        error = ErrorResponse(
            error="No game with code NOPE99",
            error_code=ErrorCode.NOT_FOUND,
            details={"join_code": "NOPE99"},
        )

        data = error.model_dump(mode="json")
        assert data["error"] == "No game with code NOPE99"
        assert data["error_code"] == "NOT_FOUND"
        assert data["details"]["join_code"] == "NOPE99"
        assert data["api_version"] == "v1"

    def test_move_response_schema(self):
        from spinword.api.schemas import MoveResponse, ErrorCode

        response = MoveResponse(
            success=False,
            error="Not player_2's turn",
            error_code=ErrorCode.WRONG_TURN,
        )

        data = response.model_dump(mode="json")
        assert data["error_code"] == "WRONG_TURN"
        assert data["changes"] == []
        assert data["game"] is None


class TestErrorCodes:
    """Tests for the error code enum."""

    def test_engine_codes_present(self):
        """Each engine failure kind has a wire code."""
        from spinword.api.schemas import ErrorCode

        expected = [
            "NOT_FOUND",
            "FULL",
            "INVALID_ACTION",
            "WRONG_TURN",
            "STALE_WRITE",
            "STORE_UNAVAILABLE",
        ]

        for code in expected:
            assert code in ErrorCode.__members__
            assert ErrorCode[code].value == code

    def test_wire_values(self):
        """Codes dump as their upper-case names."""
        from spinword.api.schemas import ErrorCode

        for code in ErrorCode:
            assert isinstance(code.value, str)
            assert code.value == code.value.upper()

    def test_every_code_has_status(self):
        """Every error code maps to an HTTP status."""
        from spinword.api.app import STATUS_CODES
        from spinword.api.schemas import ErrorCode

        assert set(STATUS_CODES) == set(ErrorCode)
        assert STATUS_CODES[ErrorCode.STORE_UNAVAILABLE] == 503


class TestOpenAPISchema:
    """Tests for the generated OpenAPI document."""

    @pytest.fixture
    def schema(self):
        from spinword.api.app import create_app
        from fastapi.openapi.utils import get_openapi

        app = create_app()
        return get_openapi(
            title=app.title,
            version=app.version,
            routes=app.routes,
        )

    def test_openapi_schema_generates(self, schema):
        """The document builds from the app routes."""
        assert "paths" in schema
        assert "components" in schema
        assert "schemas" in schema["components"]

    def test_response_models_in_schema(self, schema):
        """Every response model is published as a component."""
        published = schema["components"]["schemas"]

        for name in ("GameResponse", "JoinResponse", "MoveResponse", "LeaveResponse", "ErrorResponse"):
            assert name in published, name

    def test_endpoints_have_response_models(self, schema):
        """Create, fetch and move routes document a 200 response."""
        paths = schema["paths"]

        # POST /api/v1/games returns JoinResponse
        assert "/api/v1/games" in paths
        assert "200" in paths["/api/v1/games"]["post"]["responses"]

        # GET /api/v1/games/{join_code} returns GameResponse
        assert "/api/v1/games/{join_code}" in paths
        assert "200" in paths["/api/v1/games/{join_code}"]["get"]["responses"]

        # POST /api/v1/games/{join_code}/moves returns MoveResponse
        assert "/api/v1/games/{join_code}/moves" in paths
        assert "200" in paths["/api/v1/games/{join_code}/moves"]["post"]["responses"]
