# --- Pydantic Models ---
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from typing import Optional


class MetricsRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    apm: float = Field(..., ge=0)
    pps: float = Field(..., ge=0)
    game_time: float = Field(..., ge=0, alias='gameTime')


class ScoreRequest(BaseModel):
    player_id: str = Field(..., min_length=1, max_length=100)
    score: int = Field(..., ge=0)
    metrics: MetricsRequest
    replay_hash: Optional[str] = Field(None, min_length=1, max_length=128)
    timestamp: Optional[int] = Field(None, ge=0)
    game: Optional[str] = Field(None, min_length=1, max_length=100)

    @field_validator('player_id', 'game')
    @classmethod
    def validate_id(cls, v):
        if v is None:
            return v
        if not v.strip():
            raise ValueError('ID cannot be empty or whitespace')
        return v.strip()


class RegisterRequest(BaseModel):
    player_id: str = Field(..., min_length=1, max_length=100)
    display_name: Optional[str] = Field(None, min_length=1, max_length=50)

    @field_validator('player_id')
    @classmethod
    def validate_id(cls, v):
        if not v.strip():
            raise ValueError('ID cannot be empty or whitespace')
        return v.strip()


class ProfileUpdateRequest(BaseModel):
    display_name: str = Field(..., min_length=1, max_length=50)


class TournamentCreateRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    game_id: Optional[str] = Field(None, min_length=1, max_length=100)
    type: str = Field('daily', min_length=1, max_length=20)
    start_time: Optional[int] = Field(None, ge=0)
    end_time: Optional[int] = Field(None, ge=0)
    entry_fee: Optional[float] = Field(None, ge=0)
    max_participants: Optional[int] = Field(None, ge=1, le=100000)

    @model_validator(mode='after')
    def check_window(self):
        if self.start_time is not None and self.end_time is not None and self.end_time <= self.start_time:
            raise ValueError('end_time must be after start_time')
        return self


class TournamentJoinRequest(BaseModel):
    player_id: str = Field(..., min_length=1, max_length=100)

    @field_validator('player_id')
    @classmethod
    def validate_id(cls, v):
        if not v.strip():
            raise ValueError('ID cannot be empty or whitespace')
        return v.strip()
