"""Request and response structs for the matching service boundary."""

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class SkillProgress(BaseModel):
    """Progress of a user in one skill tree node."""
    model_config = ConfigDict(extra="allow")

    skill_id: str
    level: int = 0


class MatchProfile(BaseModel):
    """The parts of a user's profile that matching looks at."""
    rank: Optional[str] = "F"
    primary_skills: Optional[List[str]] = []
    skill_progress: Optional[List[SkillProgress]] = []
    specialization: Optional[str] = None
    quest_completion_rate: Optional[float] = Field(default=None, ge=0, le=100)


class MatchingResponse(BaseModel):
    """Envelope of the matching service reply; match items are passed through as-is."""
    success: bool
    matches: Optional[List[dict]] = []
    error: Optional[str] = None


class RecommendationRequest(BaseModel):
    user_id: str = Field(min_length=1)
    num_recommendations: int = Field(default=5, ge=1)


class RecommendationResponse(BaseModel):
    model_config = ConfigDict(extra="allow")

    success: bool
    recommendations: List[dict] = []
    error: Optional[str] = None
