from dataclasses import dataclass, field
from datetime import datetime


@dataclass
class User:
    """Domain model representing a marketplace user."""
    id: str
    name: str
    email: str
    phone: str
    user_type: str
    created_at: datetime
    updated_at: datetime
    last_login: datetime | None = None
    external_subject_id: str | None = None
    password_hash: str | None = None
    role: str | None = None
    username: str | None = None
    is_first_login: bool = False
    provider: str = 'password'
    agent_profile: dict | None = None
    preferences: dict = field(default_factory=dict)
