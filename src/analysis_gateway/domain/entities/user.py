from dataclasses import dataclass
from datetime import datetime
from typing import Optional


@dataclass
class User:
    id: int
    email: str
    plan_id: int
    used_requests: int
    reset_date: Optional[datetime]
    created_at: Optional[datetime] = None
