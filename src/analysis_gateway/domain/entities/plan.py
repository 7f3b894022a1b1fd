from dataclasses import dataclass


@dataclass(frozen=True)
class Plan:
    plan_id: int
    name: str
    total_requests: int
