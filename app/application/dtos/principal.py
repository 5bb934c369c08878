"""Authenticated caller as supplied by the bearer-token boundary."""

from dataclasses import dataclass


@dataclass(frozen=True)
class Principal:
    """Caller identity: user id plus the project the token was issued for."""

    user_id: str
    project_id: str
    project_name: str

    def belongs_to(self, project_name: str) -> bool:
        return self.project_name == project_name
