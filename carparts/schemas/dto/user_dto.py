from datetime import datetime

from carparts.models.user import User
from carparts.schemas.dto.base_dto import BaseDTO


class UserDTO(BaseDTO):
    id: str
    username: str
    email: str
    role: str
    status: str
    created_at: datetime

    @classmethod
    def from_domain_model(cls, user: User) -> "UserDTO":
        return cls(
            id=user.id,
            username=user.username,
            email=user.email,
            role=user.role.value,
            status=user.status.value,
            created_at=user.created_at,
        )
