from typing import Literal

from storefront.schemas.common import CamelModel

UserRole = Literal["user", "admin"]


class RoleUpdate(CamelModel):
    role: UserRole
