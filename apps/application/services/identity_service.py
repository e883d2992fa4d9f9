from dataclasses import dataclass
from typing import Optional
from django.contrib.auth.models import User
from apps.domain.exceptions import AccessDenied
from apps.domain.models import Member


@dataclass(frozen=True)
class Principal:
    id: int
    role: str
    organization_id: Optional[int]
    name: str = ''
    email: str = ''

    @property
    def is_admin_or_staff(self) -> bool:
        return self.role in ('admin', 'staff')

    def can_access_organization(self, organization_id) -> bool:
        if self.is_admin_or_staff:
            return True
        return self.organization_id is not None and self.organization_id == organization_id


class IdentityService:
    def resolve(self, user: Optional[User]) -> Principal:
        if user is None or not user.is_authenticated:
            raise AccessDenied('Authentication required')

        name = user.get_full_name() or user.username
        try:
            member = user.member
        except Member.DoesNotExist:
            if user.is_superuser:
                return Principal(id=user.id, role='admin', organization_id=None, name=name, email=user.email)
            raise AccessDenied('User is not registered as a member')

        return Principal(
            id=user.id,
            role=member.role,
            organization_id=member.organization_id,
            name=name,
            email=user.email,
        )

    def require_admin_or_staff(self, user: Optional[User]) -> Principal:
        principal = self.resolve(user)
        if not principal.is_admin_or_staff:
            raise AccessDenied('Admin or staff access required')
        return principal

    def require_org_access(self, principal: Principal, organization_id) -> Principal:
        if not principal.can_access_organization(organization_id):
            raise AccessDenied('Access denied')
        return principal
