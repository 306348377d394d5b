"""
Row-level access policies.

Every read or write the services perform is preceded by one of these
predicates. They mirror the storage policies of the portal table by table:

- incidents:        read  owner | anonymous | admin | moderator
                    insert owner | anonymous
                    update owner | admin | moderator
- sos_alerts:       read  owner | admin;  insert/update owner
- forum_posts:      read  anyone;  insert/update/delete author
- forum_comments:   read  anyone;  insert/update/delete author
- legal_resources:  read  anyone;  write admin
- user_roles:       read  own | admin;  write admin
- profiles:         read  anyone;  update own

The caller is always an explicit Principal resolved from the request's
bearer credential; nothing here reads ambient session state.
"""

import uuid
from dataclasses import dataclass, field
from typing import FrozenSet, Optional

from safeportal.models.user import AppRole


@dataclass(frozen=True)
class Principal:
    user_id: uuid.UUID
    email: str
    roles: FrozenSet[AppRole] = field(default_factory=frozenset)

    def has_role(self, role: AppRole) -> bool:
        return role in self.roles

    @property
    def is_admin(self) -> bool:
        return AppRole.ADMIN in self.roles

    @property
    def is_elevated(self) -> bool:
        return self.is_admin or AppRole.MODERATOR in self.roles


def _owns(principal: Principal, owner_id: Optional[uuid.UUID]) -> bool:
    return owner_id is not None and owner_id == principal.user_id


# Incidents

def can_read_incident(principal: Principal, incident) -> bool:
    return _owns(principal, incident.user_id) or bool(incident.is_anonymous) or principal.is_elevated


def can_create_incident(principal: Principal, user_id: Optional[uuid.UUID], is_anonymous: bool) -> bool:
    return user_id == principal.user_id or is_anonymous


def can_update_incident(principal: Principal, incident) -> bool:
    return _owns(principal, incident.user_id) or principal.is_elevated


def can_set_incident_status(principal: Principal) -> bool:
    return principal.is_elevated


# SOS alerts

def can_read_sos(principal: Principal, owner_id: uuid.UUID) -> bool:
    return _owns(principal, owner_id) or principal.is_admin


def can_update_sos(principal: Principal, alert) -> bool:
    return _owns(principal, alert.user_id)


# Forum

def can_modify_forum_row(principal: Principal, row) -> bool:
    return _owns(principal, row.user_id)


# Legal resources

def can_manage_legal_resources(principal: Principal) -> bool:
    return principal.is_admin


# Roles

def can_read_roles(principal: Principal, user_id: uuid.UUID) -> bool:
    return _owns(principal, user_id) or principal.is_admin


def can_manage_roles(principal: Principal) -> bool:
    return principal.is_admin


# Profiles

def can_update_profile(principal: Principal, profile_id: uuid.UUID) -> bool:
    return _owns(principal, profile_id)
