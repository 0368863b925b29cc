"""Team members and their skills."""

from __future__ import annotations

from typing import Any

from sqlalchemy import func, select

from farmcms.extensions import db
from farmcms.models import EntityKind, Skill, TeamMember, TeamMemberSkill
from farmcms.services.crud import CRUDService, clean_text, isoformat, to_int
from farmcms.services.reconciliation import sync_url_array_links, unlink_entity

DEFAULT_SKILL_LEVEL = 5


def clamp_level(value: Any) -> int:
    """Skill levels run from 1 to 10; unreadable values fall back to the default."""
    try:
        level = int(value)
    except (TypeError, ValueError):
        level = DEFAULT_SKILL_LEVEL
    return max(1, min(10, level or DEFAULT_SKILL_LEVEL))


def find_or_create_skill(name: str) -> Skill:
    skill = db.session.execute(
        select(Skill).where(func.lower(Skill.name) == name.lower()).limit(1)
    ).scalar_one_or_none()
    if skill is None:
        skill = Skill(name=name)
        db.session.add(skill)
        db.session.flush()
    return skill


class TeamService(CRUDService):
    label = 'team member'
    fields = {
        'name': 'name',
        'role': 'role',
        'bio': 'bio',
        'group': 'group',
        'photoUrl': 'photo_url',
        'order': 'order',
        'socialLinks': 'social_links',
        'skills': 'skills',
    }

    def __init__(self):
        super().__init__(TeamMember)

    def list_members(self) -> list[TeamMember]:
        return self.list_all(order_by=(TeamMember.order.asc(), TeamMember.created_at.desc()))

    def _validate_create(self, data: dict[str, Any]) -> str | None:
        if not clean_text(data.get('name')) or not clean_text(data.get('role')):
            return 'Name and role are required'
        return None

    def _validate_update(self, instance, data: dict[str, Any]) -> str | None:
        for key in ('name', 'role'):
            if key in data and not clean_text(data.get(key)):
                return 'Name and role are required'
        return None

    def _prepare(self, data: dict[str, Any], instance) -> dict[str, Any]:
        data = dict(data)
        for key in ('name', 'role', 'bio', 'group', 'photo_url'):
            if key in data:
                data[key] = clean_text(data[key])
        if 'order' in data or instance is None:
            data['order'] = to_int(data.get('order'), 'Order') or 0
        if 'social_links' in data and not data['social_links']:
            data['social_links'] = None
        if 'skills' in data:
            if instance is not None:
                # Replace the skill set wholesale; old rows must go before the unique pairs return.
                instance.skills.clear()
                db.session.flush()
            data['skills'] = self._build_skills(data['skills'])
        return data

    def _build_skills(self, raw: Any) -> list[TeamMemberSkill]:
        if raw in (None, ''):
            return []
        if not isinstance(raw, list):
            raise ValueError('Skills must be a list')

        links: dict[str, TeamMemberSkill] = {}
        for entry in raw:
            if isinstance(entry, str):
                name, level = entry, DEFAULT_SKILL_LEVEL
            elif isinstance(entry, dict):
                name = entry.get('skillName') or entry.get('name') or (entry.get('skill') or {}).get('name')
                level = entry.get('level')
            else:
                raise ValueError('Each skill needs a name')
            name = clean_text(name)
            if not name:
                raise ValueError('Each skill needs a name')
            skill = find_or_create_skill(name)
            # Repeated skills keep the last level given.
            links[skill.id] = TeamMemberSkill(skill=skill, level=clamp_level(level))
        return list(links.values())

    def _after_save(self, instance: TeamMember, data: dict[str, Any], created: bool) -> None:
        if 'photo_url' not in data:
            return
        # One photo per member: everything else linked to the member is released.
        sync_url_array_links(
            instance.id,
            EntityKind.TEAM_MEMBER,
            [instance.photo_url] if instance.photo_url else [],
        )

    def _before_delete(self, instance: TeamMember) -> None:
        unlink_entity(EntityKind.TEAM_MEMBER, instance.id)


def serialize_member(member: TeamMember) -> dict:
    return {
        'id': member.id,
        'name': member.name,
        'role': member.role,
        'bio': member.bio,
        'group': member.group,
        'photoUrl': member.photo_url,
        'order': member.order,
        'socialLinks': member.social_links,
        'skills': [
            {'skill': {'id': link.skill.id, 'name': link.skill.name}, 'level': link.level}
            for link in sorted(member.skills, key=lambda link: link.skill.name.lower())
        ],
        'createdAt': isoformat(member.created_at),
        'updatedAt': isoformat(member.updated_at),
    }


team_service = TeamService()

__all__ = [
    'TeamService',
    'team_service',
    'clamp_level',
    'find_or_create_skill',
    'serialize_member',
]
