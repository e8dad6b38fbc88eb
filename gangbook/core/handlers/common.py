"""
Building blocks shared by the handlers: authorization, hiring from a fighter
type, granted equipment, effects and exotic beasts.
"""

import logging
from typing import Iterable, Optional

from django.core.exceptions import PermissionDenied, ValidationError
from django.db import DatabaseError, transaction

from gangbook.content.models import (
    ContentEffectType,
    ContentEquipment,
    ContentExoticBeast,
    ContentFighterType,
)
from gangbook.core.models import (
    Fighter,
    FighterEffect,
    FighterEffectModifier,
    FighterEquipment,
    FighterExoticBeast,
    Gang,
    Vehicle,
)
from gangbook.models import FighterClassChoices, GrantSelectionChoices
from gangbook.tracker import track

logger = logging.getLogger(__name__)


def can_manage_gang(user, gang: Gang) -> bool:
    return user.is_staff or gang.owner_id == user.pk


def lock_gang_for(user, gang: Gang, *, allow_archived: bool = False) -> Gang:
    """
    Check ``user`` may change ``gang`` and return it locked for the rest of
    the transaction.
    """
    if not can_manage_gang(user, gang):
        raise PermissionDenied("Not authorized to access this gang")

    locked = gang.locked()
    if not allow_archived:
        locked.ensure_editable()
    return locked


def ensure_same_gang(gang: Gang, *objects):
    for obj in objects:
        if obj is not None and obj.gang_id != gang.pk:
            raise ValidationError(
                f"{obj._meta.verbose_name.capitalize()} does not belong to the same gang"
            )


def hire_from_type(
    *,
    gang: Gang,
    fighter_type: ContentFighterType,
    name: str,
    credits: int,
    fighter_class: Optional[str] = None,
    legacy=None,
) -> Fighter:
    return Fighter.objects.create(
        gang=gang,
        owner=gang.owner,
        name=name,
        fighter_type=fighter_type,
        fighter_class=fighter_class or fighter_type.fighter_class,
        credits=credits,
        special_rules=list(fighter_type.special_rules or []),
        legacy=legacy,
        **fighter_type.statline(),
    )


def give_free_equipment(
    fighter: Fighter, equipment: Iterable[ContentEquipment]
) -> list[FighterEquipment]:
    """Equipment that came with the fighter: recorded at its list price, rated at 0."""
    return [
        FighterEquipment.objects.create(
            gang_id=fighter.gang_id,
            owner=fighter.owner,
            fighter=fighter,
            equipment=item,
            original_cost=item.cost,
            purchase_cost=0,
        )
        for item in equipment
    ]


def give_granted_equipment(item: FighterEquipment, grants) -> list[FighterEquipment]:
    """Create the items ``grants`` add to ``item``, carried alongside it."""
    return [
        FighterEquipment.objects.create(
            gang_id=item.gang_id,
            owner=item.owner,
            fighter=item.fighter,
            vehicle=item.vehicle,
            equipment=grant.granted_equipment,
            original_cost=grant.granted_equipment.cost,
            purchase_cost=grant.additional_cost,
            granted_by=item,
        )
        for grant in grants
    ]


def give_fixed_grants(items: Iterable[FighterEquipment]) -> list[FighterEquipment]:
    """
    Hiring has no choice step, so only equipment with fixed grants brings
    its granted items along.
    """
    granted = []
    for item in items:
        if item.equipment.grant_selection == GrantSelectionChoices.FIXED:
            granted += give_granted_equipment(item, item.equipment.select_grants())
    return granted


def give_default_equipment(fighter: Fighter) -> list[FighterEquipment]:
    defaults = ContentEquipment.objects.filter(
        default_for__fighter_type=fighter.fighter_type
    )
    return give_free_equipment(fighter, defaults)


def create_effect(
    *,
    effect_type: ContentEffectType,
    fighter: Optional[Fighter] = None,
    vehicle: Optional[Vehicle] = None,
    fighter_equipment: Optional[FighterEquipment] = None,
) -> FighterEffect:
    """Apply an effect type to a fighter or vehicle with its default modifiers."""
    effect = FighterEffect.objects.create(
        fighter=fighter,
        vehicle=vehicle,
        effect_type=effect_type,
        name=effect_type.name,
        type_specific_data=dict(effect_type.type_specific_data or {}),
        fighter_equipment=fighter_equipment,
    )
    FighterEffectModifier.objects.bulk_create(
        [
            FighterEffectModifier(
                effect=effect,
                stat_name=modifier.stat_name,
                numeric_value=modifier.default_numeric_value,
            )
            for modifier in effect_type.modifiers.all()
        ]
    )
    return effect


def create_equipment_effects(
    item: FighterEquipment, effect_types: Iterable[ContentEffectType]
) -> list[FighterEffect]:
    """
    Create the bonus effects chosen with a purchase. An effect that cannot be
    created is logged and skipped.
    """
    created = []
    for effect_type in effect_types:
        try:
            with transaction.atomic():
                effect = create_effect(
                    effect_type=effect_type,
                    fighter=item.fighter,
                    vehicle=item.vehicle,
                    fighter_equipment=item,
                )
        except (DatabaseError, ValidationError) as e:
            logger.error(
                f"Failed to create effect {effect_type.pk} for equipment {item.pk}: {e}"
            )
            track("equipment_effect_failed", effect_type=effect_type, item=item)
            continue
        created.append(effect)
    return created


def create_exotic_beasts(item: FighterEquipment) -> list[Fighter]:
    """
    Create the companion creatures granted by the equipment of ``item``,
    owned by the fighter carrying it. A beast that cannot be created is
    logged and skipped.
    """
    owner_fighter = item.fighter
    # Beasts are costed through their owner and cannot own beasts themselves
    if owner_fighter is None or owner_fighter.is_owned_beast:
        return []

    configs = ContentExoticBeast.objects.filter(
        equipment=item.equipment
    ).select_related("fighter_type")

    created = []
    for config in configs:
        try:
            with transaction.atomic():
                beast = hire_from_type(
                    gang=owner_fighter.gang,
                    fighter_type=config.fighter_type,
                    name=config.fighter_type.name,
                    credits=0,
                    fighter_class=FighterClassChoices.EXOTIC_BEAST,
                )
                give_default_equipment(beast)
                FighterExoticBeast.objects.create(
                    owner_fighter=owner_fighter,
                    beast=beast,
                    fighter_equipment=item,
                )
        except (DatabaseError, ValidationError) as e:
            logger.error(
                f"Failed to create exotic beast {config.fighter_type_id} for fighter {owner_fighter.pk}: {e}"
            )
            track("exotic_beast_failed", fighter_type=config.fighter_type, item=item)
            continue
        created.append(beast)
    return created
