"""
Business logic handlers for campaigns: settings, members, gangs,
territories and battle reports.

Owners and arbitrators run a campaign. Members take part with their gangs.
"""

import logging
from dataclasses import dataclass, field
from typing import Iterable, Optional
from uuid import UUID

from django.core.exceptions import PermissionDenied, ValidationError
from django.db import DatabaseError, transaction

from gangbook.content.models import (
    ContentCampaignType,
    ContentScenario,
    ContentTerritory,
)
from gangbook.core.cache import campaign_tag, gang_tag, invalidate_on_commit
from gangbook.core.models import (
    Campaign,
    CampaignBattle,
    CampaignGang,
    CampaignGangStatus,
    CampaignMember,
    CampaignRole,
    CampaignTerritory,
    Gang,
    GangLogType,
)
from gangbook.tracing import traced
from gangbook.tracker import track

logger = logging.getLogger(__name__)

BATTLE_ROLES = ("attacker", "defender", "none")


@dataclass
class BattleResult:
    battle: CampaignBattle
    claimed_territories: list[CampaignTerritory] = field(default_factory=list)
    failed_claims: list = field(default_factory=list)


def _ensure_manager(campaign: Campaign, user):
    if not campaign.is_manager(user):
        raise PermissionDenied("Only campaign owners and arbitrators can do this")


def _ensure_owner(campaign: Campaign, user):
    if not campaign.is_owner(user):
        raise PermissionDenied("Only campaign owners can do this")


def _ensure_member(campaign: Campaign, user):
    if not user.is_staff and campaign.role_of(user) is None:
        raise PermissionDenied("You are not a member of this campaign")


def _ensure_active(campaign: Campaign):
    if campaign.status != Campaign.ACTIVE or campaign.archived:
        raise ValidationError("Campaign has ended")


def _invalidate(campaign: Campaign, *gangs):
    invalidate_on_commit(
        campaign_tag(campaign.pk),
        *(gang_tag(gang.pk) for gang in gangs if gang is not None),
    )


def _ensure_campaign_gang(campaign: Campaign, gang: Optional[Gang]):
    # Invited gangs take part once their owner accepts
    entries = campaign.campaign_gangs.filter(
        gang=gang, status=CampaignGangStatus.ACCEPTED
    )
    if gang is not None and not entries.exists():
        raise ValidationError(f"{gang.name} is not part of this campaign")


@traced("handle_create_campaign")
@transaction.atomic
def handle_create_campaign(
    *,
    user,
    name: str,
    campaign_type: Optional[ContentCampaignType] = None,
    description: str = "",
) -> Campaign:
    """Create a campaign. The creator becomes its owner."""
    name = (name or "").strip()
    if not name:
        raise ValidationError("Campaign name is required")

    campaign = Campaign.objects.create_with_user(
        user=user,
        owner=user,
        name=name,
        campaign_type=campaign_type,
        description=description,
    )
    CampaignMember.objects.create(
        campaign=campaign, user=user, role=CampaignRole.OWNER, invited_by=user
    )
    track("campaign_created", campaign=campaign, campaign_type=campaign_type)
    return campaign


@traced("handle_update_campaign")
@transaction.atomic
def handle_update_campaign(
    *,
    user,
    campaign: Campaign,
    name: Optional[str] = None,
    description: Optional[str] = None,
    status: Optional[str] = None,
) -> Campaign:
    _ensure_manager(campaign, user)

    if name is not None:
        name = name.strip()
        if not name:
            raise ValidationError("Campaign name is required")
        campaign.name = name
    if description is not None:
        campaign.description = description
    if status is not None:
        if status not in (Campaign.ACTIVE, Campaign.ENDED):
            raise ValidationError(f"Invalid campaign status: {status}")
        campaign.status = status

    campaign.save_with_user(user=user)
    _invalidate(campaign)
    track("campaign_updated", campaign=campaign)
    return campaign


@traced("handle_delete_campaign")
@transaction.atomic
def handle_delete_campaign(*, user, campaign: Campaign) -> UUID:
    _ensure_owner(campaign, user)
    campaign_id = campaign.pk
    gangs = [entry.gang for entry in campaign.campaign_gangs.select_related("gang")]

    campaign._history_user = user
    campaign.delete()

    invalidate_on_commit(campaign_tag(campaign_id), *(gang_tag(g.pk) for g in gangs))
    track("campaign_deleted", campaign=campaign_id)
    return campaign_id


@traced("handle_add_campaign_member")
@transaction.atomic
def handle_add_campaign_member(
    *, user, campaign: Campaign, member_user, role: str = CampaignRole.MEMBER
) -> CampaignMember:
    _ensure_manager(campaign, user)
    if role not in CampaignRole.values:
        raise ValidationError(f"Invalid role: {role}")
    if role == CampaignRole.OWNER:
        _ensure_owner(campaign, user)
    if campaign.members.filter(user=member_user).exists():
        raise ValidationError(f"{member_user.username} is already a member")

    member = CampaignMember.objects.create(
        campaign=campaign, user=member_user, role=role, invited_by=user
    )
    _invalidate(campaign)
    track("campaign_member_added", campaign=campaign, role=role)
    return member


def _ensure_not_last_owner(member: CampaignMember):
    if member.role != CampaignRole.OWNER:
        return
    owners = member.campaign.members.filter(role=CampaignRole.OWNER)
    if owners.exclude(pk=member.pk).count() == 0:
        raise ValidationError("A campaign must keep at least one owner")


@traced("handle_update_member_role")
@transaction.atomic
def handle_update_member_role(*, user, member: CampaignMember, role: str) -> CampaignMember:
    campaign = member.campaign
    _ensure_owner(campaign, user)
    if role not in CampaignRole.values:
        raise ValidationError(f"Invalid role: {role}")
    if role != CampaignRole.OWNER:
        _ensure_not_last_owner(member)

    member.role = role
    member.save(update_fields=["role", "modified"])
    _invalidate(campaign)
    track("campaign_member_role_changed", campaign=campaign, role=role)
    return member


@traced("handle_remove_campaign_member")
@transaction.atomic
def handle_remove_campaign_member(*, user, member: CampaignMember) -> UUID:
    """
    Remove a member, and the gangs they play, from a campaign. Members may
    remove themselves.
    """
    campaign = member.campaign
    if member.user_id != user.pk:
        _ensure_manager(campaign, user)
    _ensure_not_last_owner(member)

    entries = list(
        campaign.campaign_gangs.filter(user=member.user_id).select_related("gang")
    )
    gangs = [entry.gang for entry in entries]
    campaign.territories.filter(gang__in=gangs).update(gang=None)
    for entry in entries:
        entry.delete()

    member_id = member.pk
    member.delete()
    _invalidate(campaign, *gangs)
    track("campaign_member_removed", campaign=campaign, gangs=len(gangs))
    return member_id


@traced("handle_add_campaign_gang")
@transaction.atomic
def handle_add_campaign_gang(*, user, campaign: Campaign, gang: Gang) -> CampaignGang:
    """
    Enter a gang into a campaign.

    A member entering their own gang joins straight away. An owner or
    arbitrator entering another member's gang creates an invitation the gang
    owner has to accept.
    """
    if campaign.campaign_gangs.filter(gang=gang).exists():
        raise ValidationError(f"{gang.name} is already part of this campaign")
    if gang.archived:
        raise ValidationError("Cannot add an archived gang to a campaign")

    if gang.owner_id == user.pk:
        _ensure_member(campaign, user)
        status = CampaignGangStatus.ACCEPTED
    else:
        _ensure_manager(campaign, user)
        if not campaign.members.filter(user=gang.owner_id).exists():
            raise ValidationError("The gang owner is not a member of this campaign")
        status = CampaignGangStatus.PENDING

    entry = CampaignGang.objects.create(
        campaign=campaign, gang=gang, user=gang.owner, status=status
    )
    _invalidate(campaign, gang)
    track("campaign_gang_added", campaign=campaign, gang=gang, status=status)
    return entry


def _pending_invitation(user, entry: CampaignGang, verb: str):
    if entry.gang.owner_id != user.pk:
        raise PermissionDenied(f"Only the gang owner can {verb} this invitation")
    if entry.status != CampaignGangStatus.PENDING:
        raise ValidationError("No pending invitation found")


@traced("handle_accept_campaign_gang")
@transaction.atomic
def handle_accept_campaign_gang(*, user, entry: CampaignGang) -> CampaignGang:
    _pending_invitation(user, entry, "accept")
    entry.status = CampaignGangStatus.ACCEPTED
    entry.save(update_fields=["status", "modified"])
    _invalidate(entry.campaign, entry.gang)
    track("campaign_gang_accepted", campaign=entry.campaign_id, gang=entry.gang_id)
    return entry


@traced("handle_decline_campaign_gang")
@transaction.atomic
def handle_decline_campaign_gang(*, user, entry: CampaignGang) -> UUID:
    _pending_invitation(user, entry, "decline")
    entry_id = entry.pk
    entry.delete()
    _invalidate(entry.campaign, entry.gang)
    track("campaign_gang_declined", campaign=entry.campaign_id, gang=entry.gang_id)
    return entry_id


@traced("handle_remove_campaign_gang")
@transaction.atomic
def handle_remove_campaign_gang(*, user, entry: CampaignGang) -> UUID:
    """Take a gang out of a campaign, releasing the territories it holds."""
    campaign = entry.campaign
    if entry.gang.owner_id != user.pk:
        _ensure_manager(campaign, user)

    campaign.territories.filter(gang=entry.gang).update(gang=None)
    entry_id = entry.pk
    entry.delete()
    _invalidate(campaign, entry.gang)
    track("campaign_gang_removed", campaign=campaign, gang=entry.gang)
    return entry_id


@traced("handle_add_campaign_territory")
@transaction.atomic
def handle_add_campaign_territory(
    *,
    user,
    campaign: Campaign,
    territory: Optional[ContentTerritory] = None,
    name: Optional[str] = None,
) -> CampaignTerritory:
    """Add a catalog territory, or a free-form one by name, to a campaign."""
    _ensure_manager(campaign, user)
    name = (name or "").strip() or (territory.name if territory else "")
    if not name:
        raise ValidationError("Either territory_id or name must be provided")

    campaign_territory = CampaignTerritory.objects.create(
        campaign=campaign, territory=territory, name=name
    )
    _invalidate(campaign)
    track("campaign_territory_added", campaign=campaign, custom=territory is None)
    return campaign_territory


@traced("handle_update_campaign_territory")
@transaction.atomic
def handle_update_campaign_territory(
    *,
    user,
    territory: CampaignTerritory,
    gang=None,
    clear_gang: bool = False,
    ruined: Optional[bool] = None,
    default_gang_territory: Optional[bool] = None,
) -> CampaignTerritory:
    """Assign or clear the holder of a territory and update its flags."""
    campaign = territory.campaign
    _ensure_manager(campaign, user)

    previous = territory.gang
    if clear_gang:
        territory.gang = None
    elif gang is not None:
        _ensure_campaign_gang(campaign, gang)
        territory.gang = gang
    if ruined is not None:
        territory.ruined = ruined
    if default_gang_territory is not None:
        territory.default_gang_territory = default_gang_territory

    territory.save()
    _invalidate(campaign, previous, territory.gang)
    track("campaign_territory_updated", campaign=campaign, territory=territory)
    return territory


@traced("handle_remove_campaign_territory")
@transaction.atomic
def handle_remove_campaign_territory(*, user, territory: CampaignTerritory) -> UUID:
    campaign = territory.campaign
    _ensure_manager(campaign, user)
    holder = territory.gang
    territory_id = territory.pk
    territory.delete()
    _invalidate(campaign, holder)
    track("campaign_territory_removed", campaign=campaign)
    return territory_id


def _battle_outcome(gang: Gang, winner: Optional[Gang]) -> str:
    if winner is None:
        return "draw"
    return "won" if winner.pk == gang.pk else "lost"


def _log_battle_results(*, user, battle: CampaignBattle, scenario_name: str):
    campaign = battle.campaign
    pairs = [(battle.attacker, battle.defender), (battle.defender, battle.attacker)]
    for gang, opponent in pairs:
        if gang is None:
            continue
        against = f" against {opponent.name}" if opponent is not None else ""
        gang.locked().create_action(
            user=user,
            action_type=GangLogType.BATTLE_RESULT,
            description=f"{_battle_outcome(gang, battle.winner).capitalize()} "
            f"{scenario_name or 'a battle'}{against} in {campaign.name}",
            subject=battle,
        )


def _claim_territories(
    *, user, battle: CampaignBattle, territory_ids: Iterable
) -> tuple[list[CampaignTerritory], list]:
    """
    Hand the claimed territories to the winner. A claim that fails is logged
    and skipped.
    """
    claimed, failed = [], []
    winner = battle.winner
    for territory_id in territory_ids:
        try:
            with transaction.atomic():
                territory = CampaignTerritory.objects.get(
                    pk=territory_id, campaign=battle.campaign
                )
                territory.gang = winner
                territory.save(update_fields=["gang", "modified"])
                winner.locked().create_action(
                    user=user,
                    action_type=GangLogType.TERRITORY_CLAIMED,
                    description=f"Claimed {territory.name} in {battle.campaign.name}",
                    subject=territory,
                )
        except (CampaignTerritory.DoesNotExist, DatabaseError, ValidationError) as e:
            logger.error(f"Territory claim {territory_id} for battle {battle.pk} failed: {e}")
            track("territory_claim_failed", battle=battle, territory=str(territory_id))
            failed.append(territory_id)
            continue
        claimed.append(territory)
    return claimed, failed


def _validate_battle_gangs(campaign, attacker, defender, winner):
    for gang in (attacker, defender, winner):
        _ensure_campaign_gang(campaign, gang)
    if winner is not None and winner not in (attacker, defender):
        raise ValidationError("The winner must be the attacker or the defender")


def _validate_participants(participants) -> list:
    participants = list(participants or [])
    for participant in participants:
        if participant.get("role", "none") not in BATTLE_ROLES:
            raise ValidationError(f"Invalid battle role: {participant.get('role')}")
    return participants


@traced("handle_create_battle")
@transaction.atomic
def handle_create_battle(
    *,
    user,
    campaign: Campaign,
    attacker: Optional[Gang] = None,
    defender: Optional[Gang] = None,
    winner: Optional[Gang] = None,
    scenario: Optional[ContentScenario] = None,
    scenario_name: str = "",
    note: str = "",
    participants=None,
    claimed_territory_ids=None,
) -> BattleResult:
    """
    Record a battle report.

    This handler performs the following operations atomically:
    1. Checks the user is a campaign member and the campaign is active
    2. Validates that the gangs are part of the campaign
    3. Creates the battle, pointing at the first claimed territory
    4. Writes the result to the attacker's and defender's gang logs
    5. Hands each claimed territory to the winner (skipped individually on
       failure)
    """
    _ensure_member(campaign, user)
    _ensure_active(campaign)
    _validate_battle_gangs(campaign, attacker, defender, winner)
    participants = _validate_participants(participants)
    claimed_territory_ids = list(claimed_territory_ids or [])

    scenario_name = scenario_name or (scenario.name if scenario else "")
    first_claim = (
        campaign.territories.filter(pk=claimed_territory_ids[0]).first()
        if claimed_territory_ids
        else None
    )
    battle = CampaignBattle.objects.create_with_user(
        user=user,
        owner=user,
        campaign=campaign,
        scenario=scenario,
        scenario_name=scenario_name,
        attacker=attacker,
        defender=defender,
        winner=winner,
        note=note,
        participants=participants,
        territory=first_claim,
    )

    _log_battle_results(user=user, battle=battle, scenario_name=scenario_name)

    claimed, failed = [], []
    if winner is not None and claimed_territory_ids:
        claimed, failed = _claim_territories(
            user=user, battle=battle, territory_ids=claimed_territory_ids
        )

    _invalidate(campaign, attacker, defender)
    track("battle_created", campaign=campaign, claimed=len(claimed), failed=len(failed))
    return BattleResult(battle=battle, claimed_territories=claimed, failed_claims=failed)


def _ensure_can_edit_battle(user, battle: CampaignBattle):
    if battle.owner_id != user.pk:
        _ensure_manager(battle.campaign, user)


@traced("handle_update_battle")
@transaction.atomic
def handle_update_battle(
    *,
    user,
    battle: CampaignBattle,
    attacker=None,
    defender=None,
    winner=None,
    clear_winner: bool = False,
    scenario_name: Optional[str] = None,
    note: Optional[str] = None,
    participants=None,
) -> CampaignBattle:
    """Edit a battle report. Territories already claimed are not moved."""
    _ensure_can_edit_battle(user, battle)

    previous = [battle.attacker, battle.defender]
    if attacker is not None:
        battle.attacker = attacker
    if defender is not None:
        battle.defender = defender
    if clear_winner:
        battle.winner = None
    elif winner is not None:
        battle.winner = winner
    _validate_battle_gangs(battle.campaign, battle.attacker, battle.defender, battle.winner)

    if scenario_name is not None:
        battle.scenario_name = scenario_name
    if note is not None:
        battle.note = note
    if participants is not None:
        battle.participants = _validate_participants(participants)

    battle.save_with_user(user=user)
    _invalidate(battle.campaign, *previous, battle.attacker, battle.defender)
    track("battle_updated", battle=battle)
    return battle


@traced("handle_delete_battle")
@transaction.atomic
def handle_delete_battle(*, user, battle: CampaignBattle) -> UUID:
    _ensure_can_edit_battle(user, battle)
    campaign = battle.campaign
    battle_id = battle.pk
    battle._history_user = user
    battle.delete()
    _invalidate(campaign)
    track("battle_deleted", campaign=campaign)
    return battle_id
