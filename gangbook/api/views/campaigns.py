from django.contrib.auth import get_user_model
from django.shortcuts import get_object_or_404

from gangbook.api.schemas import (
    BattleCreateParams,
    BattleUpdateParams,
    CampaignCreateParams,
    CampaignGangActionParams,
    CampaignGangParams,
    CampaignUpdateParams,
    MemberAddParams,
    MemberUpdateParams,
    TerritoryCreateParams,
    TerritoryUpdateParams,
)
from gangbook.api.views.common import api_view, json_response, parse_body
from gangbook.content.models import (
    ContentCampaignType,
    ContentScenario,
    ContentTerritory,
)
from gangbook.core.handlers import (
    handle_accept_campaign_gang,
    handle_add_campaign_gang,
    handle_add_campaign_member,
    handle_add_campaign_territory,
    handle_create_battle,
    handle_create_campaign,
    handle_decline_campaign_gang,
    handle_delete_battle,
    handle_delete_campaign,
    handle_remove_campaign_gang,
    handle_remove_campaign_member,
    handle_remove_campaign_territory,
    handle_update_battle,
    handle_update_campaign,
    handle_update_campaign_territory,
    handle_update_member_role,
)
from gangbook.core.models import (
    Campaign,
    CampaignBattle,
    CampaignGang,
    CampaignMember,
    CampaignTerritory,
    EventNoun,
    EventVerb,
    Gang,
    log_event,
)
from gangbook.core.queries import get_campaign_details


def _optional(model, pk):
    return get_object_or_404(model, pk=pk) if pk is not None else None


def _campaign_response(campaign_id, status=200):
    return json_response(get_campaign_details(campaign_id), status=status)


@api_view("GET", "POST")
def campaigns(request):
    if request.method == "GET":
        mine = (
            Campaign.objects.filter(members__user=request.user)
            .select_related("campaign_type")
            .distinct()
        )
        return json_response(
            {
                "campaigns": [
                    {
                        "id": campaign.id,
                        "name": campaign.name,
                        "status": campaign.status,
                        "campaign_type": campaign.campaign_type.name
                        if campaign.campaign_type_id
                        else None,
                    }
                    for campaign in mine
                ]
            }
        )

    params = parse_body(request, CampaignCreateParams)
    campaign = handle_create_campaign(
        user=request.user,
        name=params.name,
        campaign_type=_optional(ContentCampaignType, params.campaign_type_id),
        description=params.description,
    )
    log_event(
        user=request.user,
        noun=EventNoun.CAMPAIGN,
        verb=EventVerb.CREATE,
        object=campaign,
        request=request,
        campaign_name=campaign.name,
    )
    return _campaign_response(campaign.pk, status=201)


@api_view("GET", "PATCH", "DELETE")
def campaign_detail(request, id):
    campaign = get_object_or_404(Campaign, pk=id)

    if request.method == "GET":
        return _campaign_response(campaign.pk)

    if request.method == "DELETE":
        campaign_id = handle_delete_campaign(user=request.user, campaign=campaign)
        log_event(
            user=request.user,
            noun=EventNoun.CAMPAIGN,
            verb=EventVerb.DELETE,
            request=request,
            campaign_id=campaign_id,
        )
        return json_response({"deleted": campaign_id})

    params = parse_body(request, CampaignUpdateParams)
    campaign = handle_update_campaign(
        user=request.user,
        campaign=campaign,
        name=params.name,
        description=params.description,
        status=params.status,
    )
    log_event(
        user=request.user,
        noun=EventNoun.CAMPAIGN,
        verb=EventVerb.UPDATE,
        object=campaign,
        request=request,
        fields=sorted(params.model_fields_set),
    )
    return _campaign_response(campaign.pk)


@api_view("POST")
def campaign_members(request, id):
    campaign = get_object_or_404(Campaign, pk=id)
    params = parse_body(request, MemberAddParams)
    member_user = get_object_or_404(get_user_model(), username=params.username)
    member = handle_add_campaign_member(
        user=request.user, campaign=campaign, member_user=member_user, role=params.role
    )
    log_event(
        user=request.user,
        noun=EventNoun.CAMPAIGN_MEMBER,
        verb=EventVerb.ADD,
        object=member,
        request=request,
        campaign_id=campaign.pk,
        role=member.role,
    )
    return _campaign_response(campaign.pk, status=201)


@api_view("PATCH", "DELETE")
def campaign_member_detail(request, id, member_id):
    member = get_object_or_404(
        CampaignMember.objects.select_related("campaign", "user"),
        pk=member_id,
        campaign_id=id,
    )

    if request.method == "DELETE":
        handle_remove_campaign_member(user=request.user, member=member)
        log_event(
            user=request.user,
            noun=EventNoun.CAMPAIGN_MEMBER,
            verb=EventVerb.REMOVE,
            request=request,
            campaign_id=id,
            member=member.user.username,
        )
        return _campaign_response(id)

    params = parse_body(request, MemberUpdateParams)
    member = handle_update_member_role(user=request.user, member=member, role=params.role)
    log_event(
        user=request.user,
        noun=EventNoun.CAMPAIGN_MEMBER,
        verb=EventVerb.UPDATE,
        object=member,
        request=request,
        campaign_id=id,
        role=member.role,
    )
    return _campaign_response(id)


@api_view("POST")
def campaign_gangs(request, id):
    campaign = get_object_or_404(Campaign, pk=id)
    params = parse_body(request, CampaignGangParams)
    gang = get_object_or_404(Gang, pk=params.gang_id)
    entry = handle_add_campaign_gang(user=request.user, campaign=campaign, gang=gang)
    log_event(
        user=request.user,
        noun=EventNoun.CAMPAIGN_GANG,
        verb=EventVerb.ADD,
        object=entry,
        request=request,
        campaign_id=campaign.pk,
        gang_id=gang.pk,
        status=entry.status,
    )
    return _campaign_response(campaign.pk, status=201)


@api_view("POST", "DELETE")
def campaign_gang_detail(request, id, cg_id):
    entry = get_object_or_404(
        CampaignGang.objects.select_related("campaign", "gang"), pk=cg_id, campaign_id=id
    )

    if request.method == "DELETE":
        handle_remove_campaign_gang(user=request.user, entry=entry)
        verb = EventVerb.REMOVE
    else:
        params = parse_body(request, CampaignGangActionParams)
        if params.action == "accept":
            handle_accept_campaign_gang(user=request.user, entry=entry)
            verb = EventVerb.APPROVE
        else:
            handle_decline_campaign_gang(user=request.user, entry=entry)
            verb = EventVerb.REJECT

    log_event(
        user=request.user,
        noun=EventNoun.CAMPAIGN_GANG,
        verb=verb,
        request=request,
        campaign_id=id,
        gang_id=entry.gang_id,
    )
    return _campaign_response(id)


@api_view("POST")
def campaign_territories(request, id):
    campaign = get_object_or_404(Campaign, pk=id)
    params = parse_body(request, TerritoryCreateParams)
    territory = handle_add_campaign_territory(
        user=request.user,
        campaign=campaign,
        territory=_optional(ContentTerritory, params.territory_id),
        name=params.name,
    )
    log_event(
        user=request.user,
        noun=EventNoun.TERRITORY,
        verb=EventVerb.ADD,
        object=territory,
        request=request,
        campaign_id=campaign.pk,
        territory=territory.name,
    )
    return _campaign_response(campaign.pk, status=201)


@api_view("PATCH", "DELETE")
def campaign_territory_detail(request, id, t_id):
    territory = get_object_or_404(
        CampaignTerritory.objects.select_related("campaign", "gang"),
        pk=t_id,
        campaign_id=id,
    )

    if request.method == "DELETE":
        handle_remove_campaign_territory(user=request.user, territory=territory)
        log_event(
            user=request.user,
            noun=EventNoun.TERRITORY,
            verb=EventVerb.REMOVE,
            request=request,
            campaign_id=id,
            territory=territory.name,
        )
        return _campaign_response(id)

    params = parse_body(request, TerritoryUpdateParams)
    clear_gang = "gang_id" in params.model_fields_set and params.gang_id is None
    territory = handle_update_campaign_territory(
        user=request.user,
        territory=territory,
        gang=_optional(Gang, params.gang_id),
        clear_gang=clear_gang,
        ruined=params.ruined,
        default_gang_territory=params.default_gang_territory,
    )
    log_event(
        user=request.user,
        noun=EventNoun.TERRITORY,
        verb=EventVerb.UPDATE,
        object=territory,
        request=request,
        campaign_id=id,
        fields=sorted(params.model_fields_set),
    )
    return _campaign_response(id)


def _participants(participants):
    if participants is None:
        return None
    return [participant.model_dump(mode="json") for participant in participants]


@api_view("POST")
def campaign_battles(request, id):
    campaign = get_object_or_404(Campaign, pk=id)
    params = parse_body(request, BattleCreateParams)
    result = handle_create_battle(
        user=request.user,
        campaign=campaign,
        attacker=_optional(Gang, params.attacker_id),
        defender=_optional(Gang, params.defender_id),
        winner=_optional(Gang, params.winner_id),
        scenario=_optional(ContentScenario, params.scenario_id),
        scenario_name=params.scenario_name,
        note=params.note,
        participants=_participants(params.participants),
        claimed_territory_ids=params.claimed_territory_ids,
    )
    log_event(
        user=request.user,
        noun=EventNoun.BATTLE,
        verb=EventVerb.CREATE,
        object=result.battle,
        request=request,
        campaign_id=campaign.pk,
        claimed=len(result.claimed_territories),
    )
    return json_response(
        {
            "battle_id": result.battle.pk,
            "claimed_territory_ids": [t.pk for t in result.claimed_territories],
            "failed_claim_ids": [str(pk) for pk in result.failed_claims],
            "campaign": get_campaign_details(campaign.pk),
        },
        status=201,
    )


@api_view("PATCH", "DELETE")
def campaign_battle_detail(request, id, b_id):
    battle = get_object_or_404(
        CampaignBattle.objects.select_related(
            "campaign", "attacker", "defender", "winner"
        ),
        pk=b_id,
        campaign_id=id,
    )

    if request.method == "DELETE":
        battle_id = handle_delete_battle(user=request.user, battle=battle)
        log_event(
            user=request.user,
            noun=EventNoun.BATTLE,
            verb=EventVerb.DELETE,
            request=request,
            campaign_id=id,
            battle_id=battle_id,
        )
        return _campaign_response(id)

    params = parse_body(request, BattleUpdateParams)
    clear_winner = "winner_id" in params.model_fields_set and params.winner_id is None
    battle = handle_update_battle(
        user=request.user,
        battle=battle,
        attacker=_optional(Gang, params.attacker_id),
        defender=_optional(Gang, params.defender_id),
        winner=_optional(Gang, params.winner_id),
        clear_winner=clear_winner,
        scenario_name=params.scenario_name,
        note=params.note,
        participants=_participants(params.participants),
    )
    log_event(
        user=request.user,
        noun=EventNoun.BATTLE,
        verb=EventVerb.UPDATE,
        object=battle,
        request=request,
        campaign_id=id,
        fields=sorted(params.model_fields_set),
    )
    return _campaign_response(id)
