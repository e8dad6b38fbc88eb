from django.shortcuts import get_object_or_404

from gangbook.api.schemas import (
    AdvancementParams,
    EffectParams,
    FighterCopyParams,
    FighterStatusParams,
    FighterUpdateParams,
    SkillParams,
)
from gangbook.api.views.common import api_view, json_response, parse_body
from gangbook.content.models import ContentEffectType, ContentSkill
from gangbook.core.handlers import (
    handle_add_advancement,
    handle_add_effect,
    handle_copy_fighter,
    handle_add_fighter_skill,
    handle_delete_fighter,
    handle_fighter_status_change,
    handle_remove_effect,
    handle_remove_fighter_skill,
    handle_update_fighter,
)
from gangbook.core.models import (
    EventNoun,
    EventVerb,
    Fighter,
    FighterEffect,
    Gang,
    Vehicle,
    log_event,
)
from gangbook.core.queries import get_fighter_details, serialize_effect


def _fighter_update_response(result):
    return json_response(
        {
            "fighter": get_fighter_details(result.fighter.pk),
            "rating_delta": result.rating_delta,
            "gang_rating": result.gang_rating,
        }
    )


@api_view("GET", "PATCH", "DELETE")
def fighter_detail(request, id):
    fighter = get_object_or_404(Fighter, pk=id)

    if request.method == "GET":
        return json_response(get_fighter_details(fighter.pk))

    if request.method == "DELETE":
        result = handle_delete_fighter(user=request.user, fighter=fighter)
        log_event(
            user=request.user,
            noun=EventNoun.FIGHTER,
            verb=EventVerb.DELETE,
            request=request,
            fighter_id=result.fighter_id,
            fighter_name=result.fighter_name,
        )
        return json_response(
            {"deleted": result.fighter_id, "gang_rating": result.gang_rating}
        )

    params = parse_body(request, FighterUpdateParams)
    result = handle_update_fighter(
        user=request.user, fighter=fighter, **params.model_dump(exclude_unset=True)
    )
    log_event(
        user=request.user,
        noun=EventNoun.FIGHTER,
        verb=EventVerb.UPDATE,
        object=fighter,
        request=request,
        fields=sorted(params.model_fields_set),
    )
    return _fighter_update_response(result)


@api_view("POST")
def fighter_status(request, id):
    fighter = get_object_or_404(Fighter, pk=id)
    params = parse_body(request, FighterStatusParams)
    result = handle_fighter_status_change(
        user=request.user, fighter=fighter, **params.model_dump(exclude_none=True)
    )
    log_event(
        user=request.user,
        noun=EventNoun.FIGHTER,
        verb=EventVerb.UPDATE,
        object=fighter,
        request=request,
        **params.model_dump(exclude_none=True),
    )
    return _fighter_update_response(result)


@api_view("POST")
def fighter_skills(request, id):
    fighter = get_object_or_404(Fighter, pk=id)
    params = parse_body(request, SkillParams)
    skill = get_object_or_404(ContentSkill, pk=params.skill_id)
    result = handle_add_fighter_skill(
        user=request.user,
        fighter=fighter,
        skill=skill,
        xp_cost=params.xp_cost,
        credits_increase=params.credits_increase,
    )
    log_event(
        user=request.user,
        noun=EventNoun.SKILL,
        verb=EventVerb.ADD,
        object=fighter,
        request=request,
        skill=skill.name,
    )
    return json_response(
        {
            "fighter": get_fighter_details(fighter.pk),
            "remaining_xp": result.remaining_xp,
            "rating_delta": result.rating_delta,
        },
        status=201,
    )


@api_view("DELETE")
def fighter_skill(request, id, skill_id):
    fighter = get_object_or_404(Fighter, pk=id)
    skill = get_object_or_404(ContentSkill, pk=skill_id)
    result = handle_remove_fighter_skill(user=request.user, fighter=fighter, skill=skill)
    log_event(
        user=request.user,
        noun=EventNoun.SKILL,
        verb=EventVerb.REMOVE,
        object=fighter,
        request=request,
        skill=skill.name,
    )
    return json_response(
        {
            "fighter": get_fighter_details(fighter.pk),
            "remaining_xp": result.remaining_xp,
            "rating_delta": result.rating_delta,
        }
    )


def _add_effect(request, *, fighter=None, vehicle=None):
    params = parse_body(request, EffectParams)
    effect_type = get_object_or_404(
        ContentEffectType.objects.prefetch_related("modifiers"),
        pk=params.effect_type_id,
    )
    result = handle_add_effect(
        user=request.user, effect_type=effect_type, fighter=fighter, vehicle=vehicle
    )
    log_event(
        user=request.user,
        noun=EventNoun.EFFECT,
        verb=EventVerb.ADD,
        object=result.effect,
        request=request,
        effect=result.effect_name,
    )
    return json_response(
        {
            "effect": serialize_effect(result.effect),
            "rating_delta": result.rating_delta,
            "gang_rating": result.gang_rating,
        },
        status=201,
    )


@api_view("POST")
def fighter_effects(request, id):
    return _add_effect(request, fighter=get_object_or_404(Fighter, pk=id))


@api_view("POST")
def vehicle_effects(request, id):
    return _add_effect(request, vehicle=get_object_or_404(Vehicle, pk=id))


@api_view("DELETE")
def effect_detail(request, id):
    effect = get_object_or_404(
        FighterEffect.objects.select_related("fighter__gang", "vehicle__gang"), pk=id
    )
    result = handle_remove_effect(user=request.user, effect=effect)
    log_event(
        user=request.user,
        noun=EventNoun.EFFECT,
        verb=EventVerb.REMOVE,
        request=request,
        effect_id=result.effect_id,
        effect=result.effect_name,
    )
    return json_response(
        {
            "deleted": result.effect_id,
            "rating_delta": result.rating_delta,
            "gang_rating": result.gang_rating,
            "remaining_xp": result.remaining_xp,
        }
    )


@api_view("POST")
def fighter_advancements(request, id):
    fighter = get_object_or_404(Fighter, pk=id)
    params = parse_body(request, AdvancementParams)
    effect_type = get_object_or_404(ContentEffectType, pk=params.effect_type_id)
    result = handle_add_advancement(
        user=request.user,
        fighter=fighter,
        effect_type=effect_type,
        xp_cost=params.xp_cost,
        credits_increase=params.credits_increase,
    )
    log_event(
        user=request.user,
        noun=EventNoun.EFFECT,
        verb=EventVerb.ADD,
        object=result.effect,
        request=request,
        advancement=result.effect_name,
        xp_cost=params.xp_cost,
    )
    return json_response(
        {
            "effect": serialize_effect(result.effect),
            "remaining_xp": result.remaining_xp,
            "rating_delta": result.rating_delta,
            "gang_rating": result.gang_rating,
        },
        status=201,
    )


@api_view("POST")
def fighter_copy(request, id):
    fighter = get_object_or_404(Fighter.objects.select_related("gang"), pk=id)
    params = parse_body(request, FighterCopyParams)
    target_gang = None
    if params.target_gang_id is not None:
        target_gang = get_object_or_404(Gang, pk=params.target_gang_id)

    result = handle_copy_fighter(
        user=request.user, fighter=fighter, target_gang=target_gang, name=params.name
    )
    log_event(
        user=request.user,
        noun=EventNoun.FIGHTER,
        verb=EventVerb.CLONE,
        object=result.fighter,
        request=request,
        source_fighter_id=fighter.pk,
        gang_id=result.fighter.gang_id,
    )
    return json_response(
        {
            "fighter": get_fighter_details(result.fighter.pk),
            "rating_delta": result.rating_delta,
            "gang_rating": result.gang_rating,
        },
        status=201,
    )
