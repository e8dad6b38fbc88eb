from django.urls import path

from .views import admin, campaigns, catalog, equipment, fighters, gangs, vehicles

# Name URLs like this:
# * Collections pluralize the noun: noun[-noun]s
# * Single objects are singular: noun[-noun]
# * Actions on an object: noun[-noun]-verb

app_name = "api"
urlpatterns = [
    path("gangs/", gangs.gangs, name="gangs"),
    path("gangs/<uuid:id>/", gangs.gang_detail, name="gang"),
    path("gangs/<uuid:id>/copy/", gangs.gang_copy, name="gang-copy"),
    path("gangs/<uuid:id>/credits/", gangs.gang_credits, name="gang-credits"),
    path("gangs/<uuid:id>/rating/", gangs.gang_rating, name="gang-rating"),
    path("gangs/<uuid:id>/logs/", gangs.gang_log_list, name="gang-logs"),
    path("gangs/<uuid:id>/fighters/", gangs.gang_fighters, name="gang-fighters"),
    path("gangs/<uuid:id>/equipment/", gangs.gang_equipment, name="gang-equipment"),
    path("gangs/<uuid:id>/vehicles/", gangs.gang_vehicles, name="gang-vehicles"),
    path("fighters/<uuid:id>/", fighters.fighter_detail, name="fighter"),
    path("fighters/<uuid:id>/status/", fighters.fighter_status, name="fighter-status"),
    path("fighters/<uuid:id>/copy/", fighters.fighter_copy, name="fighter-copy"),
    path("fighters/<uuid:id>/skills/", fighters.fighter_skills, name="fighter-skills"),
    path(
        "fighters/<uuid:id>/skills/<uuid:skill_id>/",
        fighters.fighter_skill,
        name="fighter-skill",
    ),
    path(
        "fighters/<uuid:id>/effects/", fighters.fighter_effects, name="fighter-effects"
    ),
    path(
        "fighters/<uuid:id>/advancements/",
        fighters.fighter_advancements,
        name="fighter-advancements",
    ),
    path("effects/<uuid:id>/", fighters.effect_detail, name="effect"),
    path("equipment/<uuid:id>/", equipment.equipment_detail, name="equipment"),
    path("equipment/<uuid:id>/sell/", equipment.equipment_sell, name="equipment-sell"),
    path(
        "equipment/<uuid:id>/stash/", equipment.equipment_stash, name="equipment-stash"
    ),
    path(
        "equipment/<uuid:id>/unstash/",
        equipment.equipment_unstash,
        name="equipment-unstash",
    ),
    path("vehicles/<uuid:id>/", vehicles.vehicle_detail, name="vehicle"),
    path("vehicles/<uuid:id>/assign/", vehicles.vehicle_assign, name="vehicle-assign"),
    path(
        "vehicles/<uuid:id>/unassign/",
        vehicles.vehicle_unassign,
        name="vehicle-unassign",
    ),
    path("vehicles/<uuid:id>/sell/", vehicles.vehicle_sell, name="vehicle-sell"),
    path(
        "vehicles/<uuid:id>/effects/", fighters.vehicle_effects, name="vehicle-effects"
    ),
    path("campaigns/", campaigns.campaigns, name="campaigns"),
    path("campaigns/<uuid:id>/", campaigns.campaign_detail, name="campaign"),
    path(
        "campaigns/<uuid:id>/members/",
        campaigns.campaign_members,
        name="campaign-members",
    ),
    path(
        "campaigns/<uuid:id>/members/<uuid:member_id>/",
        campaigns.campaign_member_detail,
        name="campaign-member",
    ),
    path("campaigns/<uuid:id>/gangs/", campaigns.campaign_gangs, name="campaign-gangs"),
    path(
        "campaigns/<uuid:id>/gangs/<uuid:cg_id>/",
        campaigns.campaign_gang_detail,
        name="campaign-gang",
    ),
    path(
        "campaigns/<uuid:id>/territories/",
        campaigns.campaign_territories,
        name="campaign-territories",
    ),
    path(
        "campaigns/<uuid:id>/territories/<uuid:t_id>/",
        campaigns.campaign_territory_detail,
        name="campaign-territory",
    ),
    path(
        "campaigns/<uuid:id>/battles/",
        campaigns.campaign_battles,
        name="campaign-battles",
    ),
    path(
        "campaigns/<uuid:id>/battles/<uuid:b_id>/",
        campaigns.campaign_battle_detail,
        name="campaign-battle",
    ),
    path("gang-types/", catalog.gang_types, name="gang-types"),
    path("fighter-types/", catalog.fighter_types, name="fighter-types"),
    path("vehicle-types/", catalog.vehicle_types, name="vehicle-types"),
    path("admin/equipment/", admin.equipment, name="admin-equipment"),
    path("admin/fighter-types/", admin.fighter_types, name="admin-fighter-types"),
    path("admin/gang-types/", admin.gang_types, name="admin-gang-types"),
    path("admin/gang-lineages/", admin.gang_lineages, name="admin-gang-lineages"),
    path("admin/campaign-types/", admin.campaign_types, name="admin-campaign-types"),
    path(
        "admin/campaign-triumphs/",
        admin.campaign_triumphs,
        name="admin-campaign-triumphs",
    ),
    path("admin/territories/", admin.territories, name="admin-territories"),
    path("admin/scenarios/", admin.scenarios, name="admin-scenarios"),
    path("admin/vehicle-types/", admin.vehicle_types, name="admin-vehicle-types"),
    path(
        "admin/fighter-effects/", admin.fighter_effects, name="admin-fighter-effects"
    ),
    path("admin/skills/", admin.skills, name="admin-skills"),
    path("admin/skill-types/", admin.skill_types, name="admin-skill-types"),
    path(
        "admin/fighter-classes/", admin.fighter_classes, name="admin-fighter-classes"
    ),
]
