from django.contrib import admin
from simple_history.admin import SimpleHistoryAdmin

from .models import (
    Campaign,
    CampaignBattle,
    CampaignGang,
    CampaignMember,
    CampaignTerritory,
    Event,
    Fighter,
    FighterEffect,
    FighterEquipment,
    FighterSkill,
    Gang,
    GangLog,
    Vehicle,
)


class FighterInline(admin.TabularInline):
    model = Fighter
    extra = 0
    show_change_link = True
    fields = ["name", "fighter_type", "fighter_class", "credits", "killed", "retired"]


class GangLogInline(admin.TabularInline):
    model = GangLog
    extra = 0
    can_delete = False
    fields = [
        "created",
        "action_type",
        "description",
        "rating_delta",
        "stash_delta",
        "credits_delta",
    ]
    readonly_fields = fields


@admin.register(Gang)
class GangAdmin(SimpleHistoryAdmin):
    list_display = ["name", "gang_type", "owner", "credits", "rating", "archived"]
    list_filter = ["gang_type", "archived"]
    search_fields = ["name", "owner__username"]
    inlines = [FighterInline, GangLogInline]


class FighterEquipmentInline(admin.TabularInline):
    model = FighterEquipment
    fk_name = "fighter"
    extra = 0
    fields = ["equipment", "original_cost", "purchase_cost", "is_master_crafted"]


class FighterSkillInline(admin.TabularInline):
    model = FighterSkill
    extra = 0


class FighterEffectInline(admin.TabularInline):
    model = FighterEffect
    fk_name = "fighter"
    extra = 0
    fields = ["name", "effect_type", "type_specific_data"]


@admin.register(Fighter)
class FighterAdmin(SimpleHistoryAdmin):
    list_display = ["name", "gang", "fighter_type", "fighter_class", "credits"]
    list_filter = ["fighter_class", "killed", "retired"]
    search_fields = ["name", "gang__name"]
    inlines = [FighterEquipmentInline, FighterSkillInline, FighterEffectInline]


@admin.register(Vehicle)
class VehicleAdmin(SimpleHistoryAdmin):
    list_display = ["name", "gang", "vehicle_type", "fighter", "cost"]
    search_fields = ["name", "gang__name"]


@admin.register(FighterEquipment)
class FighterEquipmentAdmin(admin.ModelAdmin):
    list_display = [
        "equipment",
        "gang",
        "fighter",
        "vehicle",
        "gang_stash",
        "purchase_cost",
    ]
    list_filter = ["gang_stash", "is_master_crafted"]


class CampaignMemberInline(admin.TabularInline):
    model = CampaignMember
    fk_name = "campaign"
    extra = 0


class CampaignGangInline(admin.TabularInline):
    model = CampaignGang
    extra = 0


class CampaignTerritoryInline(admin.TabularInline):
    model = CampaignTerritory
    extra = 0


@admin.register(Campaign)
class CampaignAdmin(SimpleHistoryAdmin):
    list_display = ["name", "campaign_type", "status", "owner"]
    list_filter = ["status", "campaign_type"]
    search_fields = ["name"]
    inlines = [CampaignMemberInline, CampaignGangInline, CampaignTerritoryInline]


@admin.register(CampaignBattle)
class CampaignBattleAdmin(SimpleHistoryAdmin):
    list_display = ["campaign", "scenario_name", "attacker", "defender", "winner"]


@admin.register(Event)
class EventAdmin(admin.ModelAdmin):
    list_display = ["created", "owner", "noun", "verb", "object_id"]
    list_filter = ["noun", "verb"]
    readonly_fields = [f.name for f in Event._meta.fields]
