from django.contrib import admin
from simple_history.admin import SimpleHistoryAdmin

from .models import (
    ContentCampaignTriumph,
    ContentCampaignType,
    ContentEffectCategory,
    ContentEffectType,
    ContentEffectTypeModifier,
    ContentEquipment,
    ContentEquipmentAvailability,
    ContentEquipmentCategory,
    ContentEquipmentDiscount,
    ContentEquipmentGrant,
    ContentExoticBeast,
    ContentFighterDefaultEquipment,
    ContentFighterType,
    ContentFighterTypeGangCost,
    ContentGangLineage,
    ContentGangType,
    ContentScenario,
    ContentSkill,
    ContentSkillType,
    ContentTerritory,
    ContentVehicleType,
    ContentWeaponProfile,
)


class ContentAdmin(SimpleHistoryAdmin):
    def __init__(self, model, admin_site):
        self.list_display = [
            f.name
            for f in model._meta.fields
            if f.name not in ["created", "modified", "id"]
        ]
        super().__init__(model, admin_site)


class ContentTabularInline(admin.TabularInline):
    show_change_link = True
    extra = 0


class ContentWeaponProfileInline(ContentTabularInline):
    model = ContentWeaponProfile


class ContentEquipmentDiscountInline(ContentTabularInline):
    model = ContentEquipmentDiscount


class ContentEquipmentAvailabilityInline(ContentTabularInline):
    model = ContentEquipmentAvailability


class ContentEquipmentGrantInline(ContentTabularInline):
    model = ContentEquipmentGrant
    fk_name = "equipment"
    verbose_name = "Granted Equipment"
    verbose_name_plural = "Granted Equipment"


class ContentExoticBeastInline(ContentTabularInline):
    model = ContentExoticBeast
    verbose_name = "Granted Exotic Beast"
    verbose_name_plural = "Granted Exotic Beasts"


@admin.register(ContentEquipment)
class ContentEquipmentAdmin(ContentAdmin):
    search_fields = ["name", "category__name"]
    list_filter = ["equipment_type", "category", "trading_post"]
    inlines = [
        ContentWeaponProfileInline,
        ContentEquipmentDiscountInline,
        ContentEquipmentAvailabilityInline,
        ContentEquipmentGrantInline,
        ContentExoticBeastInline,
    ]


class ContentFighterTypeGangCostInline(ContentTabularInline):
    model = ContentFighterTypeGangCost


class ContentFighterDefaultEquipmentInline(ContentTabularInline):
    model = ContentFighterDefaultEquipment


@admin.register(ContentFighterType)
class ContentFighterTypeAdmin(ContentAdmin):
    search_fields = ["name", "gang_type__name"]
    list_filter = ["gang_type", "fighter_class"]
    inlines = [ContentFighterTypeGangCostInline, ContentFighterDefaultEquipmentInline]


class ContentEffectTypeModifierInline(ContentTabularInline):
    model = ContentEffectTypeModifier


@admin.register(ContentEffectType)
class ContentEffectTypeAdmin(ContentAdmin):
    search_fields = ["name"]
    list_filter = ["category"]
    inlines = [ContentEffectTypeModifierInline]


@admin.register(ContentGangLineage)
class ContentGangLineageAdmin(ContentAdmin):
    search_fields = ["name"]
    list_filter = ["lineage_type"]
    filter_horizontal = ["fighter_type_access"]


@admin.register(ContentTerritory)
class ContentTerritoryAdmin(ContentAdmin):
    search_fields = ["name"]
    list_filter = ["campaign_type"]


for model in [
    ContentGangType,
    ContentEquipmentCategory,
    ContentEffectCategory,
    ContentSkillType,
    ContentSkill,
    ContentVehicleType,
    ContentCampaignType,
    ContentCampaignTriumph,
    ContentScenario,
]:
    admin.site.register(model, ContentAdmin)
