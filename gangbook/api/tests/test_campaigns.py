import pytest
from django.urls import reverse

from gangbook.core.models import Campaign, CampaignBattle, CampaignGang, CampaignMember


def create_campaign(api, name="Ash Wastes Uprising"):
    return api.post(reverse("api:campaigns"), {"name": name}).json()


@pytest.mark.django_db
def test_create_and_list_campaigns(api, user):
    created = create_campaign(api)

    assert created["name"] == "Ash Wastes Uprising"
    assert created["status"] == "active"
    assert [m["role"] for m in created["members"]] == ["OWNER"]

    listed = api.get(reverse("api:campaigns")).json()["campaigns"]
    assert [c["name"] for c in listed] == ["Ash Wastes Uprising"]


@pytest.mark.django_db
def test_campaign_list_only_shows_memberships(client, api, other_user):
    create_campaign(api)
    client.force_login(other_user)

    assert client.get(reverse("api:campaigns")).json() == {"campaigns": []}


@pytest.mark.django_db
def test_update_campaign(api):
    campaign_id = create_campaign(api)["id"]
    url = reverse("api:campaign", args=[campaign_id])

    response = api.patch(url, {"status": "ended"})
    assert response.json()["status"] == "ended"

    response = api.patch(url, {"status": "paused"})
    assert response.status_code == 400
    assert response.json()["error"].startswith("status: ")


@pytest.mark.django_db
def test_delete_campaign(api):
    campaign_id = create_campaign(api)["id"]

    response = api.delete(reverse("api:campaign", args=[campaign_id]))

    assert response.json() == {"deleted": campaign_id}
    assert not Campaign.objects.exists()


@pytest.mark.django_db
def test_members(api, other_user):
    campaign_id = create_campaign(api)["id"]
    url = reverse("api:campaign-members", args=[campaign_id])

    response = api.post(url, {"username": "otheruser", "role": "ARBITRATOR"})
    assert response.status_code == 201
    roles = {m["username"]: m["role"] for m in response.json()["members"]}
    assert roles == {"testuser": "OWNER", "otheruser": "ARBITRATOR"}

    assert api.post(url, {"username": "otheruser"}).json() == {
        "error": "otheruser is already a member"
    }
    assert api.post(url, {"username": "nobody"}).status_code == 404

    member = CampaignMember.objects.get(user=other_user)
    member_url = reverse("api:campaign-member", args=[campaign_id, member.pk])
    response = api.patch(member_url, {"role": "MEMBER"})
    assert {m["username"]: m["role"] for m in response.json()["members"]}["otheruser"] == (
        "MEMBER"
    )

    response = api.delete(member_url)
    assert [m["username"] for m in response.json()["members"]] == ["testuser"]


@pytest.mark.django_db
def test_gangs_join_and_invitations(api, client, user, other_user, gang, make_gang):
    campaign_id = create_campaign(api)["id"]
    api.post(reverse("api:campaign-members", args=[campaign_id]), {"username": "otheruser"})
    rival = make_gang("The Rust Rats", owner=other_user)
    gangs_url = reverse("api:campaign-gangs", args=[campaign_id])

    own = api.post(gangs_url, {"gang_id": str(gang.pk)}).json()
    assert {g["name"]: g["status"] for g in own["gangs"]} == {"The Iron Fists": "ACCEPTED"}

    invited = api.post(gangs_url, {"gang_id": str(rival.pk)}).json()
    statuses = {g["name"]: g["status"] for g in invited["gangs"]}
    assert statuses["The Rust Rats"] == "PENDING"

    entry = CampaignGang.objects.get(gang=rival)
    entry_url = reverse("api:campaign-gang", args=[campaign_id, entry.pk])
    assert api.post(entry_url, {"action": "accept"}).status_code == 403

    client.force_login(other_user)
    response = client.post(entry_url, {"action": "accept"}, content_type="application/json")
    assert response.status_code == 200
    entry.refresh_from_db()
    assert entry.status == "ACCEPTED"


@pytest.mark.django_db
def test_territories_and_battles(api, user, other_user, gang, make_gang):
    campaign_id = create_campaign(api)["id"]
    api.post(reverse("api:campaign-members", args=[campaign_id]), {"username": "otheruser"})
    api.post(reverse("api:campaign-gangs", args=[campaign_id]), {"gang_id": str(gang.pk)})
    rival = make_gang("The Rust Rats", owner=other_user)
    api.post(reverse("api:campaign-gangs", args=[campaign_id]), {"gang_id": str(rival.pk)})

    battles_url = reverse("api:campaign-battles", args=[campaign_id])
    pending = api.post(
        battles_url, {"attacker_id": str(gang.pk), "defender_id": str(rival.pk)}
    )
    assert pending.status_code == 400
    assert pending.json() == {"error": "The Rust Rats is not part of this campaign"}
    CampaignGang.objects.filter(gang=rival).update(status="ACCEPTED")

    territories_url = reverse("api:campaign-territories", args=[campaign_id])
    assert api.post(territories_url, {}).json() == {
        "error": "Either territory_id or name must be provided"
    }
    details = api.post(territories_url, {"name": "Sump"}).json()
    sump_id = details["territories"][0]["id"]

    missing_id = "00000000-0000-0000-0000-000000000000"
    response = api.post(
        reverse("api:campaign-battles", args=[campaign_id]),
        {
            "attacker_id": str(gang.pk),
            "defender_id": str(rival.pk),
            "winner_id": str(gang.pk),
            "scenario_name": " Ambush ",
            "participants": [{"gang_id": str(gang.pk), "role": "attacker"}],
            "claimed_territory_ids": [sump_id, missing_id],
        },
    )
    assert response.status_code == 201
    data = response.json()
    assert data["claimed_territory_ids"] == [sump_id]
    assert data["failed_claim_ids"] == [missing_id]
    assert data["campaign"]["territories"][0]["gang_name"] == "The Iron Fists"
    battle = data["campaign"]["battles"][0]
    assert battle["scenario"] == "Ambush"
    assert battle["participants"] == [{"gang_id": str(gang.pk), "role": "attacker"}]

    battle_url = reverse("api:campaign-battle", args=[campaign_id, battle["id"]])
    updated = api.patch(battle_url, {"winner_id": None, "note": "Disputed"}).json()
    assert updated["battles"][0]["winner_id"] is None
    assert updated["battles"][0]["note"] == "Disputed"

    territory_url = reverse("api:campaign-territory", args=[campaign_id, sump_id])
    cleared = api.patch(territory_url, {"gang_id": None}).json()
    assert cleared["territories"][0]["gang_id"] is None

    api.delete(battle_url)
    assert not CampaignBattle.objects.exists()


@pytest.mark.django_db
def test_battle_roles_are_validated(api, gang):
    campaign_id = create_campaign(api)["id"]

    response = api.post(
        reverse("api:campaign-battles", args=[campaign_id]),
        {"participants": [{"gang_id": str(gang.pk), "role": "spectator"}]},
    )

    assert response.status_code == 400
    assert response.json()["error"].startswith("participants.0.role: ")
