"""
Signal handlers.

Authentication events from django-allauth are recorded as Events, and
deleting an exotic beast ownership deletes the beast it owned.
"""

from allauth.account.signals import user_logged_in, user_signed_up
from django.contrib.auth.signals import user_logged_out
from django.db.models.signals import post_delete
from django.dispatch import receiver

from gangbook.core.models import (
    EventNoun,
    EventVerb,
    Fighter,
    FighterExoticBeast,
    log_event,
)


@receiver(user_logged_in)
def log_user_login(request, user, **kwargs):
    """Log when a user signs in via allauth."""
    log_event(user=user, noun=EventNoun.USER, verb=EventVerb.LOGIN, request=request)


@receiver(user_logged_out)
def log_user_logout(sender, request, user, **kwargs):
    if user and user.is_authenticated:
        log_event(
            user=user, noun=EventNoun.USER, verb=EventVerb.LOGOUT, request=request
        )


@receiver(user_signed_up)
def log_user_signup(request, user, **kwargs):
    log_event(user=user, noun=EventNoun.USER, verb=EventVerb.SIGNUP, request=request)


@receiver(post_delete, sender=FighterExoticBeast)
def delete_orphaned_beast(sender, instance, **kwargs):
    """The beast fighter goes with its ownership record."""
    Fighter.objects.filter(pk=instance.beast_id).delete()
