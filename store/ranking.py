# store/ranking.py
"""
Display order of the catalog.

Every wallpaper carries a ``ranking``; lower numbers are shown first. The
order moves in three ways:

* an admin moves a wallpaper to an explicit position (``move_wallpaper``),
* a like promotes it and an unlike demotes it again (``toggle_like``),
* adding it to a cart promotes it (``record_cart_add``).

All writes are single ``UPDATE`` statements on locked rows, so two shoppers
liking the same wallpaper at once both count.
"""
import logging

from django.conf import settings
from django.db import transaction
from django.db.models import F, IntegerField, Value
from django.db.models.functions import Greatest

from .models import MAX_RANKING, Wallpaper, WallpaperLike, next_ranking

logger = logging.getLogger(__name__)


class InvalidRanking(ValueError):
    pass


def validate_ranking(value):
    """
    Rankings are whole numbers starting at 1.
    """
    if isinstance(value, bool):
        raise InvalidRanking("Ranking must be a whole number")
    try:
        ranking = int(value)
    except (TypeError, ValueError):
        raise InvalidRanking("Ranking must be a whole number")
    if isinstance(value, float) and value != ranking:
        raise InvalidRanking("Ranking must be a whole number")
    if ranking < 1:
        raise InvalidRanking("Ranking must be 1 or greater")
    if ranking > MAX_RANKING:
        raise InvalidRanking(f"Ranking must be {MAX_RANKING} or less")
    return ranking


def ranked_wallpapers(queryset=None):
    """
    Returns ``(wallpaper, effective_ranking)`` pairs in display order.

    Ranked wallpapers come first by ascending ranking; ties and unranked
    wallpapers fall back to newest first. A wallpaper without a ranking is
    reported at its 1-based position in the list.
    """
    if queryset is None:
        queryset = Wallpaper.objects.filter(status='active')
    queryset = queryset.select_related('category').order_by(
        F('ranking').asc(nulls_last=True), '-created_at'
    )
    return [
        (wallpaper, wallpaper.ranking if wallpaper.ranking is not None else position)
        for position, wallpaper in enumerate(queryset, start=1)
    ]


@transaction.atomic
def move_wallpaper(wallpaper_id, new_ranking):
    """
    Put a wallpaper at ``new_ranking`` and shift the wallpapers in between
    by one place so the rest of the order is kept.
    """
    new_ranking = validate_ranking(new_ranking)
    wallpaper = Wallpaper.objects.select_for_update().get(pk=wallpaper_id)
    old_ranking = wallpaper.ranking
    others = Wallpaper.objects.exclude(pk=wallpaper.pk)

    if old_ranking == new_ranking:
        return wallpaper

    if old_ranking is None:
        others.filter(ranking__gte=new_ranking).update(ranking=F('ranking') + 1)
    elif new_ranking < old_ranking:
        others.filter(ranking__gte=new_ranking, ranking__lt=old_ranking).update(ranking=F('ranking') + 1)
    else:
        others.filter(ranking__gt=old_ranking, ranking__lte=new_ranking).update(ranking=F('ranking') - 1)

    Wallpaper.objects.filter(pk=wallpaper.pk).update(ranking=new_ranking)
    wallpaper.ranking = new_ranking
    logger.info("Wallpaper %s moved from %s to %s", wallpaper.pk, old_ranking, new_ranking)
    return wallpaper


def move_by(wallpaper_id, places):
    """
    Move a wallpaper ``places`` positions in the display order (negative
    moves it towards the front), starting from its effective ranking.
    """
    current = None
    for wallpaper, effective in ranked_wallpapers(Wallpaper.objects.all()):
        if wallpaper.pk == wallpaper_id:
            current = effective
            break
    if current is None:
        raise Wallpaper.DoesNotExist(f"Wallpaper {wallpaper_id} does not exist")
    return move_wallpaper(wallpaper_id, max(1, current + places))


def _shift(wallpaper_id, delta):
    with transaction.atomic():
        wallpaper = Wallpaper.objects.select_for_update().get(pk=wallpaper_id)
        rows = Wallpaper.objects.filter(pk=wallpaper.pk)
        if wallpaper.ranking is None:
            rows.update(ranking=next_ranking())
        rows.update(ranking=Greatest(F('ranking') + delta, Value(1), output_field=IntegerField()))
        wallpaper.refresh_from_db(fields=['ranking'])
    return wallpaper.ranking


def promote(wallpaper_id, steps=1):
    """Move a wallpaper ``steps`` places towards the front (never past 1)."""
    return _shift(wallpaper_id, -abs(steps))


def demote(wallpaper_id, steps=1):
    return _shift(wallpaper_id, abs(steps))


def toggle_like(user, wallpaper_id):
    """
    Like or unlike a wallpaper for ``user``.
    Returns ``(liked, ranking)`` after the change.
    """
    weight = getattr(settings, 'LIKE_WEIGHT', 1)
    with transaction.atomic():
        wallpaper = Wallpaper.objects.get(pk=wallpaper_id)
        like, created = WallpaperLike.objects.get_or_create(user=user, wallpaper=wallpaper)
        if created:
            ranking = promote(wallpaper.pk, weight)
        else:
            like.delete()
            ranking = demote(wallpaper.pk, weight)
    logger.info("User %s %s wallpaper %s (ranking %s)",
                user.pk, 'liked' if created else 'unliked', wallpaper.pk, ranking)
    return created, ranking


def record_cart_add(wallpaper_id):
    return promote(wallpaper_id, getattr(settings, 'CART_WEIGHT', 1))
