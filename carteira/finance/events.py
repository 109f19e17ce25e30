from django.db.models.signals import post_delete, post_save, pre_save
from django.dispatch import receiver

from carteira.finance.models import Transaction


@receiver(pre_save, sender=Transaction)
def remember_budget_keys(sender, instance, **kwargs):
    """Keep the previous category/date so budgets they belonged to are refreshed too."""
    instance._budget_previous = (None, None)
    if instance.pk:
        previous = sender.objects.filter(pk=instance.pk).values_list("category_id", "date").first()
        if previous:
            instance._budget_previous = previous


@receiver(post_save, sender=Transaction)
def refresh_budgets_on_save(sender, instance, raw=False, **kwargs):
    if raw:
        return
    from carteira.services.budget_service import refresh_budgets_for

    old_category, old_date = getattr(instance, "_budget_previous", (None, None))
    refresh_budgets_for(instance.user_id, [instance.category_id, old_category], [instance.date, old_date])


@receiver(post_delete, sender=Transaction)
def refresh_budgets_on_delete(sender, instance, **kwargs):
    from carteira.services.budget_service import refresh_budgets_for

    refresh_budgets_for(instance.user_id, [instance.category_id], [instance.date])
