from subslayer.notifications.delivery import ReminderDelivery
from subslayer.notifications.renewals import ReminderReport, RenewalReminderJob

__all__ = ["ReminderDelivery", "ReminderReport", "RenewalReminderJob"]
