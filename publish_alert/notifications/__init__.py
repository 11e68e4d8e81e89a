"""
Notification Service

Asana task + Slack alert for every article whose images carry a stamp.
"""

from .asana_slack_notifier import AsanaSlackNotifier

__all__ = ['AsanaSlackNotifier']
