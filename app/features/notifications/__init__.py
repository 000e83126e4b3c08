"""Telegram notifications ("flight reports" and business alerts)."""

from app.features.notifications.telegram import TelegramNotifier, get_notifier

__all__ = ["TelegramNotifier", "get_notifier"]
