"""Alarm sink that only logs.

Audio playback and OS notification delivery live in the client shell; the
backend and headless runs just record that an alarm was due.
"""

import logging

logger = logging.getLogger(__name__)


class LoggingAlarmSink:
    def play_alarm(self) -> None:
        logger.info("🔔 Alarm")

    def schedule_timer_notification(self, title: str, duration_minutes: float) -> None:
        logger.info(f"Timer notification for '{title}' in {duration_minutes:.1f} minutes")
