"""
Monitoring Utilities
Command metrics and health monitoring
"""

import time
from collections import Counter
from typing import Any, Dict, List, Optional

import psutil

# Failure ratio above which the bot reports itself degraded
MAX_FAILURE_RATIO = 0.5

# Minimum number of executions before the failure ratio is considered
MIN_EXECUTIONS_FOR_RATIO = 10


class HealthStatus:
    """Health status result."""

    def __init__(
        self,
        healthy: bool,
        status: str,
        checks: Dict[str, bool],
        timestamp: str,
    ):
        self.healthy = healthy
        self.status = status
        self.checks = checks
        self.timestamp = timestamp


class Monitoring:
    """Command metrics and health monitoring."""

    def __init__(self):
        self.start_time = time.time()
        self.discord_connected = False
        self.metrics = {
            "commandsExecuted": 0,
            "commandsFailed": 0,
            "interactionsDropped": 0,
            "errors": 0,
        }
        self.command_counts: Counter = Counter()
        self.failure_counts: Counter = Counter()
        self.outcome_counts: Counter = Counter()
        self.guild_sync: Dict[int, bool] = {}

    def set_connected(self, connected: bool) -> None:
        self.discord_connected = connected

    def record_command(self, name: str) -> None:
        """Record a command invocation."""
        self.metrics["commandsExecuted"] += 1
        self.command_counts[name] += 1

    def record_outcome(self, name: str, outcome: Any) -> None:
        """Record how a command ended."""
        label = getattr(outcome, "value", outcome)
        self.outcome_counts[f"{name}:{label}"] += 1

    def record_failure(self, name: str) -> None:
        """Record a command that raised."""
        self.metrics["commandsFailed"] += 1
        self.failure_counts[name] += 1

    def record_dropped(self) -> None:
        """Record an interaction no handler was registered for."""
        self.metrics["interactionsDropped"] += 1

    def record_error(self) -> None:
        """Record an unexpected error."""
        self.metrics["errors"] += 1

    def record_guild_sync(self, guild_id: int, synced: bool) -> None:
        """Record whether a guild's command set was registered."""
        self.guild_sync[guild_id] = synced

    def failure_ratio(self) -> float:
        executed = self.metrics["commandsExecuted"]
        if executed == 0:
            return 0.0
        return self.metrics["commandsFailed"] / executed

    def get_system_metrics(self) -> Dict[str, Any]:
        """
        Get process metrics.

        Returns:
            Dict with memory and uptime info
        """
        process = psutil.Process()
        memory_info = process.memory_info()

        return {
            "memory": {
                "rssMb": round(memory_info.rss / 1024 / 1024),
            },
            "uptime": {
                "bot": self.format_duration(int(time.time() - self.start_time)),
            },
        }

    def get_app_metrics(self) -> Dict[str, Any]:
        return {
            **self.metrics,
            "commands": dict(self.command_counts),
            "failures": dict(self.failure_counts),
            "outcomes": dict(self.outcome_counts),
            "guildSync": {str(guild_id): synced for guild_id, synced in self.guild_sync.items()},
        }

    def get_health_status(self) -> HealthStatus:
        """
        Get health status.

        Returns:
            HealthStatus with overall health and individual checks
        """
        executed = self.metrics["commandsExecuted"]

        checks = {
            "discord": self.discord_connected,
            "commands_registered": not self.guild_sync or any(self.guild_sync.values()),
            "failures": (
                executed < MIN_EXECUTIONS_FOR_RATIO
                or self.failure_ratio() <= MAX_FAILURE_RATIO
            ),
        }

        healthy = all(checks.values())

        return HealthStatus(
            healthy=healthy,
            status="healthy" if healthy else "degraded",
            checks=checks,
            timestamp=time.strftime("%Y-%m-%dT%H:%M:%SZ", time.gmtime()),
        )

    @staticmethod
    def format_duration(seconds: int) -> str:
        """
        Format duration in human readable format.

        Args:
            seconds: Duration in seconds

        Returns:
            Formatted duration string
        """
        days = seconds // 86400
        hours = (seconds % 86400) // 3600
        mins = (seconds % 3600) // 60
        secs = seconds % 60

        parts: List[str] = []
        if days > 0:
            parts.append(f"{days}d")
        if hours > 0:
            parts.append(f"{hours}h")
        if mins > 0:
            parts.append(f"{mins}m")
        if secs > 0 or not parts:
            parts.append(f"{secs}s")

        return " ".join(parts)

    def get_full_status(self, health: Optional[HealthStatus] = None) -> Dict[str, Any]:
        """
        Get full status report.

        Returns:
            Dict with health, system and app metrics
        """
        health = health or self.get_health_status()
        return {
            "health": {
                "healthy": health.healthy,
                "status": health.status,
                "checks": health.checks,
                "timestamp": health.timestamp,
            },
            "system": self.get_system_metrics(),
            "app": self.get_app_metrics(),
        }
