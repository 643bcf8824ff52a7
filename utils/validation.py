"""
Validation Utilities
Helper functions for validating Discord IDs, configuration values and command input
"""

import re
from typing import Any, List, Optional, Union

# Discord snowflake ID pattern: 17-20 digits
SNOWFLAKE_REGEX = re.compile(r"^[0-9]{17,20}$")

# Discord audit log reasons are capped at 512 characters
MAX_REASON_LENGTH = 512

# Discord accepts at most 7 days of message history deletion on ban
MAX_DELETE_MESSAGE_DAYS = 7


class ValidationResult:
    """Result of a validation operation."""

    def __init__(
        self,
        valid: bool,
        error: Optional[str] = None,
        sanitized: Optional[str] = None,
        value: Optional[Any] = None,
    ):
        self.valid = valid
        self.error = error
        self.sanitized = sanitized
        self.value = value

    def __bool__(self) -> bool:
        return self.valid


class ValidationUtils:
    """Utility class for input validation."""

    @staticmethod
    def is_valid_snowflake(id_value: Union[str, int]) -> bool:
        """
        Check if value is a valid Discord snowflake ID.

        Args:
            id_value: ID to validate

        Returns:
            True if valid snowflake
        """
        if isinstance(id_value, bool) or not isinstance(id_value, (str, int)):
            return False
        str_id = str(id_value)
        return bool(SNOWFLAKE_REGEX.match(str_id))

    @staticmethod
    def validate_guild_id(guild_id: Optional[Union[str, int]]) -> ValidationResult:
        """
        Validate and sanitize a guild/server ID.

        Args:
            guild_id: Guild ID to validate

        Returns:
            ValidationResult with valid status, sanitized string and int value
        """
        if not guild_id:
            return ValidationResult(valid=False, error="Guild ID is required")

        sanitized = ValidationUtils.sanitize_input(str(guild_id))

        if not ValidationUtils.is_valid_snowflake(sanitized):
            return ValidationResult(valid=False, error=f"Invalid guild ID format: {sanitized!r}")

        return ValidationResult(valid=True, sanitized=sanitized, value=int(sanitized))

    @staticmethod
    def parse_guild_ids(raw: Optional[str]) -> ValidationResult:
        """
        Parse a comma-separated list of guild IDs.

        Duplicates are dropped, first occurrence wins.

        Args:
            raw: Raw value, e.g. "111111111111111111,222222222222222222"

        Returns:
            ValidationResult whose value is a tuple of ints
        """
        ids: List[int] = []
        if not raw or not raw.strip():
            return ValidationResult(valid=True, value=tuple(ids))

        for part in raw.split(","):
            if not part.strip():
                continue
            result = ValidationUtils.validate_guild_id(part)
            if not result:
                return ValidationResult(valid=False, error=result.error)
            if result.value not in ids:
                ids.append(result.value)

        return ValidationResult(valid=True, value=tuple(ids))

    @staticmethod
    def sanitize_input(input_value: str) -> str:
        """
        Sanitize user input to prevent injection.

        Args:
            input_value: Input to sanitize

        Returns:
            Sanitized input string
        """
        if not isinstance(input_value, str):
            return ""

        # Trim whitespace
        sanitized = input_value.strip()

        # Remove zero-width characters
        sanitized = re.sub(r"[\u200B-\u200D\uFEFF]", "", sanitized)

        # Remove control characters
        sanitized = re.sub(r"[\x00-\x1F\x7F-\x9F]", "", sanitized)

        return sanitized

    @staticmethod
    def validate_ban_reason(reason: Optional[str]) -> ValidationResult:
        """
        Normalise a ban reason.

        A missing or blank reason is valid with value None. Reasons longer than
        the audit log limit are truncated.

        Args:
            reason: Reason supplied by the moderator

        Returns:
            ValidationResult with the reason to send (or None)
        """
        if reason is None:
            return ValidationResult(valid=True, value=None)

        if not isinstance(reason, str):
            return ValidationResult(valid=False, error="Reason must be text")

        sanitized = ValidationUtils.sanitize_input(reason)
        if not sanitized:
            return ValidationResult(valid=True, value=None)

        if len(sanitized) > MAX_REASON_LENGTH:
            sanitized = sanitized[: MAX_REASON_LENGTH - 3] + "..."

        return ValidationResult(valid=True, sanitized=sanitized, value=sanitized)

    @staticmethod
    def validate_delete_message_days(days: Union[int, str]) -> ValidationResult:
        """
        Validate how many days of messages a ban should delete.

        Args:
            days: Number of days (0-7)

        Returns:
            ValidationResult with the int value
        """
        try:
            num = int(days)
        except (ValueError, TypeError):
            return ValidationResult(valid=False, error="Delete message days must be a whole number")

        if num < 0 or num > MAX_DELETE_MESSAGE_DAYS:
            return ValidationResult(
                valid=False,
                error=f"Delete message days must be between 0 and {MAX_DELETE_MESSAGE_DAYS}",
            )

        return ValidationResult(valid=True, value=num)
