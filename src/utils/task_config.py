"""Task completion settings with environment variable support."""

import os


class TaskCompletionConfig:
    """Centralized task completion configuration."""

    # "block" fails closed on unrecognized descriptors, "allow" lets them pass
    UNKNOWN_REQUIREMENT_POLICY = os.environ.get("TASK_UNKNOWN_REQUIREMENT_POLICY", "block").lower()
    AUTO_COMPLETE_WINDOW_DAYS = int(os.environ.get("TASK_AUTO_COMPLETE_WINDOW_DAYS", "30"))
    SUPABASE_QUERY_TIMEOUT_SECONDS = float(os.environ.get("SUPABASE_QUERY_TIMEOUT_SECONDS", "10"))

    @classmethod
    def blocks_unknown_requirements(cls) -> bool:
        """Whether unrecognized descriptors should block completion."""
        return cls.UNKNOWN_REQUIREMENT_POLICY != "allow"
