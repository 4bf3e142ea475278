# promptframe/config.py
"""
Generation pipeline configuration and defaults.
"""

import os
from dataclasses import dataclass
from typing import Optional, Tuple


@dataclass
class GeneratorConfig:
    """Global generation configuration."""

    # Generation service
    api_url: str = "https://api.mistral.ai/v1/chat/completions"
    model: str = "mistral-large-latest"
    api_key: Optional[str] = None
    api_key_env: str = "MISTRAL_API_KEY"

    # Per-attempt wall-clock limit (seconds)
    timeout: float = 120.0

    # Attempt budget is 1 + max_retries
    max_retries: int = 3

    # Rate limit backoff: min(base + 2**attempt * unit, max) seconds
    rate_limit_base_delay: float = 3.0
    rate_limit_unit_delay: float = 1.0
    rate_limit_max_delay: float = 30.0

    # Timeout / network backoff: min(base + attempt * step, max) seconds
    transient_base_delay: float = 3.0
    transient_step_delay: float = 1.0
    transient_max_delay: float = 10.0

    # Provider rate-limit signal
    rate_limit_status: int = 429
    rate_limit_code: str = "3505"
    transient_statuses: Tuple[int, ...] = (502, 503, 504)

    # Switch to the terse system prompt once this many retries have happened
    simplify_after_retries: int = 1

    def __post_init__(self):
        if self.api_key is None:
            self.api_key = os.environ.get(self.api_key_env)

    def rate_limit_delay(self, attempt: int) -> float:
        """Exponential wait before retry number ``attempt + 1``."""
        return min(self.rate_limit_base_delay + (2 ** attempt) * self.rate_limit_unit_delay,
                   self.rate_limit_max_delay)

    def transient_delay(self, attempt: int) -> float:
        """Linear wait before retry number ``attempt + 1``."""
        return min(self.transient_base_delay + attempt * self.transient_step_delay,
                   self.transient_max_delay)


# Global config instance
CONFIG = GeneratorConfig()
