"""
Empirical correction constants for token estimates.

These values were calibrated against the cl100k_base tokenizer and are not
derived from any published format. Override them through configuration when
the provider's counting changes.
"""

from dataclasses import dataclass, fields


@dataclass(frozen=True)
class Calibration:
    """Fixed token charges applied on top of tokenizer counts."""
    reply_priming: int = 3  # every reply is primed with <|start|>assistant<|message|>
    request_correction: int = 50
    prompt_correction: int = 50
    tool_call_overhead: int = 12
    tool_parameters_overhead: int = 11
    property_type_overhead: int = 2
    # Observed behavior charges a property's type twice.
    property_type_repeats: int = 2
    enum_discount: int = 3
    enum_value_overhead: int = 3

    def __post_init__(self):
        """Validate every constant is a non-negative integer."""
        for f in fields(self):
            value = getattr(self, f.name)
            if isinstance(value, bool) or not isinstance(value, int):
                raise ValueError(f"{f.name} must be an integer")
            if value < 0:
                raise ValueError(f"{f.name} must be >= 0")


DEFAULT_CALIBRATION = Calibration()
