"""Intel CPU generation lookup from the WMI processor model number."""

from typing import Optional, Tuple


# (minimum model number, generation), checked top to bottom; first match wins.
# The order is not monotonic and must be kept as is: the 9th and 8th gen rows
# are shadowed by the 12th and 11th gen rows above them.
INTEL_GENERATION_THRESHOLDS: Tuple[Tuple[int, int], ...] = (
    (206, 14),  # Meteor Lake, Arrow Lake
    (183, 13),  # Raptor Lake
    (154, 12),  # Alder Lake
    (140, 11),  # Tiger Lake, Rocket Lake
    (125, 10),  # Ice Lake, Comet Lake
    (159, 9),   # Coffee Lake Refresh
    (142, 8),   # Coffee Lake
    (78, 7),    # Kaby Lake
    (74, 6),    # Skylake
    (61, 5),    # Broadwell
    (60, 4),    # Haswell
    (58, 3),    # Ivy Bridge
    (42, 2),    # Sandy Bridge
    (26, 1),    # Nehalem, Westmere
)

UNKNOWN_GENERATION = 0


def resolve_generation(model_number: int) -> int:
    """
    Map an Intel64 Family 6 model number to a Core generation.

    Args:
        model_number: Model number from the processor caption

    Returns:
        int: Generation number, 0 when the model predates every threshold
    """
    for min_model, generation in INTEL_GENERATION_THRESHOLDS:
        if model_number >= min_model:
            return generation
    return UNKNOWN_GENERATION


def format_cpu_label(model_number: int, generation: Optional[int] = None) -> str:
    """
    Build the human-readable CPU label shown in reports.

    Examples:
        165 -> 'Intel 12th Gen (Model 165)'
        20  -> 'Intel Unknown Gen (Model 20)'
    """
    if generation is None:
        generation = resolve_generation(model_number)
    if generation > UNKNOWN_GENERATION:
        return f"Intel {generation}th Gen (Model {model_number})"
    return f"Intel Unknown Gen (Model {model_number})"
