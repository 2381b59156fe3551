"""
Power-of-two bracket math.

Single-elimination brackets are padded to the next power of two; the padding
is handed out as byes in Round 1.
"""
from dataclasses import dataclass


@dataclass
class ByeCalculation:
    bracket_size: int
    byes: int


def next_power_of_two(n: int) -> int:
    """Smallest power of two >= n. n <= 0 and n == 1 both give 1."""
    if n <= 1:
        return 1
    power = 1
    while power < n:
        power *= 2
    return power


def calculate_byes(num_competitors: int) -> ByeCalculation:
    bracket_size = next_power_of_two(num_competitors)
    return ByeCalculation(bracket_size=bracket_size, byes=max(0, bracket_size - num_competitors))


def total_rounds(num_competitors: int) -> int:
    """Number of rounds needed to reduce the bracket to one winner (0 for 0-1 competitors)."""
    return (next_power_of_two(num_competitors)).bit_length() - 1


def round_display_name(round_number: int, rounds_in_bracket: int) -> str:
    if rounds_in_bracket > 0 and round_number == rounds_in_bracket:
        return "Final"
    if rounds_in_bracket > 1 and round_number == rounds_in_bracket - 1:
        return "Semifinal"
    return f"Round {round_number}"
