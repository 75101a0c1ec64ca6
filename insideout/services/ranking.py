"""Tie-aware rank assignment."""

from collections.abc import Sequence


def competition_ranks(values: Sequence[float]) -> list[int]:
    """Assign standard competition ranks ("1224") to ordered values.

    Values are taken in the order the data source returned them. Adjacent
    equal values share a rank and the following rank skips by the size of
    the tie group.

    Example:
        >>> competition_ranks([50.0, 40.0, 40.0, 10.0])
        [1, 2, 2, 4]
    """
    ranks: list[int] = []
    for position, value in enumerate(values, start=1):
        if ranks and value == values[position - 2]:
            ranks.append(ranks[-1])
        else:
            ranks.append(position)
    return ranks
