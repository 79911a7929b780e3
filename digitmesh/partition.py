def owned_terms(rank: int, group_size: int, term_count: int) -> range:
    """Stride partition: rank owns k = rank, rank + size, ... below term_count.

    A rank past the end of the series gets an empty range.
    """
    rank = int(rank)
    group_size = int(group_size)
    term_count = int(term_count)
    if group_size < 1:
        raise ValueError("group_size must be >= 1")
    if not 0 <= rank < group_size:
        raise ValueError("rank must be in [0, group_size)")
    if term_count < 0:
        raise ValueError("term_count must be >= 0")
    return range(rank, term_count, group_size)
