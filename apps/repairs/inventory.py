"""Stock arithmetic for parts consumed and returned by repairs.

Consuming never takes a quantity below zero; returning has no ceiling.
"""
from collections import Counter
from typing import Dict, Iterable, Mapping


def consume(quantity: int, used: int) -> int:
    return max(0, quantity - used)


def restore(quantity: int, returned: int) -> int:
    return quantity + returned


def quantities_by_part(usages: Iterable) -> Dict[str, int]:
    """Total ``quantity_used`` per ``spare_part_id``; accepts dicts or objects."""
    totals = Counter()
    for usage in usages:
        if isinstance(usage, Mapping):
            totals[usage["spare_part_id"]] += usage["quantity_used"]
        else:
            totals[usage.spare_part_id] += usage.quantity_used
    return dict(totals)


def plan_stock(
    current: Mapping[str, int],
    returned: Mapping[str, int],
    consumed: Mapping[str, int],
) -> Dict[str, int]:
    """New quantity of every part in ``current``: returns first, then consumption."""
    return {
        part_id: consume(restore(quantity, returned.get(part_id, 0)), consumed.get(part_id, 0))
        for part_id, quantity in current.items()
    }
