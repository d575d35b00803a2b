def compute_delta(previous, current):
    """
    Entities in `current` whose id was not in `previous`, in `current` order.

    An empty `previous` (first search for a key) makes everything new.
    Duplicate ids inside `current` are passed through untouched.
    """
    seen_before = {entity.id for entity in previous}
    return [entity for entity in current if entity.id not in seen_before]
