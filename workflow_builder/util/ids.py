import ulid


def new_id(prefix: str = "") -> str:
    """Sortable unique id (ULID) with an optional prefix, e.g. ``node_01J...``."""
    return prefix + ulid.new().str
