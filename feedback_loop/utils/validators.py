import re

_DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")

def coerce_id(val):
    """Ids arrive as ints from JSON and as strings from query args; compare them as ints."""
    if isinstance(val, bool):
        return val
    try:
        return int(val)
    except (TypeError, ValueError):
        return val

def parse_int(val, *, minimum: int | None = None) -> int | None:
    """
    Parse a query-string integer. Returns None when empty; raises ValueError
    when malformed or below ``minimum``.
    """
    if val is None:
        return None
    s = str(val).strip()
    if not s:
        return None
    n = int(s)
    if minimum is not None and n < minimum:
        raise ValueError(f"{n} is below {minimum}")
    return n

def parse_int_list(values) -> list[int]:
    """Accept repeated args and comma-separated values: ?node_id=1&node_id=2,3"""
    out = []
    for raw in values or []:
        for part in str(raw).split(","):
            n = parse_int(part, minimum=1)
            if n is not None:
                out.append(n)
    return out

def is_valid_date(val: str | None) -> bool:
    if not val:
        return True
    return bool(_DATE_RE.match(val.strip()))
