def require_iso_datetime(value):
    """Only full ISO-8601 date-time strings; no epoch numbers or bare dates."""
    if value is None:
        return value
    if not isinstance(value, str) or "T" not in value.upper():
        raise ValueError("must be an ISO-8601 date-time string")
    return value
