from fastapi import Header

ANONYMOUS_OWNER = "anonymous"


def get_owner_key(x_owner_key: str | None = Header(default=None)) -> str:
    """
    Identifies the browser profile / account a request acts for: the user's
    email once logged in, otherwise a client-chosen anonymous key.
    """
    key = (x_owner_key or "").strip().lower()
    return key or ANONYMOUS_OWNER
